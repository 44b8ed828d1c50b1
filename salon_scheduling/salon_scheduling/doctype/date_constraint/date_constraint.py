# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Date Constraint DocType

Forced closure for a specific date:
- No times: closes the whole day
- Start/End Time: closes that range only
Applies salon-wide, or to one provider when Provider is set.
"""

import frappe
from frappe import _
from frappe.model.document import Document

from salon_scheduling.salon_scheduling.scheduling import intervals
from salon_scheduling.salon_scheduling.scheduling.frappe_store import is_set, provider_key


class DateConstraint(Document):
	"""
	Date Constraint with validations.

	Validations:
	- constraint_date required
	- start_time < end_time (if both present)
	- Warn when the closure overlaps booked slots
	"""

	def validate(self) -> None:
		self._validate_required_fields()
		self._validate_times()
		self._warn_on_booked_slots()

	def closed_range(self):
		"""Closed window in minutes; missing times extend to the start/end of the day."""
		start = intervals.to_minutes(self.start_time) if is_set(self.start_time) else 0
		end = intervals.to_minutes(self.end_time) if is_set(self.end_time) else intervals.MINUTES_PER_DAY
		return intervals.window(start, end)

	def _validate_required_fields(self) -> None:
		if not self.constraint_date:
			frappe.throw(_("Date is required"))

	def _validate_times(self) -> None:
		try:
			closed = self.closed_range()
		except ValueError as e:
			frappe.throw(_("Invalid time: {0}").format(str(e)))

		if not intervals.is_valid(closed):
			frappe.throw(
				_("Start Time ({0}) must be before End Time ({1})").format(
					intervals.format_hhmm(closed["start"]), intervals.format_hhmm(closed["end"])
				)
			)

	def _warn_on_booked_slots(self) -> None:
		"""
		Tell the operator about appointments inside the closed range.
		Does not block: existing bookings are kept and must be handled manually.
		"""
		filters = {"slot_date": self.constraint_date, "is_available": 0}
		if self.provider:
			filters["provider_key"] = provider_key(self.provider)

		booked = frappe.get_all(
			"Salon Slot",
			filters=filters,
			fields=["name", "slot_time", "duration_minutes", "client_name"],
		)

		closed = self.closed_range()
		affected = []
		for row in booked:
			start = intervals.to_minutes(row.slot_time)
			if intervals.overlaps(closed, intervals.window(start, start + (row.duration_minutes or 1))):
				affected.append(f"{intervals.format_hhmm(start)} {row.client_name or ''}".strip())

		if affected:
			frappe.msgprint(
				_("This closure overlaps {0} booked appointment(s): {1}").format(
					len(affected), ", ".join(affected)
				),
				indicator="orange",
				alert=True
			)
