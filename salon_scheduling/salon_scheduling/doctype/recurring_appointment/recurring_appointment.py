# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Recurring Appointment DocType

Standing weekly booking for one client at one weekday/time. The seeder
claims the matching slot every time it seeds a date the rule applies to.
A new rule claims its nearest occurrence right away.
"""

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import cint, getdate

from salon_scheduling.salon_scheduling.scheduling import intervals
from salon_scheduling.salon_scheduling.scheduling.frappe_store import (
	FrappeStore,
	is_set,
	load_config,
	recurring_from_doc,
)
from salon_scheduling.salon_scheduling.scheduling.models import next_weekday
from salon_scheduling.salon_scheduling.scheduling.seeder import seed_day
from salon_scheduling.salon_scheduling.scheduling.slots import local_now

MAX_REPEAT_INTERVAL_WEEKS = 4


class RecurringAppointment(Document):
	"""
	Recurring Appointment with validations.

	Validations:
	- day_of_week in 0..6 (0 = Sunday)
	- slot_time required
	- repeat_interval_weeks in 1..4
	- start_date defaults to the next date on day_of_week
	- start_date <= end_date (if both present)
	- No other active rule at the same weekday/time/provider
	- A new rule's nearest occurrence is not booked by another client
	"""

	def validate(self) -> None:
		self._validate_schedule()
		self._set_default_start_date()
		self._validate_validity_dates()
		self._validate_no_duplicate_rule()
		self._validate_nearest_occurrence_free()

	def after_insert(self) -> None:
		self._claim_nearest_occurrence()

	def to_rule(self):
		return recurring_from_doc(self)

	def _today(self):
		return local_now(load_config().timezone).date()

	def _validate_schedule(self) -> None:
		if not is_set(self.day_of_week) or cint(self.day_of_week) not in range(7):
			frappe.throw(_("Day of Week must be between 0 (Sunday) and 6 (Saturday)"))

		if not is_set(self.slot_time):
			frappe.throw(_("Slot Time is required"))

		try:
			intervals.to_minutes(self.slot_time)
		except ValueError as e:
			frappe.throw(_("Invalid Slot Time: {0}").format(str(e)))

		self.repeat_interval_weeks = cint(self.repeat_interval_weeks) or 1
		if not 1 <= self.repeat_interval_weeks <= MAX_REPEAT_INTERVAL_WEEKS:
			frappe.throw(_("Repeat every must be between 1 and {0} weeks").format(MAX_REPEAT_INTERVAL_WEEKS))

	def _set_default_start_date(self) -> None:
		if not self.start_date:
			self.start_date = next_weekday(cint(self.day_of_week), self._today())

	def _validate_validity_dates(self) -> None:
		if self.start_date and self.end_date and getdate(self.start_date) > getdate(self.end_date):
			frappe.throw(_("Start Date must be on or before End Date"))

	def _validate_no_duplicate_rule(self) -> None:
		if not cint(self.is_active):
			return

		existing = frappe.db.exists("Recurring Appointment", {
			"day_of_week": cint(self.day_of_week),
			"slot_time": self.slot_time,
			"provider": self.provider if self.provider else ["is", "not set"],
			"is_active": 1,
			"name": ["!=", self.name] if self.name else ["is", "set"],
		})
		if existing:
			frappe.throw(_("{0} already holds this weekday and time").format(existing))

	def _validate_nearest_occurrence_free(self) -> None:
		if not self.is_new() or not cint(self.is_active):
			return

		rule = self.to_rule()
		nearest = rule.next_date(self._today())
		if nearest is None:
			return

		row = FrappeStore().find_slot(nearest, rule.time, rule.provider_id)
		if row is not None and not row.is_available and row.client_phone != rule.client_phone:
			frappe.throw(
				_("{0} at {1} is already booked by {2}").format(
					frappe.format(nearest, {"fieldtype": "Date"}),
					intervals.format_hhmm(rule.time),
					row.client_name,
				),
				title=_("Slot Taken")
			)

	def _claim_nearest_occurrence(self) -> None:
		"""
		Seed the date of the rule's nearest occurrence, which claims its slot.

		Failures are logged; the rule itself stays saved and the next
		scheduled seeding run retries the claim.
		"""
		if not cint(self.is_active):
			return

		rule = self.to_rule()
		try:
			config = load_config()
			nearest = rule.next_date(local_now(config.timezone).date())
			if nearest is None:
				return

			store = FrappeStore()
			with store.atomic():
				seed_day(store, config, nearest, rule.provider_id)
			row = store.find_slot(nearest, rule.time, rule.provider_id)
		except Exception as e:
			frappe.log_error(
				message=f"Nearest occurrence claim failed for {self.name}: {str(e)}",
				title="Recurring Claim Failed"
			)
			return

		if row is not None and not row.is_available and row.client_phone == rule.client_phone:
			frappe.msgprint(
				_("Booked {0} at {1}").format(
					frappe.format(nearest, {"fieldtype": "Date"}), intervals.format_hhmm(rule.time)
				),
				indicator="green",
				alert=True
			)
		else:
			frappe.msgprint(
				_("{0} at {1} could not be booked; it is outside working hours or closed").format(
					frappe.format(nearest, {"fieldtype": "Date"}), intervals.format_hhmm(rule.time)
				),
				indicator="orange",
				alert=True
			)
