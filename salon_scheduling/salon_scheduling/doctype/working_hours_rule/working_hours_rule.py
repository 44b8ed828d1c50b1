# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Working Hours Rule DocType

Weekly working hours template for one weekday, salon-wide or for one
provider, with its breaks. Saving a rule that opens new time notifies
matching waitlist clients.
"""

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import cint

from salon_scheduling.salon_scheduling.notifications.waitlist import SiteWaitlistMessages
from salon_scheduling.salon_scheduling.scheduling.frappe_store import (
	FrappeStore,
	is_set,
	load_config,
	rule_from_doc,
)
from salon_scheduling.salon_scheduling.scheduling.intervals import rule_violations
from salon_scheduling.salon_scheduling.scheduling.slots import local_now
from salon_scheduling.salon_scheduling.scheduling.waitlist import (
	match_waitlist_on_hours_change,
	newly_opened_windows,
)


class WorkingHoursRule(Document):
	"""
	Working Hours Rule with validations.

	Validations:
	- day_of_week in 0..6 (0 = Sunday)
	- start_time < end_time
	- Each break inside working hours, breaks not overlapping
	- One rule per weekday and provider
	"""

	def validate(self) -> None:
		self._validate_day_of_week()
		self._validate_times()
		self._validate_unique_rule()

	def on_update(self) -> None:
		self._notify_waitlist_on_new_hours()

	def to_rule(self):
		"""Engine view of this document."""
		return rule_from_doc(self)

	def _validate_day_of_week(self) -> None:
		if not is_set(self.day_of_week) or cint(self.day_of_week) not in range(7):
			frappe.throw(_("Day of Week must be between 0 (Sunday) and 6 (Saturday)"))

	def _validate_times(self) -> None:
		if not is_set(self.start_time) or not is_set(self.end_time):
			frappe.throw(_("Start Time and End Time are required"))

		for idx, row in enumerate(self.breaks or [], 1):
			if not is_set(row.start_time) or not is_set(row.end_time):
				frappe.throw(_("Break row {0}: Start Time and End Time are required").format(idx))

		if is_set(self.break_start_time) != is_set(self.break_end_time):
			frappe.throw(_("Break Start Time and Break End Time must be set together"))

		try:
			rule = self.to_rule()
		except ValueError as e:
			frappe.throw(_("Invalid time: {0}").format(str(e)))

		problems = rule_violations(rule.start, rule.end, [(b.start, b.end) for b in rule.breaks])
		if problems:
			frappe.throw(
				"<br>".join(_(p.template).format(*p.values) for p in problems),
				title=_("Invalid Working Hours")
			)

		if cint(self.slot_duration_default) < 0:
			frappe.throw(_("Default Slot Duration cannot be negative"))

	def _validate_unique_rule(self) -> None:
		filters = {
			"day_of_week": cint(self.day_of_week),
			"provider": self.provider if self.provider else ["is", "not set"],
			"name": ["!=", self.name] if self.name else ["is", "set"],
		}
		existing = frappe.db.exists("Working Hours Rule", filters)
		if existing:
			frappe.throw(
				_("{0} already defines the hours of this weekday for {1}").format(
					existing, self.provider or _("the salon")
				)
			)

	def _notify_waitlist_on_new_hours(self) -> None:
		"""
		Notify waiting clients when this save opened new time.

		Only runs for active rules whose new windows are not covered by
		the previous version of the rule.
		"""
		before = self.get_doc_before_save()
		try:
			old_rule = rule_from_doc(before) if before else None
		except ValueError:
			old_rule = None

		opened = newly_opened_windows(old_rule, self.to_rule())
		if not opened:
			return

		try:
			config = load_config()
			notified = match_waitlist_on_hours_change(
				FrappeStore(),
				cint(self.day_of_week),
				opened,
				provider_id=self.provider or None,
				today=local_now(config.timezone).date(),
				messages=SiteWaitlistMessages(),
			)
		except Exception as e:
			frappe.log_error(
				message=f"Waitlist matching failed after hours change on {self.name}: {str(e)}",
				title="Waitlist Matching Failed"
			)
			return

		if notified:
			frappe.msgprint(
				_("{0} waitlist client(s) notified about the new hours").format(notified),
				indicator="green",
				alert=True
			)
			frappe.logger("salon_scheduling").info(
				f"Working Hours Rule {self.name}: {notified} waitlist entries contacted"
			)
