# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Waitlist Entry DocType

A client waiting for a free spot on a date, with a coarse time
preference. The waitlist matcher moves entries from waiting to
contacted; booking flows move them to booked or cancelled.
"""

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import getdate

from salon_scheduling.salon_scheduling.scheduling.intervals import TIME_PERIODS

STATUSES = ("waiting", "contacted", "booked", "cancelled")


class WaitlistEntry(Document):
	"""
	Waitlist Entry with validations.

	Validations:
	- requested_date not in the past (new entries only)
	- time_period in morning/afternoon/evening/any
	- status in waiting/contacted/booked/cancelled
	- One open entry per client and date
	"""

	def validate(self) -> None:
		self._validate_requested_date()
		self._validate_choices()
		self._validate_single_open_entry()

	def _validate_requested_date(self) -> None:
		if not self.requested_date:
			frappe.throw(_("Requested Date is required"))

		if self.is_new() and getdate(self.requested_date) < getdate():
			frappe.throw(_("Requested Date cannot be in the past"))

	def _validate_choices(self) -> None:
		if not self.time_period:
			self.time_period = "any"

		if self.time_period not in TIME_PERIODS:
			frappe.throw(_("Time Period must be one of: {0}").format(", ".join(TIME_PERIODS)))

		if self.status not in STATUSES:
			frappe.throw(_("Status must be one of: {0}").format(", ".join(STATUSES)))

	def _validate_single_open_entry(self) -> None:
		if self.status not in ("waiting", "contacted"):
			return

		existing = frappe.db.exists("Waitlist Entry", {
			"client_phone": self.client_phone,
			"requested_date": self.requested_date,
			"status": ["in", ["waiting", "contacted"]],
			"name": ["!=", self.name] if self.name else ["is", "set"],
		})
		if existing:
			frappe.throw(_("{0} is already on the waitlist for {1} ({2})").format(
				self.client_name, self.requested_date, existing
			))
