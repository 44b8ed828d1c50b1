# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Salon Slot DocType

One bookable start time (date, time, provider). Available rows are
placeholders created by the seeder; booked rows carry the client.

(slot_date, slot_time, provider_key) is unique; a second insert of the
same slot fails on that index.
"""

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import cint

from salon_scheduling.salon_scheduling.scheduling import intervals
from salon_scheduling.salon_scheduling.scheduling.frappe_store import is_set, provider_key


class SalonSlot(Document):
	"""
	Salon Slot with validations.

	Validations:
	- slot_date and slot_time required
	- duration_minutes >= 0 (if present)
	- Booked rows need client name and phone
	- provider_key mirrors provider ("" for salon-wide)
	"""

	def validate(self) -> None:
		self.provider_key = provider_key(self.provider)
		self._validate_required_fields()
		self._validate_duration()
		self._validate_booking_fields()

	def on_trash(self) -> None:
		if not cint(self.is_available):
			frappe.throw(_("Cancel the appointment of {0} before deleting the slot").format(self.client_name))

	def _validate_required_fields(self) -> None:
		if not self.slot_date:
			frappe.throw(_("Slot Date is required"))

		if not is_set(self.slot_time):
			frappe.throw(_("Slot Time is required"))

		try:
			intervals.to_minutes(self.slot_time)
		except ValueError as e:
			frappe.throw(_("Invalid Slot Time: {0}").format(str(e)))

	def _validate_duration(self) -> None:
		if self.duration_minutes is not None and cint(self.duration_minutes) < 0:
			frappe.throw(_("Duration cannot be negative"))

	def _validate_booking_fields(self) -> None:
		if cint(self.is_available):
			return

		if not self.client_name or not self.client_phone:
			frappe.throw(_("Booked slots require Client Name and Client Phone"))


def on_doctype_update():
	frappe.db.add_unique(
		"Salon Slot",
		["slot_date", "slot_time", "provider_key"],
		constraint_name="unique_salon_slot",
	)
	frappe.db.add_index("Salon Slot", ["slot_date", "client_phone"])
