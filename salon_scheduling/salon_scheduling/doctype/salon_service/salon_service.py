# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Salon Service DocType

A bookable service and how long it takes. Booking and slot generation
read duration_minutes when no explicit duration is given.
"""

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import cint


class SalonService(Document):
	def validate(self) -> None:
		if cint(self.duration_minutes) <= 0:
			frappe.throw(_("Duration must be greater than 0 minutes"))
