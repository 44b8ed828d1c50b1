# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Salon Scheduling Settings DocType

Site-wide scheduling configuration (Single). Read by
frappe_store.load_config into a SchedulingConfig.
"""

import frappe
import pytz
from frappe import _
from frappe.model.document import Document
from frappe.utils import cint

from salon_scheduling.salon_scheduling.scheduling.config import MAX_BUFFER_MINUTES


class SalonSchedulingSettings(Document):
	"""
	Salon Scheduling Settings with validations.

	Validations:
	- buffer_minutes in 0..180
	- Durations and horizons > 0
	- timezone is a valid IANA name (empty = system timezone)
	"""

	def validate(self) -> None:
		self._validate_buffer()
		self._validate_positive_fields()
		self._validate_timezone()

	def _validate_buffer(self) -> None:
		if not 0 <= cint(self.buffer_minutes) <= MAX_BUFFER_MINUTES:
			frappe.throw(_("Buffer must be between 0 and {0} minutes").format(MAX_BUFFER_MINUTES))

	def _validate_positive_fields(self) -> None:
		for fieldname in (
			"default_slot_duration",
			"default_service_duration",
			"seed_horizon_days",
			"nearest_slots_days",
			"nearest_slots_limit",
		):
			if cint(self.get(fieldname)) <= 0:
				frappe.throw(_("{0} must be greater than 0").format(self.meta.get_label(fieldname)))

	def _validate_timezone(self) -> None:
		if self.timezone and self.timezone not in pytz.all_timezones_set:
			frappe.throw(_("Invalid timezone: {0}").format(self.timezone))
