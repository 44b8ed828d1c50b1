# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Waitlist Notification Texts

Translatable titles and contents for the Salon Notification outbox rows
created by the waitlist matcher. Delivery (push/SMS) reads the outbox and
is handled outside this app.
"""

from frappe import _
from frappe.utils import format_date

from salon_scheduling.salon_scheduling.scheduling.intervals import format_hhmm
from salon_scheduling.salon_scheduling.scheduling.waitlist import WaitlistMessages


class SiteWaitlistMessages(WaitlistMessages):
	"""Waitlist texts translated and date-formatted for the site."""

	def slot_freed(self, entry, slot_date, slot_time):
		title = _("A spot opened up!")
		content = _("Hi {0}! A spot opened up for {1} on {2} at {3}. Book now!").format(
			entry.client_name,
			entry.service_name or _("your service"),
			format_date(slot_date, "EEEE d MMMM yyyy"),
			format_hhmm(slot_time),
		)
		return title, content

	def hours_opened(self, entry):
		title = _("New hours added")
		content = _(
			"Hi {0}! New working hours were added on {1} that match your preference for {2}. "
			"You can try booking now."
		).format(
			entry.client_name,
			format_date(entry.requested_date, "EEEE d MMMM yyyy"),
			entry.service_name or _("your service"),
		)
		return title, content
