# Copyright (c) 2026, Sebastian Ortiz Valencia and contributors
# For license information, please see license.txt

"""
Salon Notification DocType

Outbox of client notifications (waitlist matches). Delivery reads
undelivered rows and sets is_delivered.
"""

from frappe.model.document import Document


class SalonNotification(Document):
	pass
