"""
Tests for api/booking_api.py

Tests whitelisted API endpoints against a site (bench run-tests).
"""

import unittest

import pytest

frappe = pytest.importorskip("frappe")

from frappe.utils import add_to_date, getdate  # noqa: E402

from salon_scheduling.api.booking_api import (  # noqa: E402
	SlotTakenError,
	book_slot,
	cancel_slot,
	get_available_slots,
	seed_day,
)
from salon_scheduling.api.security import RATE_LIMITS, check_rate_limit  # noqa: E402

PROVIDER = "Administrator"


@unittest.skipUnless(getattr(frappe.local, "site", None), "requires a Frappe site")
class TestBookingAPI(unittest.TestCase):
	"""Tests for booking API endpoints."""

	def setUp(self):
		"""Set up test data before each test."""
		frappe.set_user("Administrator")
		frappe.cache.delete_keys("rate_limit:salon_scheduling")

		self.target = getdate(add_to_date(getdate(), days=30))
		self.date_str = self.target.strftime("%Y-%m-%d")
		weekday = (self.target.weekday() + 1) % 7

		# Provider hours 09:00-12:00 on the target weekday
		if not frappe.db.exists("Working Hours Rule", {"day_of_week": weekday, "provider": PROVIDER}):
			frappe.get_doc({
				"doctype": "Working Hours Rule",
				"day_of_week": weekday,
				"provider": PROVIDER,
				"start_time": "09:00:00",
				"end_time": "12:00:00",
				"is_active": 1
			}).insert(ignore_permissions=True)

		frappe.db.commit()

	def tearDown(self):
		frappe.db.delete("Salon Slot", {"slot_date": self.target})
		frappe.db.commit()

	def test_get_available_slots_returns_slots(self):
		"""Test that the provider's open day offers hourly slots."""
		result = get_available_slots(self.date_str, provider=PROVIDER, duration_minutes=60)

		self.assertEqual(result["date"], self.date_str)
		self.assertEqual(result["slots"], ["09:00", "10:00", "11:00"])

	def test_get_available_slots_invalid_date(self):
		"""Test that a malformed date is rejected."""
		with self.assertRaises(frappe.ValidationError):
			get_available_slots("2026-13-45", provider=PROVIDER)

	def test_book_slot_conflict_returns_409(self):
		"""Test that a second booking of the same time raises SlotTakenError."""
		first = book_slot(self.date_str, "10:00", "Ana Test", "3001234567", provider=PROVIDER, duration_minutes=60)
		self.assertEqual(first["status"], "booked")

		with self.assertRaises(SlotTakenError) as ctx:
			book_slot(self.date_str, "10:00", "Luis Test", "3109876543", provider=PROVIDER, duration_minutes=60)
		self.assertEqual(ctx.exception.http_status_code, 409)

		result = get_available_slots(self.date_str, provider=PROVIDER, duration_minutes=60)
		self.assertNotIn("10:00", result["slots"])

	def test_book_slot_same_day_asks(self):
		"""Test that a second booking on the same day reports the existing one."""
		book_slot(self.date_str, "09:00", "Ana Test", "3001234567", provider=PROVIDER, duration_minutes=60)

		result = book_slot(self.date_str, "11:00", "Ana Test", "3001234567", provider=PROVIDER, duration_minutes=60)

		self.assertEqual(result["status"], "duplicate_same_day")
		self.assertEqual(result["existing"]["time"], "09:00")

	def test_cancel_slot_releases(self):
		"""Test that cancelling frees the time again."""
		booked = book_slot(self.date_str, "10:00", "Ana Test", "3001234567", provider=PROVIDER, duration_minutes=60)

		result = cancel_slot(booked["slot"]["name"])

		self.assertEqual(result["status"], "released")
		self.assertEqual(frappe.db.get_value("Salon Slot", booked["slot"]["name"], "is_available"), 1)
		self.assertEqual(cancel_slot(booked["slot"]["name"])["status"], "not_found")

	def test_seed_day_is_idempotent(self):
		"""Test that seeding twice inserts rows only once."""
		first = seed_day(self.date_str, provider=PROVIDER)
		second = seed_day(self.date_str, provider=PROVIDER)

		self.assertGreater(first["inserted"], 0)
		self.assertEqual(second["inserted"], 0)
		self.assertEqual(first["windows"], [{"start": "09:00", "end": "12:00"}])

	def test_rate_limit_trips_after_allowed_requests(self):
		"""Test that the request past the action's limit is refused."""
		limit, _seconds = RATE_LIMITS["book_slot"]
		for _i in range(limit):
			check_rate_limit("book_slot")

		with self.assertRaises(frappe.TooManyRequestsError):
			check_rate_limit("book_slot")

	def test_book_slot_rejects_filled_honeypot(self):
		"""Test that a filled hidden field refuses the booking without writing."""
		with self.assertRaises(frappe.ValidationError):
			book_slot(
				self.date_str, "10:00", "Ana Test", "3001234567",
				provider=PROVIDER, duration_minutes=60, honeypot="http://spam"
			)
		self.assertFalse(frappe.db.exists("Salon Slot", {"slot_date": self.target, "is_available": 0}))
