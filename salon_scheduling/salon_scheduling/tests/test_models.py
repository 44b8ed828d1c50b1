"""
Tests for scheduling/models.py

Tests weekday helpers and recurring rule occurrence logic.
"""

import unittest
from datetime import date, timedelta

from salon_scheduling.salon_scheduling.scheduling.models import (
	RECURRENCE_EPOCH,
	RecurringRule,
	day_of_week,
	next_weekday,
)

MONDAY = date(2030, 3, 4)


def _rule(**kwargs):
	values = {
		"day_of_week": 1,
		"time": 600,
		"client_name": "Ana",
		"client_phone": "3001234567",
	}
	values.update(kwargs)
	return RecurringRule(**values)


class TestWeekdayHelpers(unittest.TestCase):
	"""Tests for day_of_week and next_weekday."""

	def test_epoch_is_a_sunday(self):
		self.assertEqual(day_of_week(RECURRENCE_EPOCH), 0)

	def test_next_weekday_includes_from_date(self):
		"""Test that a date already on the weekday is returned as is."""
		self.assertEqual(next_weekday(1, MONDAY), MONDAY)

	def test_next_weekday_moves_forward(self):
		"""Test that the next Sunday after a Monday is six days later."""
		self.assertEqual(next_weekday(0, MONDAY), MONDAY + timedelta(days=6))
		self.assertEqual(next_weekday(2, MONDAY), MONDAY + timedelta(days=1))


class TestRecurringRule(unittest.TestCase):
	"""Tests for RecurringRule.applies_on and next_date."""

	def test_biweekly_without_start_date_alternates(self):
		"""Test that a two-week rule with no start date fires on alternate weeks."""
		rule = _rule(repeat_interval_weeks=2)

		hits = [rule.applies_on(MONDAY + timedelta(weeks=w)) for w in range(4)]

		self.assertEqual(hits.count(True), 2)
		self.assertEqual(hits[0], hits[2])
		self.assertEqual(hits[1], hits[3])
		self.assertNotEqual(hits[0], hits[1])

	def test_biweekly_counts_from_start_date(self):
		"""Test that the start date is week 0 of the interval."""
		rule = _rule(repeat_interval_weeks=2, start_date=MONDAY + timedelta(weeks=1))

		self.assertFalse(rule.applies_on(MONDAY))
		self.assertTrue(rule.applies_on(MONDAY + timedelta(weeks=1)))
		self.assertFalse(rule.applies_on(MONDAY + timedelta(weeks=2)))
		self.assertTrue(rule.applies_on(MONDAY + timedelta(weeks=3)))

	def test_weekly_rule_applies_every_week(self):
		rule = _rule()
		self.assertTrue(all(rule.applies_on(MONDAY + timedelta(weeks=w)) for w in range(4)))

	def test_next_date_from_start_date(self):
		"""Test that the nearest occurrence never precedes the start date."""
		rule = _rule(start_date=MONDAY + timedelta(weeks=2))
		self.assertEqual(rule.next_date(MONDAY), MONDAY + timedelta(weeks=2))

	def test_next_date_skips_off_weeks(self):
		"""Test that an off week moves the nearest occurrence to the next on week."""
		rule = _rule(repeat_interval_weeks=2, start_date=MONDAY)

		self.assertEqual(rule.next_date(MONDAY + timedelta(days=1)), MONDAY + timedelta(weeks=2))

	def test_next_date_without_start_date_applies(self):
		"""Test that the nearest occurrence of an unanchored rule is one it fires on."""
		rule = _rule(repeat_interval_weeks=3)

		nearest = rule.next_date(MONDAY)

		self.assertEqual(day_of_week(nearest), 1)
		self.assertTrue(rule.applies_on(nearest))
		self.assertLess(nearest, MONDAY + timedelta(weeks=3))

	def test_next_date_after_end_date_is_none(self):
		"""Test that an expired rule has no nearest occurrence."""
		rule = _rule(start_date=MONDAY, end_date=MONDAY + timedelta(days=3))
		self.assertIsNone(rule.next_date(MONDAY + timedelta(days=1)))
