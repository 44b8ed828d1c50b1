"""
Tests for scheduling/availability.py

Tests window resolution from working hours rules, breaks and date constraints.
"""

import random
import unittest
from datetime import date, timedelta

from salon_scheduling.salon_scheduling.scheduling.availability import (
	compute_windows,
	day_of_week,
	get_effective_availability,
	resolve_windows,
	rule_window,
	select_rule,
)
from salon_scheduling.salon_scheduling.scheduling.errors import InvalidWindow, NoProviderHours
from salon_scheduling.salon_scheduling.scheduling.intervals import window
from salon_scheduling.salon_scheduling.scheduling.models import Break, DateConstraint, WorkingHoursRule
from salon_scheduling.salon_scheduling.scheduling.store import MemoryStore

TARGET = date(2030, 3, 4)


class TestDayOfWeek(unittest.TestCase):
	"""Tests for the Sunday-based weekday index."""

	def test_day_of_week_is_sunday_based(self):
		"""Test that Sunday is 0 and Saturday is 6."""
		self.assertEqual(day_of_week(date(2030, 3, 3)), 0)  # Sunday
		self.assertEqual(day_of_week(date(2030, 3, 4)), 1)  # Monday
		self.assertEqual(day_of_week(date(2030, 3, 9)), 6)  # Saturday


class TestRuleSelection(unittest.TestCase):
	"""Tests for select_rule."""

	def setUp(self):
		self.salon = WorkingHoursRule(1, 540, 1020, name="salon-mon")
		self.provider = WorkingHoursRule(1, 600, 900, provider_id="dana", name="dana-mon")

	def test_provider_rule_wins(self):
		"""Test that the provider-specific rule is preferred."""
		rule = select_rule([self.salon, self.provider], 1, "dana")
		self.assertEqual(rule.name, "dana-mon")

	def test_falls_back_to_salon_rule(self):
		"""Test that a provider without a rule gets the salon-wide rule."""
		rule = select_rule([self.salon, self.provider], 1, "noa")
		self.assertEqual(rule.name, "salon-mon")

	def test_salon_schedule_ignores_provider_rules(self):
		"""Test that provider_id=None only sees the salon-wide rule."""
		rule = select_rule([self.provider], 1, None)
		self.assertIsNone(rule)

	def test_inactive_provider_rule_closes_the_day(self):
		"""Test that an inactive provider rule does not fall back to the salon rule."""
		self.provider.active = False
		self.assertIsNone(select_rule([self.salon, self.provider], 1, "dana"))

	def test_other_weekday_is_closed(self):
		"""Test that rules of other weekdays are ignored."""
		self.assertIsNone(select_rule([self.salon], 2, None))

	def test_strict_raises_no_provider_hours(self):
		"""Test that strict selection raises NoProviderHours."""
		with self.assertRaises(NoProviderHours) as ctx:
			select_rule([self.salon], 2, "dana", strict=True)
		self.assertEqual(ctx.exception.day_of_week, 2)
		self.assertEqual(ctx.exception.provider_id, "dana")


class TestComputeWindows(unittest.TestCase):
	"""Tests for compute_windows."""

	def test_break_splits_the_day(self):
		"""Test that hours 09-17 with a 12-13 break give two windows."""
		rule = WorkingHoursRule(1, 540, 1020, breaks=[Break(720, 780)])
		self.assertEqual(compute_windows(rule), [window(540, 720), window(780, 1020)])

	def test_partial_constraint(self):
		"""Test that a 14-15 closure is cut out of the day."""
		rule = WorkingHoursRule(1, 540, 1020)
		constraint = DateConstraint(TARGET, 840, 900, reason="staff meeting")
		self.assertEqual(compute_windows(rule, [constraint]), [window(540, 840), window(900, 1020)])

	def test_full_day_constraint_closes_everything(self):
		"""Test that a 00:00-24:00 closure leaves no windows."""
		rule = WorkingHoursRule(1, 540, 1020, breaks=[Break(720, 780)])
		self.assertEqual(compute_windows(rule, [DateConstraint(TARGET, 0, 1440)]), [])

	def test_provider_constraint_applies_only_to_that_provider(self):
		"""Test that a provider closure does not affect others."""
		rule = WorkingHoursRule(1, 540, 1020)
		constraint = DateConstraint(TARGET, 540, 720, provider_id="dana")

		self.assertEqual(compute_windows(rule, [constraint], "dana"), [window(720, 1020)])
		self.assertEqual(compute_windows(rule, [constraint], "noa"), [window(540, 1020)])
		self.assertEqual(compute_windows(rule, [constraint], None), [window(540, 1020)])

	def test_salon_constraint_applies_to_every_provider(self):
		"""Test that a salon-wide closure affects providers too."""
		rule = WorkingHoursRule(1, 540, 1020, provider_id="dana")
		constraint = DateConstraint(TARGET, 540, 720)
		self.assertEqual(compute_windows(rule, [constraint], "dana"), [window(720, 1020)])

	def test_malformed_rule_degrades_to_nothing(self):
		"""Test that start >= end yields no windows instead of raising."""
		rule = WorkingHoursRule(1, 1020, 540)
		with self.assertLogs("salon_scheduling.salon_scheduling.scheduling.availability", level="WARNING"):
			self.assertEqual(compute_windows(rule), [])

	def test_rule_window_rejects_inverted_hours(self):
		"""Test that rule_window raises InvalidWindow for start >= end."""
		with self.assertRaises(InvalidWindow) as ctx:
			rule_window(WorkingHoursRule(1, 720, 720))
		self.assertEqual((ctx.exception.start, ctx.exception.end), (720, 720))

		self.assertEqual(rule_window(WorkingHoursRule(1, 540, 720)), window(540, 720))

	def test_no_rule_is_closed(self):
		"""Test that a missing rule yields no windows."""
		self.assertEqual(compute_windows(None), [])

	def test_windows_are_sorted_disjoint_and_non_empty(self):
		"""Test that any combination of breaks and constraints gives valid windows."""
		rng = random.Random(42)

		for _ in range(300):
			start = rng.randrange(0, 1200, 15)
			end = rng.randrange(start, 1441, 15)
			breaks = []
			for _ in range(rng.randint(0, 3)):
				b_start = rng.randrange(0, 1440, 5)
				breaks.append(Break(b_start, min(1440, b_start + rng.randrange(0, 180, 5))))
			constraints = []
			for _ in range(rng.randint(0, 3)):
				c_start = rng.randrange(0, 1440, 5)
				constraints.append(DateConstraint(
					TARGET, c_start, min(1440, c_start + rng.randrange(0, 300, 5)),
					provider_id=rng.choice([None, "dana"])
				))

			windows = compute_windows(WorkingHoursRule(1, start, end, breaks=breaks), constraints, "dana")

			for w in windows:
				self.assertLess(w["start"], w["end"])
				self.assertGreaterEqual(w["start"], start)
				self.assertLessEqual(w["end"], end)
			for current, following in zip(windows, windows[1:]):
				self.assertLess(current["end"], following["start"])


class TestResolveWindows(unittest.TestCase):
	"""Tests for the store-backed resolve_windows."""

	def setUp(self):
		self.store = MemoryStore()
		self.weekday = day_of_week(TARGET)
		self.store.add_rule(WorkingHoursRule(self.weekday, 540, 1020, breaks=[Break(720, 780)]))

	def test_resolve_windows(self):
		"""Test that the target date resolves through the store."""
		self.assertEqual(
			resolve_windows(self.store, TARGET),
			[window(540, 720), window(780, 1020)]
		)

	def test_resolve_windows_applies_date_constraints(self):
		"""Test that constraints on the date are applied, other dates are not."""
		self.store.add_constraint(DateConstraint(TARGET, 540, 600))
		self.store.add_constraint(DateConstraint(TARGET + timedelta(days=7), 0, 1440))

		self.assertEqual(
			resolve_windows(self.store, TARGET),
			[window(600, 720), window(780, 1020)]
		)

	def test_closed_day_returns_empty_list(self):
		"""Test that a weekday without rules resolves to no windows."""
		self.assertEqual(resolve_windows(self.store, TARGET + timedelta(days=1)), [])

	def test_get_effective_availability_omits_closed_days(self):
		"""Test that the range result only contains open dates."""
		result = get_effective_availability(self.store, TARGET, TARGET + timedelta(days=7))

		self.assertEqual(sorted(result), [TARGET.isoformat(), (TARGET + timedelta(days=7)).isoformat()])
		self.assertEqual(result[TARGET.isoformat()], [window(540, 720), window(780, 1020)])


if __name__ == "__main__":
	unittest.main()
