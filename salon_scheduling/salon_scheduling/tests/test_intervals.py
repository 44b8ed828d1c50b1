"""
Tests for scheduling/intervals.py

Tests time parsing and the interval algebra shared by the engine.
"""

import unittest
from datetime import time, timedelta

from salon_scheduling.salon_scheduling.scheduling.intervals import (
	format_hhmm,
	interval_subtract,
	merge_intervals,
	newly_opened,
	normalize,
	overlaps,
	rule_violations,
	subtract_all,
	time_period_for,
	time_period_range,
	to_minutes,
	window,
)


class TestTimeParsing(unittest.TestCase):
	"""Tests for to_minutes / format_hhmm."""

	def test_to_minutes_accepts_supported_types(self):
		"""Test that time, timedelta, strings and ints convert to minutes."""
		self.assertEqual(to_minutes(time(9, 30)), 570)
		self.assertEqual(to_minutes(timedelta(hours=9, minutes=30)), 570)
		self.assertEqual(to_minutes("09:30"), 570)
		self.assertEqual(to_minutes("09:30:45"), 570)
		self.assertEqual(to_minutes(570), 570)
		self.assertEqual(to_minutes("24:00"), 1440)

	def test_to_minutes_rejects_invalid_values(self):
		"""Test that malformed or out of range values raise ValueError."""
		for value in ("9h30", "09:75", "25:00", "", None, True, -5, 1441, 3.5):
			with self.assertRaises(ValueError, msg=repr(value)):
				to_minutes(value)

	def test_format_hhmm(self):
		"""Test that minutes format as zero-padded HH:MM without wrapping."""
		self.assertEqual(format_hhmm(0), "00:00")
		self.assertEqual(format_hhmm(545), "09:05")
		self.assertEqual(format_hhmm(1440), "24:00")


class TestIntervalAlgebra(unittest.TestCase):
	"""Tests for subtraction, merging and overlap."""

	def test_overlaps_is_half_open(self):
		"""Test that touching intervals do not overlap."""
		self.assertTrue(overlaps(window(540, 600), window(599, 660)))
		self.assertFalse(overlaps(window(540, 600), window(600, 660)))
		self.assertFalse(overlaps(window(600, 660), window(540, 600)))

	def test_subtract_block_outside_leaves_window_unchanged(self):
		"""Test that a block outside the window has no effect."""
		self.assertEqual(interval_subtract(window(540, 720), window(780, 840)), [window(540, 720)])
		self.assertEqual(interval_subtract(window(540, 720), window(720, 780)), [window(540, 720)])

	def test_subtract_block_covering_removes_window(self):
		"""Test that a block covering the whole window removes it."""
		self.assertEqual(interval_subtract(window(540, 720), window(500, 800)), [])
		self.assertEqual(interval_subtract(window(540, 720), window(540, 720)), [])

	def test_subtract_block_straddling_edge_shrinks_window(self):
		"""Test that a block over one edge trims that edge."""
		self.assertEqual(interval_subtract(window(540, 720), window(500, 600)), [window(600, 720)])
		self.assertEqual(interval_subtract(window(540, 720), window(660, 800)), [window(540, 660)])

	def test_subtract_block_inside_splits_window(self):
		"""Test that a block strictly inside splits the window in two."""
		self.assertEqual(
			interval_subtract(window(540, 1020), window(720, 780)),
			[window(540, 720), window(780, 1020)]
		)

	def test_subtract_all_applies_every_block(self):
		"""Test that several blocks are subtracted in turn."""
		result = subtract_all([window(540, 1020)], [window(720, 780), window(840, 900), window(1000, 1100)])
		self.assertEqual(result, [window(540, 720), window(780, 840), window(900, 1000)])

	def test_merge_intervals_merges_overlapping_and_adjacent(self):
		"""Test that merge joins overlapping and touching windows without mutating input."""
		source = [window(600, 660), window(540, 600), window(650, 700), window(800, 900)]
		merged = merge_intervals(source)

		self.assertEqual(merged, [window(540, 700), window(800, 900)])
		self.assertEqual(source[0], window(600, 660))

	def test_normalize_drops_degenerate_windows(self):
		"""Test that zero-length and inverted windows are dropped."""
		self.assertEqual(
			normalize([window(700, 600), window(540, 540), window(540, 600)]),
			[window(540, 600)]
		)

	def test_newly_opened(self):
		"""Test that only time absent from the old windows is reported."""
		self.assertEqual(newly_opened([window(540, 1020)], [window(540, 1200)]), [window(1020, 1200)])
		self.assertEqual(newly_opened([window(540, 1020)], [window(600, 900)]), [])
		self.assertEqual(newly_opened([], [window(540, 600)]), [window(540, 600)])


class TestTimePeriods(unittest.TestCase):
	"""Tests for waitlist time period buckets."""

	def test_time_period_for(self):
		"""Test the morning/afternoon/evening/any buckets."""
		self.assertEqual(time_period_for(7 * 60), "morning")
		self.assertEqual(time_period_for(12 * 60 - 1), "morning")
		self.assertEqual(time_period_for(12 * 60), "afternoon")
		self.assertEqual(time_period_for(16 * 60), "evening")
		self.assertEqual(time_period_for(20 * 60), "any")
		self.assertEqual(time_period_for(6 * 60), "any")

	def test_time_period_range(self):
		"""Test the minute ranges of each bucket."""
		self.assertEqual(time_period_range("evening"), window(960, 1200))
		self.assertEqual(time_period_range("any"), window(420, 1200))
		self.assertEqual(time_period_range(None), window(420, 1200))


class TestRuleViolations(unittest.TestCase):
	"""Tests for working hours rule validation."""

	def test_valid_rule(self):
		"""Test that a well-formed rule has no violations."""
		self.assertEqual(rule_violations(540, 1020, [(720, 780), (900, 915)]), [])

	def test_start_after_end(self):
		"""Test that start >= end is reported."""
		problems = rule_violations(1020, 540, [])
		self.assertEqual(len(problems), 1)
		self.assertIn("must be before", str(problems[0]))

	def test_break_outside_hours(self):
		"""Test that a break outside working hours is reported."""
		problems = rule_violations(540, 1020, [(500, 560)])
		self.assertEqual(len(problems), 1)
		self.assertIn("outside working hours", str(problems[0]))

	def test_overlapping_breaks(self):
		"""Test that overlapping breaks are reported."""
		problems = rule_violations(540, 1020, [(720, 780), (750, 800)])
		self.assertEqual(len(problems), 1)
		self.assertIn("overlap", str(problems[0]))

	def test_violation_keeps_template_and_values(self):
		"""Test that a violation exposes an untranslated template and its values."""
		problem = rule_violations(1020, 540, [])[0]

		self.assertEqual(problem.template, "Start time ({0}) must be before end time ({1})")
		self.assertEqual(problem.values, ("17:00", "09:00"))
		self.assertEqual(str(problem), "Start time (17:00) must be before end time (09:00)")


if __name__ == "__main__":
	unittest.main()
