"""
Interval Algebra

Pure helpers shared by window resolution, slot generation, seeding,
booking guards and waitlist matching.

Times of day are integer minutes since midnight. A window is a dict
{"start": int, "end": int} describing the half-open range [start, end).
"""

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Dict, Iterable, List, Optional, Tuple, Union

MINUTES_PER_DAY = 24 * 60

TIME_PERIODS = ("morning", "afternoon", "evening", "any")

# Waitlist preference buckets (minute ranges)
_TIME_PERIOD_RANGES = {
	"morning": (7 * 60, 12 * 60),
	"afternoon": (12 * 60, 16 * 60),
	"evening": (16 * 60, 20 * 60),
	"any": (7 * 60, 20 * 60),
}

Window = Dict[str, int]


def to_minutes(value: Union[time, timedelta, str, int]) -> int:
	"""
	Convert a time-of-day value to minutes since midnight.

	Args:
		value: time, timedelta (Frappe returns TIME columns as timedelta),
			"HH:MM" / "HH:MM:SS" string, or an int already in minutes

	Returns:
		int: minutes since midnight (seconds are truncated)

	Raises:
		ValueError: if the value cannot be interpreted
	"""
	if isinstance(value, bool):
		raise ValueError(f"Cannot convert {value!r} to minutes")
	if isinstance(value, int):
		minutes = value
	elif isinstance(value, time):
		minutes = value.hour * 60 + value.minute
	elif isinstance(value, timedelta):
		minutes = int(value.total_seconds() // 60)
	elif isinstance(value, datetime):
		minutes = value.hour * 60 + value.minute
	elif isinstance(value, str):
		parts = value.strip().split(":")
		if len(parts) < 2 or not all(p.strip().isdigit() for p in parts[:2]):
			raise ValueError(f"Invalid time string: {value!r}")
		hours, mins = int(parts[0]), int(parts[1])
		if mins >= 60:
			raise ValueError(f"Invalid time string: {value!r}")
		minutes = hours * 60 + mins
	else:
		raise ValueError(f"Cannot convert {type(value)} to minutes")

	if minutes < 0 or minutes > MINUTES_PER_DAY:
		raise ValueError(f"Time out of range: {value!r}")
	return minutes


def format_hhmm(minutes: int) -> str:
	"""Format minutes since midnight as HH:MM. 1440 renders as 24:00, never wraps."""
	return f"{minutes // 60:02d}:{minutes % 60:02d}"


def to_time(minutes: int) -> time:
	if minutes >= MINUTES_PER_DAY:
		return time(23, 59)
	return time(minutes // 60, minutes % 60)


def window(start: int, end: int) -> Window:
	return {"start": start, "end": end}


def is_valid(w: Window) -> bool:
	return w["start"] < w["end"]


def overlaps(a: Window, b: Window) -> bool:
	"""Half-open overlap test: max(a.start, b.start) < min(a.end, b.end)."""
	return max(a["start"], b["start"]) < min(a["end"], b["end"])


def contains(outer: Window, inner: Window) -> bool:
	return outer["start"] <= inner["start"] and inner["end"] <= outer["end"]


def interval_subtract(interval: Window, block: Window) -> List[Window]:
	"""
	Subtract a block from an interval.

	Args:
		interval: window to cut
		block: range to remove

	Returns:
		list: 0, 1 or 2 windows; zero-length and inverted pieces are dropped
	"""
	if not overlaps(interval, block):
		return [interval] if is_valid(interval) else []

	pieces = []
	if interval["start"] < block["start"]:
		pieces.append(window(interval["start"], block["start"]))
	if block["end"] < interval["end"]:
		pieces.append(window(block["end"], interval["end"]))
	return [p for p in pieces if is_valid(p)]


def subtract_all(windows: Iterable[Window], blocks: Iterable[Window]) -> List[Window]:
	"""Subtract every block from every window."""
	result = [w for w in windows if is_valid(w)]
	for block in blocks:
		if not is_valid(block):
			continue
		next_result = []
		for w in result:
			next_result.extend(interval_subtract(w, block))
		result = next_result
	return result


def merge_intervals(windows: Iterable[Window]) -> List[Window]:
	"""
	Merge overlapping or adjacent windows.

	Returns new dicts; the input is not mutated.
	"""
	ordered = sorted((dict(w) for w in windows if is_valid(w)), key=lambda w: (w["start"], w["end"]))
	if not ordered:
		return []

	merged = [ordered[0]]
	for current in ordered[1:]:
		last = merged[-1]
		if current["start"] <= last["end"]:
			if current["end"] > last["end"]:
				last["end"] = current["end"]
		else:
			merged.append(current)
	return merged


def normalize(windows: Iterable[Window]) -> List[Window]:
	"""Sorted, pairwise disjoint, non-degenerate windows."""
	return merge_intervals(windows)


def newly_opened(old_windows: Iterable[Window], new_windows: Iterable[Window]) -> List[Window]:
	"""Windows present in new_windows that were closed in old_windows."""
	return normalize(subtract_all(normalize(new_windows), normalize(old_windows)))


def time_period_for(minute: int) -> str:
	"""
	Bucket a start time into a waitlist time period.

	Times outside 07:00-20:00 fall into "any".
	"""
	for period in ("morning", "afternoon", "evening"):
		start, end = _TIME_PERIOD_RANGES[period]
		if start <= minute < end:
			return period
	return "any"


def time_period_range(period: Optional[str]) -> Window:
	start, end = _TIME_PERIOD_RANGES.get(period or "any", _TIME_PERIOD_RANGES["any"])
	return window(start, end)


@dataclass(frozen=True)
class RuleViolation:
	"""One problem with a weekly rule: a message template plus its values."""

	template: str
	values: Tuple[str, ...] = ()

	def __str__(self) -> str:
		return self.template.format(*self.values)


def rule_violations(start: int, end: int, breaks: Iterable[Tuple[int, int]]) -> List[RuleViolation]:
	"""
	Check the shape of a weekly rule.

	Returns the problems found; an empty list means the rule is valid:
	start < end, each break inside [start, end], breaks pairwise disjoint.
	Templates use {0}-style placeholders so callers can translate them.
	"""
	problems = []
	if start >= end:
		problems.append(RuleViolation(
			"Start time ({0}) must be before end time ({1})", (format_hhmm(start), format_hhmm(end))
		))

	ordered = sorted(breaks)
	for idx, (b_start, b_end) in enumerate(ordered, 1):
		span = f"{format_hhmm(b_start)}-{format_hhmm(b_end)}"
		if b_start >= b_end:
			problems.append(RuleViolation("Break {0}: start must be before end", (span,)))
		elif b_start < start or b_end > end:
			problems.append(RuleViolation(
				"Break {0} is outside working hours {1}", (span, f"{format_hhmm(start)}-{format_hhmm(end)}")
			))
		if idx > 1:
			prev_start, prev_end = ordered[idx - 2]
			if prev_end > b_start:
				problems.append(RuleViolation(
					"Breaks {0} and {1} overlap", (f"{format_hhmm(prev_start)}-{format_hhmm(prev_end)}", span)
				))
	return problems
