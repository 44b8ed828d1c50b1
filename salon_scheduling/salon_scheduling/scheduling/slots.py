"""
Slot Generation Service

Generates discrete offerable start times for booking screens, considering:
- Resolved availability windows
- Service duration
- Buffer between appointments
- Existing bookings (busy intervals)
- Current time (today only)
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

import pytz

from . import intervals
from .availability import resolve_windows
from .config import SchedulingConfig
from .intervals import Window
from .models import SlotRow
from .store import SchedulingStore

logger = logging.getLogger(__name__)


def generate_slots(
	windows: Iterable[Window],
	duration_minutes: int,
	buffer_minutes: int = 0,
	busy: Iterable[Window] = (),
	now_cutoff: Optional[int] = None,
) -> List[int]:
	"""
	Generate offerable start times.

	Slots are anchored to each window's start, not to a wall-clock grid.

	Args:
		windows: open windows for the date
		duration_minutes: service duration
		buffer_minutes: idle minutes required before/after any busy interval
		busy: occupied intervals of existing bookings
		now_cutoff: minute of day; earlier start times are dropped (today only)

	Returns:
		list[int]: start times in minutes, ascending

	Algorithm, per window with cursor t = window.start:
		1. t + duration > window.end -> next window
		2. the latest busy interval ending at or before t ends less than
		   buffer minutes before t -> t = busy.end + buffer
		3. [t, t + duration) overlaps a busy interval -> t = busy.end
		4. the next busy interval starts before t + duration + buffer
		   -> t = busy.start + buffer
		5. emit t; t += duration
	"""
	try:
		duration = int(duration_minutes)
		buffer = max(0, int(buffer_minutes or 0))
	except (TypeError, ValueError):
		logger.warning("Invalid duration/buffer: %r / %r", duration_minutes, buffer_minutes)
		return []

	if duration <= 0:
		return []

	busy_list = sorted(
		(b for b in busy if intervals.is_valid(b)),
		key=lambda b: (b["start"], b["end"])
	)

	slots = []
	for w in intervals.normalize(windows):
		t = w["start"]

		while t + duration <= w["end"]:
			candidate = intervals.window(t, t + duration)

			prev_end = max((b["end"] for b in busy_list if b["end"] <= t), default=None)
			if prev_end is not None and t < prev_end + buffer:
				t = prev_end + buffer
				continue

			overlapped = next((b for b in busy_list if intervals.overlaps(b, candidate)), None)
			if overlapped is not None:
				t = overlapped["end"]
				continue

			next_start = min((b["start"] for b in busy_list if b["start"] >= t), default=None)
			if next_start is not None and next_start < t + duration + buffer:
				t = next_start + buffer
				continue

			slots.append(t)
			t += duration

	if now_cutoff is not None:
		slots = [s for s in slots if s >= now_cutoff]

	return slots


def busy_intervals(rows: Iterable[SlotRow], default_duration: int = 60) -> List[Window]:
	"""Occupied ranges of the booked rows, sorted by start."""
	busy = []
	for row in rows:
		if row.is_available:
			continue
		duration = row.duration_minutes if row.duration_minutes and row.duration_minutes > 0 else default_duration
		busy.append(intervals.window(row.time, row.time + duration))
	return sorted(busy, key=lambda b: (b["start"], b["end"]))


def _get_timezone(tz_name: Optional[str]):
	try:
		return pytz.timezone(tz_name or "UTC")
	except pytz.UnknownTimeZoneError:
		logger.warning("Invalid timezone '%s', using UTC", tz_name)
		return pytz.UTC


def local_now(tz_name: Optional[str], now: Optional[datetime] = None) -> datetime:
	"""Current time in the business timezone. A naive `now` is taken as local time."""
	tz = _get_timezone(tz_name)
	if now is None:
		return datetime.now(tz)
	if now.tzinfo is None:
		return tz.localize(now)
	return now.astimezone(tz)


def now_cutoff(target_date: date, tz_name: Optional[str], now: Optional[datetime] = None) -> Optional[int]:
	"""
	Minute-of-day cutoff for target_date.

	Returns:
		int: current minute of day if target_date is today in the business timezone
		None: for any other date
	"""
	current = local_now(tz_name, now)
	if current.date() != target_date:
		return None
	return current.hour * 60 + current.minute


def resolve_duration(
	store: SchedulingStore,
	config: SchedulingConfig,
	duration_minutes: Optional[int] = None,
	service_name: Optional[str] = None,
) -> int:
	"""Explicit duration, else the service's duration, else the configured default."""
	if duration_minutes and int(duration_minutes) > 0:
		return int(duration_minutes)
	service_duration = store.get_service_duration(service_name) if service_name else None
	if service_duration and service_duration > 0:
		return service_duration
	return config.default_service_duration


def get_offerable_slots(
	store: SchedulingStore,
	config: SchedulingConfig,
	target_date: date,
	provider_id: Optional[str] = None,
	duration_minutes: Optional[int] = None,
	service_name: Optional[str] = None,
	now: Optional[datetime] = None,
) -> List[int]:
	"""
	Offerable start times for one date, read through the store.

	Past dates yield []. Today's times before "now" are dropped.
	"""
	if target_date < local_now(config.timezone, now).date():
		return []

	duration = resolve_duration(store, config, duration_minutes, service_name)
	windows = resolve_windows(store, target_date, provider_id)
	if not windows:
		return []

	busy = busy_intervals(store.get_slots(target_date, provider_id), config.default_service_duration)
	return generate_slots(
		windows,
		duration,
		config.buffer_minutes,
		busy,
		now_cutoff(target_date, config.timezone, now),
	)


def find_nearest_slots(
	store: SchedulingStore,
	config: SchedulingConfig,
	provider_id: Optional[str] = None,
	duration_minutes: Optional[int] = None,
	service_name: Optional[str] = None,
	from_date: Optional[date] = None,
	days: Optional[int] = None,
	limit: Optional[int] = None,
	now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
	"""
	Earliest offerable slots over the next days.

	Returns:
		list[dict]: [{"date": date, "time": int}, ...] in chronological order,
		at most `limit` items
	"""
	days = days or config.nearest_slots_days
	limit = limit or config.nearest_slots_limit
	start = from_date or local_now(config.timezone, now).date()

	found = []
	for offset in range(days + 1):
		target_date = start + timedelta(days=offset)
		for slot_time in get_offerable_slots(
			store, config, target_date, provider_id, duration_minutes, service_name, now
		):
			found.append({"date": target_date, "time": slot_time})
			if len(found) >= limit:
				return found
	return found
