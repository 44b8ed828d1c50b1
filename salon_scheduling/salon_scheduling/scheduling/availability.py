"""
Availability Service

Resolves the open time windows of a date for the salon or one provider,
considering:
- Working Hours Rules (weekly template, provider-specific or salon-wide)
- Breaks of that rule
- Date Constraints (full or partial closures, salon-wide or per provider)
"""

import logging
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from . import intervals
from .errors import InvalidWindow, NoProviderHours
from .intervals import Window
from .models import DateConstraint, WorkingHoursRule, day_of_week
from .store import SchedulingStore

logger = logging.getLogger(__name__)


def select_rule(
	rules: Iterable[WorkingHoursRule],
	weekday: int,
	provider_id: Optional[str] = None,
	strict: bool = False,
) -> Optional[WorkingHoursRule]:
	"""
	Pick the active rule for a weekday.

	The provider-specific rule wins; otherwise the salon-wide rule
	(provider_id = None) applies; otherwise the day is closed. A provider
	rule that exists but is inactive closes the day for that provider.

	Args:
		rules: candidate rules
		weekday: 0 = Sunday ... 6 = Saturday
		provider_id: provider, or None for the salon-wide schedule
		strict: raise NoProviderHours instead of returning None

	Returns:
		WorkingHoursRule or None
	"""
	day_rules = [r for r in rules if r.day_of_week == weekday]

	rule = None
	provider_rule = None
	if provider_id:
		provider_rule = next((r for r in day_rules if r.provider_id == provider_id), None)

	if provider_rule is not None:
		rule = provider_rule if provider_rule.active else None
	else:
		rule = next((r for r in day_rules if r.provider_id is None and r.active), None)

	if rule is None and strict:
		raise NoProviderHours(weekday, provider_id)
	return rule


def rule_window(rule: WorkingHoursRule) -> Window:
	"""
	Opening range of a rule.

	Raises:
		InvalidWindow: if rule.start >= rule.end
	"""
	if rule.start >= rule.end:
		raise InvalidWindow(rule.start, rule.end)
	return intervals.window(rule.start, rule.end)


def constraint_blocks(constraints: Iterable[DateConstraint], provider_id: Optional[str] = None) -> List[Window]:
	"""Closed ranges from the constraints that apply to provider_id."""
	return [
		intervals.window(c.start, c.end)
		for c in constraints
		if c.applies_to(provider_id)
	]


def compute_windows(
	rule: Optional[WorkingHoursRule],
	constraints: Iterable[DateConstraint] = (),
	provider_id: Optional[str] = None,
) -> List[Window]:
	"""
	Turn a rule plus the date's constraints into open windows.

	Algorithm:
		1. Start from [rule.start, rule.end)
		2. Subtract each break
		3. Subtract each applicable constraint
		4. Drop degenerate pieces, sort, keep disjoint

	Returns:
		list[dict]: [{"start": int, "end": int}, ...] sorted ascending
	"""
	if rule is None:
		return []

	try:
		windows = [rule_window(rule)]
	except InvalidWindow as e:
		logger.warning("Ignoring malformed working hours rule %s (day %s): %s", rule.name, rule.day_of_week, e)
		return []

	breaks = [intervals.window(b.start, b.end) for b in rule.breaks]
	windows = intervals.subtract_all(windows, breaks)
	windows = intervals.subtract_all(windows, constraint_blocks(constraints, provider_id))

	if not windows:
		logger.debug("All windows of rule %s closed by breaks/constraints", rule.name)

	return intervals.normalize(windows)


def resolve_windows(store: SchedulingStore, target_date: date, provider_id: Optional[str] = None) -> List[Window]:
	"""
	Open windows for a date, read through the store.

	Missing or malformed rules yield [] instead of raising.
	"""
	weekday = day_of_week(target_date)
	try:
		rule = select_rule(store.get_rules(weekday), weekday, provider_id, strict=True)
	except NoProviderHours as e:
		logger.debug(str(e))
		return []

	return compute_windows(rule, store.get_constraints(target_date), provider_id)


def get_effective_availability(
	store: SchedulingStore,
	start_date: date,
	end_date: date,
	provider_id: Optional[str] = None,
) -> Dict[str, List[Window]]:
	"""
	Open windows for every date in [start_date, end_date].

	Returns:
		dict: {"2026-01-15": [{"start": 540, "end": 720}, ...], ...}
		Closed days are omitted.
	"""
	result = {}
	current_date = start_date

	while current_date <= end_date:
		windows = resolve_windows(store, current_date, provider_id)
		if windows:
			result[current_date.isoformat()] = windows
		current_date += timedelta(days=1)

	return result
