"""
Slot Seeder

Materializes available slot rows for a date so booking screens and
recurring clients have rows to claim.

- seed_day: insert the day's grid as available rows, then claim the rows
  of standing (recurring) clients
- prune_day: administrative cleanup of placeholders that fell off the grid
- seed_range: seed_day over a horizon for the salon and every provider

Seeding is idempotent and safe under overlapping runs: inserts ignore
existing (date, time, provider) keys and claims only match available rows.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from . import intervals
from .availability import compute_windows, day_of_week, select_rule
from .config import SchedulingConfig
from .errors import SlotTaken
from .intervals import Window
from .ledger import BookingLedger
from .models import WorkingHoursRule
from .store import SchedulingStore

logger = logging.getLogger(__name__)


def slot_grid(windows: Iterable[Window], duration_minutes: int) -> List[int]:
	"""
	Aligned slot starts across windows.

	Each window is walked from its start in steps of duration_minutes; a
	start is kept only if the whole slot fits before the window end.
	"""
	if not duration_minutes or duration_minutes <= 0:
		return []

	grid = []
	for w in intervals.normalize(windows):
		t = w["start"]
		while t + duration_minutes <= w["end"]:
			grid.append(t)
			t += duration_minutes
	return grid


def _day_plan(
	store: SchedulingStore,
	config: SchedulingConfig,
	target_date: date,
	provider_id: Optional[str],
) -> Tuple[Optional[WorkingHoursRule], List[Window], int]:
	weekday = day_of_week(target_date)
	rule = select_rule(store.get_rules(weekday), weekday, provider_id)
	windows = compute_windows(rule, store.get_constraints(target_date), provider_id)

	duration = config.default_slot_duration
	if rule is not None and rule.slot_duration_default and rule.slot_duration_default > 0:
		duration = rule.slot_duration_default
	return rule, windows, duration


def apply_recurring_rules(
	store: SchedulingStore,
	config: SchedulingConfig,
	target_date: date,
	provider_id: Optional[str] = None,
	ledger: Optional[BookingLedger] = None,
) -> int:
	"""
	Claim the rows of recurring clients for target_date.

	A rule is skipped when its row is missing or already booked, when a
	constraint closes the time, or when another booking overlaps it.

	Returns:
		int: number of rows claimed
	"""
	ledger = ledger or BookingLedger(store, config)
	claimed = 0

	for rule in store.get_recurring_rules(day_of_week(target_date), provider_id):
		if not rule.applies_on(target_date):
			continue

		try:
			row = ledger.claim_available(target_date, rule.time, provider_id, rule.client)
		except SlotTaken as e:
			logger.info("Recurring %s skipped on %s: %s", rule.name or rule.client_phone, target_date, e)
			continue

		if row is None:
			logger.debug(
				"Recurring %s skipped on %s at %s: no available row",
				rule.name or rule.client_phone, target_date, intervals.format_hhmm(rule.time)
			)
			continue

		claimed += 1
		logger.info(
			"Recurring %s claimed %s (%s %s)",
			rule.name or rule.client_phone, row.slot_id, target_date, intervals.format_hhmm(rule.time)
		)

	return claimed


def seed_day(
	store: SchedulingStore,
	config: SchedulingConfig,
	target_date: date,
	provider_id: Optional[str] = None,
) -> Dict[str, Any]:
	"""
	Seed one date for the salon or one provider.

	Algorithm:
		1. Resolve the day's windows
		2. Slot duration = rule.slot_duration_default, else the configured default
		3. Insert every aligned start as an available row, ignoring existing keys
		4. Claim the rows of recurring rules for that weekday/provider

	Returns:
		dict: {"inserted": int, "claimed": int, "windows": [...]}
	"""
	_rule, windows, duration = _day_plan(store, config, target_date, provider_id)

	inserted = 0
	grid = slot_grid(windows, duration)
	if grid:
		inserted = store.insert_available(target_date, grid, provider_id, duration)

	claimed = apply_recurring_rules(store, config, target_date, provider_id)

	if inserted or claimed:
		logger.info(
			"Seeded %s (%s): %s inserted, %s claimed",
			target_date, provider_id or "salon", inserted, claimed
		)

	return {"inserted": inserted, "claimed": claimed, "windows": windows}


def prune_day(
	store: SchedulingStore,
	config: SchedulingConfig,
	target_date: date,
	provider_id: Optional[str] = None,
) -> int:
	"""
	Delete available placeholders that no longer lie on the day's grid.

	Booked rows are never deleted.

	Returns:
		int: number of rows deleted
	"""
	_rule, windows, duration = _day_plan(store, config, target_date, provider_id)
	deleted = store.delete_available(target_date, provider_id, slot_grid(windows, duration))
	if deleted:
		logger.info("Pruned %s stale placeholders on %s (%s)", deleted, target_date, provider_id or "salon")
	return deleted


def seed_targets(
	store: SchedulingStore,
	start_date: date,
	days: int,
	provider_ids: Optional[Iterable[Optional[str]]] = None,
) -> Iterator[Tuple[date, Optional[str]]]:
	"""
	(date, provider_id) pairs to seed.

	Without explicit provider_ids: the salon-wide schedule plus every
	provider that has a working hours rule.
	"""
	if provider_ids is None:
		provider_ids = [None] + list(store.get_provider_ids())
	provider_ids = list(provider_ids)

	for offset in range(days):
		target_date = start_date + timedelta(days=offset)
		for provider_id in provider_ids:
			yield target_date, provider_id


def seed_range(
	store: SchedulingStore,
	config: SchedulingConfig,
	start_date: date,
	days: Optional[int] = None,
	provider_ids: Optional[Iterable[Optional[str]]] = None,
) -> Dict[str, int]:
	"""
	Seed `days` dates from start_date (default: config.seed_horizon_days).

	Stale placeholders are pruned first when prune_stale_placeholders is on.

	Returns:
		dict: {"inserted": int, "claimed": int, "pruned": int}
	"""
	totals = {"inserted": 0, "claimed": 0, "pruned": 0}

	for target_date, provider_id in seed_targets(
		store, start_date, days or config.seed_horizon_days, provider_ids
	):
		if config.prune_stale_placeholders:
			totals["pruned"] += prune_day(store, config, target_date, provider_id)
		report = seed_day(store, config, target_date, provider_id)
		totals["inserted"] += report["inserted"]
		totals["claimed"] += report["claimed"]

	return totals
