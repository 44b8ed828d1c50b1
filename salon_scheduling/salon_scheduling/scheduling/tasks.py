"""
Scheduled Tasks

Background tasks that run periodically:
- seed_upcoming_days: Seeds available slots (and recurring claims) ahead
"""

import frappe

from .frappe_store import FrappeStore, load_config
from .seeder import prune_day, seed_day, seed_targets
from .slots import local_now


def seed_upcoming_days() -> int:
	"""
	Seed the next `seed_horizon_days` days for the salon and every provider.
	Runs daily (configured in hooks.py).

	Algorithm:
		1. Load Salon Scheduling Settings
		2. For each (date, provider) from today in the business timezone:
			- Prune stale placeholders (only if prune_stale_placeholders is on)
			- Seed the day's grid and claim recurring rows
		3. A failing date/provider is logged and skipped
		4. Log totals and commit

	Returns:
		int: Number of slot rows inserted
	"""
	config = load_config()
	store = FrappeStore()
	today = local_now(config.timezone).date()

	inserted = 0
	claimed = 0
	pruned = 0

	for target_date, provider_id in seed_targets(store, today, config.seed_horizon_days):
		try:
			with store.atomic():
				if config.prune_stale_placeholders:
					pruned += prune_day(store, config, target_date, provider_id)
				report = seed_day(store, config, target_date, provider_id)

			inserted += report["inserted"]
			claimed += report["claimed"]

		except Exception as e:
			frappe.log_error(
				message=f"Error seeding {target_date} ({provider_id or 'salon'}): {str(e)}",
				title="Salon Slot Seeding Failed"
			)
			# Continue with the remaining days
			continue

	if inserted or claimed or pruned:
		frappe.logger("salon_scheduling").info(
			f"seed_upcoming_days: {inserted} slots inserted, "
			f"{claimed} recurring claimed, {pruned} stale pruned"
		)

	frappe.db.commit()

	return inserted
