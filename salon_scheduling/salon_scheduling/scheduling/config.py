"""
Scheduling Configuration

Engine-side view of the "Salon Scheduling Settings" single DocType.
The Frappe layer loads the settings (see frappe_store.load_config) and
passes a SchedulingConfig to the engine functions.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

MAX_BUFFER_MINUTES = 180


def _int(value: Any, default: int) -> int:
	try:
		if value is None or value == "":
			return default
		return int(value)
	except (TypeError, ValueError):
		return default


@dataclass(frozen=True)
class SchedulingConfig:
	buffer_minutes: int = 0
	default_slot_duration: int = 60
	default_service_duration: int = 60
	timezone: str = "UTC"
	seed_horizon_days: int = 14
	nearest_slots_days: int = 14
	nearest_slots_limit: int = 3
	notify_service_waitlist_on_cancel: bool = True
	prune_stale_placeholders: bool = False

	@classmethod
	def from_mapping(cls, values: Optional[Mapping[str, Any]] = None) -> "SchedulingConfig":
		"""
		Build a config from raw settings values.

		Missing or non-positive durations fall back to defaults; the buffer
		is clamped to 0..180 minutes.
		"""
		values = values or {}
		defaults = cls()

		def positive(key: str) -> int:
			value = _int(values.get(key), getattr(defaults, key))
			return value if value > 0 else getattr(defaults, key)

		buffer_minutes = _int(values.get("buffer_minutes"), 0)
		buffer_minutes = max(0, min(MAX_BUFFER_MINUTES, buffer_minutes))

		notify_flag = values.get("notify_service_waitlist_on_cancel")
		prune_flag = values.get("prune_stale_placeholders")

		return cls(
			buffer_minutes=buffer_minutes,
			default_slot_duration=positive("default_slot_duration"),
			default_service_duration=positive("default_service_duration"),
			timezone=values.get("timezone") or defaults.timezone,
			seed_horizon_days=positive("seed_horizon_days"),
			nearest_slots_days=positive("nearest_slots_days"),
			nearest_slots_limit=positive("nearest_slots_limit"),
			notify_service_waitlist_on_cancel=(
				defaults.notify_service_waitlist_on_cancel if notify_flag is None else bool(_int(notify_flag, 1))
			),
			prune_stale_placeholders=(
				defaults.prune_stale_placeholders if prune_flag is None else bool(_int(prune_flag, 0))
			),
		)
