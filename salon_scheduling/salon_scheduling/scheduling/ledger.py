"""
Booking Ledger

Single implementation of the booking protocol, shared by client bookings,
admin-created bookings and recurring claims.

Conflict resolution is optimistic and relies only on the store:
	1. conditional update of the available row at (date, time, provider)
	2. if nothing matched and no row exists, insert a booked row; the
	   (date, time, provider) unique key rejects a concurrent insert
Losing either race raises SlotTaken. No application-level locks are used.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Union

from . import intervals
from .config import SchedulingConfig
from .errors import ConstraintConflict, DuplicateSlot, SlotTaken
from .models import ClientInfo, SlotRow
from .slots import resolve_duration
from .store import SchedulingStore

logger = logging.getLogger(__name__)

BOOKED = "booked"
DUPLICATE_SAME_DAY = "duplicate_same_day"
RELEASED = "released"
NOT_FOUND = "not_found"

SAME_DAY_POLICIES = ("ask", "replace", "add")


@dataclass
class BookingResult:
	status: str
	slot: Optional[SlotRow] = None
	existing: Optional[SlotRow] = None
	replaced: Optional[SlotRow] = None

	@property
	def is_booked(self) -> bool:
		return self.status == BOOKED


@dataclass
class CancelResult:
	status: str
	slot: Optional[SlotRow] = None

	@property
	def is_released(self) -> bool:
		return self.status == RELEASED


class BookingLedger:
	"""
	Claims and releases slots.

	Usage:
		ledger = BookingLedger(store, config)
		result = ledger.book_slot(day, "10:00", None, 45, client)
		if result.status == "duplicate_same_day":
			# ask the client: replace result.existing or book an additional slot
			result = ledger.book_slot(day, "10:00", None, 45, client, same_day_policy="replace")
	"""

	def __init__(self, store: SchedulingStore, config: Optional[SchedulingConfig] = None):
		self.store = store
		self.config = config or SchedulingConfig()

	def book_slot(
		self,
		target_date: date,
		slot_time: Union[int, str],
		provider_id: Optional[str],
		duration_minutes: Optional[int],
		client: ClientInfo,
		same_day_policy: str = "ask",
	) -> BookingResult:
		"""
		Book (date, time, provider) for a client.

		Args:
			target_date: appointment date
			slot_time: start time (minutes or "HH:MM")
			provider_id: provider, or None for the salon-wide schedule
			duration_minutes: service duration; None looks up the service
			client: client identity and service
			same_day_policy: what to do if the client already has an
				appointment that day:
				- "ask": return a duplicate_same_day result, change nothing
				- "replace": cancel the existing appointment, then book
				- "add": book an additional appointment

		Returns:
			BookingResult: status "booked" or "duplicate_same_day"

		Raises:
			SlotTaken: the slot was booked by someone else
			ConstraintConflict: the time falls inside a closed constraint
			PersistenceError: store failure; no partial mutation is left
		"""
		if same_day_policy not in SAME_DAY_POLICIES:
			raise ValueError(f"Unknown same_day_policy: {same_day_policy}")

		slot_time = intervals.to_minutes(slot_time)
		duration = resolve_duration(self.store, self.config, duration_minutes, client.service_name)

		existing = self.find_same_day(target_date, client.client_phone)
		if existing and same_day_policy == "ask":
			return BookingResult(status=DUPLICATE_SAME_DAY, existing=existing[0])

		if existing and same_day_policy == "replace":
			with self.store.atomic():
				released = self.store.release(existing[0].slot_id)
				row = self._book(target_date, slot_time, provider_id, duration, client)
			logger.info(
				"Replaced %s with %s %s for %s",
				existing[0].slot_id, target_date, intervals.format_hhmm(slot_time), client.client_phone
			)
			return BookingResult(status=BOOKED, slot=row, replaced=released)

		row = self._book(target_date, slot_time, provider_id, duration, client)
		return BookingResult(status=BOOKED, slot=row)

	def claim_available(
		self,
		target_date: date,
		slot_time: int,
		provider_id: Optional[str],
		client: ClientInfo,
		duration_minutes: Optional[int] = None,
	) -> Optional[SlotRow]:
		"""
		Book the row only if it exists and is still available. Never inserts.

		The same constraint and overlap guards as book_slot apply.

		Raises:
			ConstraintConflict: the time falls inside a closed range
			SlotTaken: an existing booking overlaps the requested range

		Returns:
			SlotRow, or None if no available row exists at that time
		"""
		duration = resolve_duration(self.store, self.config, duration_minutes, client.service_name)
		requested = intervals.window(slot_time, slot_time + duration)
		self._check_constraints(target_date, requested, provider_id)
		self._check_overlap(target_date, requested, provider_id)

		return self.store.claim_available(target_date, slot_time, provider_id, client, duration)

	def cancel_slot(self, slot_id: str) -> CancelResult:
		"""
		Release a booked slot back to an available placeholder.

		The row is kept (client fields cleared) so the time can be re-offered.
		"""
		released = self.store.release(slot_id)
		if released is None:
			return CancelResult(status=NOT_FOUND)

		logger.info(
			"Released %s (%s %s)",
			slot_id, released.date, intervals.format_hhmm(released.time)
		)
		return CancelResult(status=RELEASED, slot=released)

	def find_same_day(self, target_date: date, client_phone: Optional[str]) -> List[SlotRow]:
		"""Non-cancelled appointments the client already holds on that date."""
		if not client_phone:
			return []
		return self.store.get_client_bookings(target_date, client_phone)

	# ===== INTERNALS =====

	def _book(
		self,
		target_date: date,
		slot_time: int,
		provider_id: Optional[str],
		duration: int,
		client: ClientInfo,
	) -> SlotRow:
		requested = intervals.window(slot_time, slot_time + duration)
		self._check_constraints(target_date, requested, provider_id)
		self._check_overlap(target_date, requested, provider_id)

		row = self.store.claim_available(target_date, slot_time, provider_id, client, duration)
		if row is not None:
			logger.info(
				"Booked existing slot %s (%s %s) for %s",
				row.slot_id, target_date, intervals.format_hhmm(slot_time), client.client_phone
			)
			return row

		if self.store.find_slot(target_date, slot_time, provider_id) is not None:
			raise SlotTaken(target_date, intervals.format_hhmm(slot_time), provider_id)

		try:
			row = self.store.insert_booked(target_date, slot_time, provider_id, client, duration)
		except DuplicateSlot:
			raise SlotTaken(target_date, intervals.format_hhmm(slot_time), provider_id)

		logger.info(
			"Booked new slot %s (%s %s) for %s",
			row.slot_id, target_date, intervals.format_hhmm(slot_time), client.client_phone
		)
		return row

	def _check_constraints(self, target_date: date, requested, provider_id: Optional[str]) -> None:
		for constraint in self.store.get_constraints(target_date):
			if not constraint.applies_to(provider_id):
				continue
			if intervals.overlaps(requested, intervals.window(constraint.start, constraint.end)):
				raise ConstraintConflict(
					target_date,
					intervals.format_hhmm(requested["start"]),
					provider_id,
					message=f"{target_date} {intervals.format_hhmm(requested['start'])} is closed"
					+ (f" ({constraint.reason})" if constraint.reason else ""),
				)

	def _check_overlap(self, target_date: date, requested, provider_id: Optional[str]) -> None:
		for row in self.store.get_slots(target_date, provider_id):
			if row.is_available:
				continue
			duration = row.duration_minutes or self.config.default_service_duration
			if intervals.overlaps(requested, intervals.window(row.time, row.time + duration)):
				raise SlotTaken(target_date, intervals.format_hhmm(requested["start"]), provider_id)
