"""
Scheduling Store

Defines the persistence interface the engine relies on and an in-memory
implementation of it.

The engine only needs:
- conditional row updates filtered by a predicate (claim_available, release,
  mark_contacted)
- inserts guarded by the (date, time, provider) uniqueness constraint
  (insert_booked, insert_available)
- range queries by date and provider

FrappeStore (frappe_store.py) implements the interface on top of frappe.db.
MemoryStore is the reference implementation used by tests.
"""

import copy
import itertools
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .errors import DuplicateSlot
from .models import (
	ClientInfo,
	DateConstraint,
	NotificationRecord,
	RecurringRule,
	SlotRow,
	WaitlistEntry,
	WorkingHoursRule,
)


class SchedulingStore(ABC):
	"""
	Persistence interface for the scheduling engine.

	Every method is a single atomic operation. Use atomic() to group
	several of them so a failure leaves no partial mutation behind.
	"""

	# ===== READS =====

	@abstractmethod
	def get_rules(self, day_of_week: int) -> List[WorkingHoursRule]:
		"""All working hours rules (any provider) for a weekday."""
		pass

	@abstractmethod
	def get_constraints(self, target_date: date) -> List[DateConstraint]:
		"""All date constraints (any provider) for a date."""
		pass

	@abstractmethod
	def get_slots(self, target_date: date, provider_id: Optional[str]) -> List[SlotRow]:
		"""Rows for a date and provider (None = salon-wide rows), ordered by time."""
		pass

	@abstractmethod
	def get_slot(self, slot_id: str) -> Optional[SlotRow]:
		pass

	@abstractmethod
	def find_slot(self, target_date: date, slot_time: int, provider_id: Optional[str]) -> Optional[SlotRow]:
		pass

	@abstractmethod
	def get_client_bookings(self, target_date: date, client_phone: str) -> List[SlotRow]:
		"""Booked (non-available) rows held by a client on a date, any provider."""
		pass

	@abstractmethod
	def get_recurring_rules(self, day_of_week: int, provider_id: Optional[str]) -> List[RecurringRule]:
		pass

	@abstractmethod
	def get_waiting_entries(
		self,
		requested_date: Optional[date] = None,
		from_date: Optional[date] = None,
		service_name: Optional[str] = None,
	) -> List[WaitlistEntry]:
		"""Entries with status "waiting", oldest first."""
		pass

	@abstractmethod
	def get_service_duration(self, service_name: Optional[str]) -> Optional[int]:
		pass

	@abstractmethod
	def get_provider_ids(self) -> List[str]:
		"""Providers that have at least one working hours rule."""
		pass

	# ===== CONDITIONAL WRITES =====

	@abstractmethod
	def claim_available(
		self,
		target_date: date,
		slot_time: int,
		provider_id: Optional[str],
		client: ClientInfo,
		duration_minutes: int,
	) -> Optional[SlotRow]:
		"""
		Book the row at (date, time, provider) only if it is still available.

		Returns:
			SlotRow: the booked row, or None if no available row matched
		"""
		pass

	@abstractmethod
	def insert_booked(
		self,
		target_date: date,
		slot_time: int,
		provider_id: Optional[str],
		client: ClientInfo,
		duration_minutes: int,
	) -> SlotRow:
		"""
		Insert a new booked row.

		Raises:
			DuplicateSlot: if a row already exists at (date, time, provider)
		"""
		pass

	@abstractmethod
	def insert_available(
		self,
		target_date: date,
		slot_times: Iterable[int],
		provider_id: Optional[str],
		duration_minutes: int,
	) -> int:
		"""Insert available placeholders, ignoring existing keys. Returns rows inserted."""
		pass

	@abstractmethod
	def release(self, slot_id: str) -> Optional[SlotRow]:
		"""Revert a booked row to an available placeholder. None if no booked row matched."""
		pass

	@abstractmethod
	def delete_available(self, target_date: date, provider_id: Optional[str], keep_times: Iterable[int]) -> int:
		"""Delete available rows whose time is not in keep_times. Booked rows are never deleted."""
		pass

	@abstractmethod
	def mark_contacted(self, entry_id: str) -> bool:
		"""Move a waitlist entry from waiting to contacted. False if it was not waiting."""
		pass

	@abstractmethod
	def add_notification(self, record: NotificationRecord) -> None:
		pass

	@abstractmethod
	def atomic(self):
		"""Context manager: all writes inside succeed together or not at all."""
		pass


class MemoryStore(SchedulingStore):
	"""
	In-memory SchedulingStore.

	Each primitive runs under one re-entrant lock, which gives the same
	guarantees as a row-level conditional UPDATE and a unique index.
	atomic() holds the lock and restores a snapshot on error.
	"""

	def __init__(self):
		self._lock = threading.RLock()
		self._ids = itertools.count(1)
		self.rules: List[WorkingHoursRule] = []
		self.constraints: List[DateConstraint] = []
		self.slots: Dict[str, SlotRow] = {}
		self._slot_keys: Dict[Tuple[date, int, Optional[str]], str] = {}
		self.waitlist: Dict[str, WaitlistEntry] = {}
		self.recurring: List[RecurringRule] = []
		self.services: Dict[str, int] = {}
		self.notifications: List[NotificationRecord] = []

	# ===== FIXTURE HELPERS =====

	def add_rule(self, rule: WorkingHoursRule) -> WorkingHoursRule:
		with self._lock:
			self.rules.append(rule)
		return rule

	def add_constraint(self, constraint: DateConstraint) -> DateConstraint:
		with self._lock:
			self.constraints.append(constraint)
		return constraint

	def add_waitlist_entry(self, entry: WaitlistEntry) -> WaitlistEntry:
		with self._lock:
			self.waitlist[entry.entry_id] = entry
		return entry

	def add_recurring_rule(self, rule: RecurringRule) -> RecurringRule:
		with self._lock:
			self.recurring.append(rule)
		return rule

	def add_service(self, service_name: str, duration_minutes: int) -> None:
		with self._lock:
			self.services[service_name] = duration_minutes

	# ===== READS =====

	def get_rules(self, day_of_week):
		with self._lock:
			return [copy.deepcopy(r) for r in self.rules if r.day_of_week == day_of_week]

	def get_constraints(self, target_date):
		with self._lock:
			return [copy.deepcopy(c) for c in self.constraints if c.date == target_date]

	def get_slots(self, target_date, provider_id):
		with self._lock:
			rows = [
				copy.copy(s) for s in self.slots.values()
				if s.date == target_date and s.provider_id == provider_id
			]
		return sorted(rows, key=lambda s: s.time)

	def get_slot(self, slot_id):
		with self._lock:
			row = self.slots.get(slot_id)
			return copy.copy(row) if row else None

	def find_slot(self, target_date, slot_time, provider_id):
		with self._lock:
			slot_id = self._slot_keys.get((target_date, slot_time, provider_id))
			return copy.copy(self.slots[slot_id]) if slot_id else None

	def get_client_bookings(self, target_date, client_phone):
		with self._lock:
			rows = [
				copy.copy(s) for s in self.slots.values()
				if s.date == target_date and not s.is_available and s.client_phone == client_phone
			]
		return sorted(rows, key=lambda s: s.time)

	def get_recurring_rules(self, day_of_week, provider_id):
		with self._lock:
			return [
				copy.deepcopy(r) for r in self.recurring
				if r.day_of_week == day_of_week and r.provider_id == provider_id
			]

	def get_waiting_entries(self, requested_date=None, from_date=None, service_name=None):
		with self._lock:
			entries = [copy.copy(e) for e in self.waitlist.values() if e.status == "waiting"]
		if requested_date is not None:
			entries = [e for e in entries if e.requested_date == requested_date]
		if from_date is not None:
			entries = [e for e in entries if e.requested_date >= from_date]
		if service_name is not None:
			entries = [e for e in entries if e.service_name == service_name]
		return sorted(entries, key=lambda e: e.requested_date)

	def get_service_duration(self, service_name):
		with self._lock:
			return self.services.get(service_name) if service_name else None

	def get_provider_ids(self):
		with self._lock:
			return sorted({r.provider_id for r in self.rules if r.provider_id})

	# ===== CONDITIONAL WRITES =====

	def claim_available(self, target_date, slot_time, provider_id, client, duration_minutes):
		with self._lock:
			slot_id = self._slot_keys.get((target_date, slot_time, provider_id))
			row = self.slots.get(slot_id) if slot_id else None
			if row is None or not row.is_available:
				return None
			self._book(row, client, duration_minutes)
			return copy.copy(row)

	def insert_booked(self, target_date, slot_time, provider_id, client, duration_minutes):
		with self._lock:
			key = (target_date, slot_time, provider_id)
			if key in self._slot_keys:
				raise DuplicateSlot(f"Duplicate slot {target_date} {slot_time} ({provider_id or 'salon'})")
			row = self._new_row(target_date, slot_time, provider_id, duration_minutes)
			self._book(row, client, duration_minutes)
			return copy.copy(row)

	def insert_available(self, target_date, slot_times, provider_id, duration_minutes):
		inserted = 0
		with self._lock:
			for slot_time in slot_times:
				if (target_date, slot_time, provider_id) in self._slot_keys:
					continue
				self._new_row(target_date, slot_time, provider_id, duration_minutes)
				inserted += 1
		return inserted

	def release(self, slot_id):
		with self._lock:
			row = self.slots.get(slot_id)
			if row is None or row.is_available:
				return None
			released = copy.copy(row)
			row.is_available = True
			row.client_name = None
			row.client_phone = None
			row.service_name = None
			return released

	def delete_available(self, target_date, provider_id, keep_times):
		keep = set(keep_times)
		deleted = 0
		with self._lock:
			for slot_id, row in list(self.slots.items()):
				if (
					row.date == target_date
					and row.provider_id == provider_id
					and row.is_available
					and row.time not in keep
				):
					del self.slots[slot_id]
					del self._slot_keys[row.key]
					deleted += 1
		return deleted

	def mark_contacted(self, entry_id):
		with self._lock:
			entry = self.waitlist.get(entry_id)
			if entry is None or entry.status != "waiting":
				return False
			entry.status = "contacted"
			return True

	def add_notification(self, record):
		with self._lock:
			self.notifications.append(record)

	@contextmanager
	def atomic(self) -> Iterator[None]:
		with self._lock:
			snapshot = copy.deepcopy(
				(self.slots, self._slot_keys, self.waitlist, self.notifications)
			)
			try:
				yield
			except BaseException:
				self.slots, self._slot_keys, self.waitlist, self.notifications = snapshot
				raise

	# ===== INTERNALS =====

	def _new_row(self, target_date, slot_time, provider_id, duration_minutes) -> SlotRow:
		row = SlotRow(
			slot_id=f"SLOT-{next(self._ids):05d}",
			date=target_date,
			time=slot_time,
			duration_minutes=duration_minutes,
			is_available=True,
			provider_id=provider_id,
		)
		self.slots[row.slot_id] = row
		self._slot_keys[row.key] = row.slot_id
		return row

	@staticmethod
	def _book(row: SlotRow, client: ClientInfo, duration_minutes: int) -> None:
		row.is_available = False
		row.client_name = client.client_name
		row.client_phone = client.client_phone
		row.service_name = client.service_name
		row.duration_minutes = duration_minutes
