"""
Frappe Scheduling Store

SchedulingStore backed by the app's DocTypes through frappe.db.

Conditional writes are single UPDATE statements filtered by the expected
state (is_available / status) and checked with the cursor rowcount.
Booked inserts rely on the unique index on (slot_date, slot_time,
provider_key) added in Salon Slot's on_doctype_update.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

import frappe
from frappe.utils import cint, get_system_timezone, now_datetime

from . import intervals
from .config import SchedulingConfig
from .errors import DuplicateSlot, PersistenceError
from .models import (
	Break,
	DateConstraint,
	RecurringRule,
	SlotRow,
	WaitlistEntry,
	WorkingHoursRule,
)
from .store import SchedulingStore

SETTINGS_DOCTYPE = "Salon Scheduling Settings"
RULE_DOCTYPE = "Working Hours Rule"
BREAK_DOCTYPE = "Working Hours Break"
CONSTRAINT_DOCTYPE = "Date Constraint"
SLOT_DOCTYPE = "Salon Slot"
WAITLIST_DOCTYPE = "Waitlist Entry"
RECURRING_DOCTYPE = "Recurring Appointment"
NOTIFICATION_DOCTYPE = "Salon Notification"
SERVICE_DOCTYPE = "Salon Service"

SLOT_FIELDS = [
	"name", "slot_date", "slot_time", "duration_minutes", "is_available",
	"provider", "client_name", "client_phone", "service_name",
]


def logger():
	return frappe.logger("salon_scheduling")


def provider_key(provider_id: Optional[str]) -> str:
	"""Unique-index value for a provider; "" is the salon-wide schedule."""
	return provider_id or ""


def sql_time(minutes: int) -> str:
	return f"{intervals.format_hhmm(minutes)}:00"


def _provider_filter(provider_id: Optional[str]):
	return provider_id if provider_id else ["is", "not set"]


def is_set(value) -> bool:
	"""Time fields: 00:00 comes back as a falsy timedelta, so test for None/"" only."""
	return value is not None and value != ""


# ===== RECORD MAPPING =====

def rule_from_doc(doc, breaks=None) -> WorkingHoursRule:
	"""
	Build a WorkingHoursRule from a Working Hours Rule doc or row.

	The legacy single break (break_start_time / break_end_time) is merged
	into the breaks list.

	Raises:
		ValueError: if start or end time is missing or malformed
	"""
	if breaks is None:
		breaks = doc.get("breaks") or []

	parsed = []
	for b in breaks:
		if not is_set(b.get("start_time")) or not is_set(b.get("end_time")):
			continue
		parsed.append(Break(intervals.to_minutes(b.get("start_time")), intervals.to_minutes(b.get("end_time"))))

	if is_set(doc.get("break_start_time")) and is_set(doc.get("break_end_time")):
		legacy = Break(intervals.to_minutes(doc.get("break_start_time")), intervals.to_minutes(doc.get("break_end_time")))
		if legacy not in parsed:
			parsed.append(legacy)

	return WorkingHoursRule(
		day_of_week=cint(doc.get("day_of_week")),
		start=intervals.to_minutes(doc.get("start_time")),
		end=intervals.to_minutes(doc.get("end_time")),
		breaks=sorted(parsed, key=lambda b: (b.start, b.end)),
		slot_duration_default=cint(doc.get("slot_duration_default")) or None,
		active=bool(cint(doc.get("is_active"))),
		provider_id=doc.get("provider") or None,
		name=doc.get("name"),
	)


def slot_from_row(row) -> SlotRow:
	return SlotRow(
		slot_id=row.name,
		date=frappe.utils.getdate(row.slot_date),
		time=intervals.to_minutes(row.slot_time),
		duration_minutes=cint(row.duration_minutes) or None,
		is_available=bool(cint(row.is_available)),
		provider_id=row.provider or None,
		client_name=row.client_name,
		client_phone=row.client_phone,
		service_name=row.service_name,
	)


def waitlist_from_row(row) -> WaitlistEntry:
	return WaitlistEntry(
		entry_id=row.name,
		requested_date=frappe.utils.getdate(row.requested_date),
		time_period=row.time_period or "any",
		service_name=row.service_name,
		client_name=row.client_name,
		client_phone=row.client_phone,
		status=row.status,
		provider_id=row.provider or None,
	)


def recurring_from_doc(doc) -> RecurringRule:
	"""Build a RecurringRule from a Recurring Appointment doc or row."""
	return RecurringRule(
		day_of_week=cint(doc.get("day_of_week")),
		time=intervals.to_minutes(doc.get("slot_time")),
		client_name=doc.get("client_name"),
		client_phone=doc.get("client_phone"),
		service_name=doc.get("service_name"),
		provider_id=doc.get("provider") or None,
		start_date=frappe.utils.getdate(doc.get("start_date")) if doc.get("start_date") else None,
		end_date=frappe.utils.getdate(doc.get("end_date")) if doc.get("end_date") else None,
		repeat_interval_weeks=cint(doc.get("repeat_interval_weeks")) or 1,
		name=doc.get("name"),
	)


# ===== CONFIG =====

def load_config() -> SchedulingConfig:
	"""
	Read Salon Scheduling Settings into a SchedulingConfig.

	An empty timezone means the site's system timezone.
	"""
	values = frappe.get_cached_doc(SETTINGS_DOCTYPE).as_dict()
	if not values.get("timezone"):
		values["timezone"] = get_system_timezone()
	return SchedulingConfig.from_mapping(values)


class FrappeStore(SchedulingStore):
	"""SchedulingStore on top of frappe.db (MariaDB or Postgres)."""

	# ===== READS =====

	def get_rules(self, day_of_week):
		rows = frappe.get_all(
			RULE_DOCTYPE,
			filters={"day_of_week": day_of_week},
			fields=[
				"name", "day_of_week", "start_time", "end_time", "break_start_time",
				"break_end_time", "slot_duration_default", "is_active", "provider",
			],
		)
		if not rows:
			return []

		breaks = frappe.get_all(
			BREAK_DOCTYPE,
			filters={"parenttype": RULE_DOCTYPE, "parent": ["in", [r.name for r in rows]]},
			fields=["parent", "start_time", "end_time"],
			order_by="idx asc",
		)

		rules = []
		for row in rows:
			try:
				rules.append(rule_from_doc(row, [b for b in breaks if b.parent == row.name]))
			except ValueError as e:
				logger().warning(f"Skipping malformed Working Hours Rule {row.name}: {e}")
		return rules

	def get_constraints(self, target_date):
		rows = frappe.get_all(
			CONSTRAINT_DOCTYPE,
			filters={"constraint_date": target_date},
			fields=["name", "constraint_date", "start_time", "end_time", "reason", "provider"],
		)

		constraints = []
		for row in rows:
			try:
				constraints.append(DateConstraint(
					date=frappe.utils.getdate(row.constraint_date),
					start=intervals.to_minutes(row.start_time) if is_set(row.start_time) else 0,
					end=intervals.to_minutes(row.end_time) if is_set(row.end_time) else intervals.MINUTES_PER_DAY,
					reason=row.reason,
					provider_id=row.provider or None,
				))
			except ValueError as e:
				logger().warning(f"Skipping malformed Date Constraint {row.name}: {e}")
		return constraints

	def get_slots(self, target_date, provider_id):
		rows = frappe.get_all(
			SLOT_DOCTYPE,
			filters={"slot_date": target_date, "provider_key": provider_key(provider_id)},
			fields=SLOT_FIELDS,
			order_by="slot_time asc",
		)
		return [slot_from_row(r) for r in rows]

	def get_slot(self, slot_id):
		row = frappe.db.get_value(SLOT_DOCTYPE, slot_id, SLOT_FIELDS, as_dict=True)
		return slot_from_row(row) if row else None

	def find_slot(self, target_date, slot_time, provider_id):
		row = frappe.db.get_value(
			SLOT_DOCTYPE,
			{
				"slot_date": target_date,
				"slot_time": sql_time(slot_time),
				"provider_key": provider_key(provider_id),
			},
			SLOT_FIELDS,
			as_dict=True,
		)
		return slot_from_row(row) if row else None

	def get_client_bookings(self, target_date, client_phone):
		rows = frappe.get_all(
			SLOT_DOCTYPE,
			filters={"slot_date": target_date, "client_phone": client_phone, "is_available": 0},
			fields=SLOT_FIELDS,
			order_by="slot_time asc",
		)
		return [slot_from_row(r) for r in rows]

	def get_recurring_rules(self, day_of_week, provider_id):
		rows = frappe.get_all(
			RECURRING_DOCTYPE,
			filters={
				"day_of_week": day_of_week,
				"provider": _provider_filter(provider_id),
				"is_active": 1,
			},
			fields=[
				"name", "day_of_week", "slot_time", "client_name", "client_phone", "service_name",
				"provider", "start_date", "end_date", "repeat_interval_weeks",
			],
		)
		return [recurring_from_doc(r) for r in rows]

	def get_waiting_entries(self, requested_date=None, from_date=None, service_name=None):
		filters = {"status": "waiting"}
		if requested_date is not None:
			filters["requested_date"] = requested_date
		elif from_date is not None:
			filters["requested_date"] = [">=", from_date]
		if service_name is not None:
			filters["service_name"] = service_name

		rows = frappe.get_all(
			WAITLIST_DOCTYPE,
			filters=filters,
			fields=[
				"name", "requested_date", "time_period", "service_name",
				"client_name", "client_phone", "status", "provider",
			],
			order_by="requested_date asc, creation asc",
		)
		entries = [waitlist_from_row(r) for r in rows]
		if requested_date is not None and from_date is not None:
			entries = [e for e in entries if e.requested_date >= from_date]
		return entries

	def get_service_duration(self, service_name):
		if not service_name:
			return None
		return cint(frappe.db.get_value(SERVICE_DOCTYPE, service_name, "duration_minutes")) or None

	def get_provider_ids(self):
		providers = frappe.get_all(
			RULE_DOCTYPE,
			filters={"provider": ["is", "set"]},
			pluck="provider",
			distinct=True,
		)
		return sorted(set(providers))

	# ===== CONDITIONAL WRITES =====

	def claim_available(self, target_date, slot_time, provider_id, client, duration_minutes):
		affected = self._execute("""
			UPDATE `tabSalon Slot`
			SET is_available = 0,
				client_name = %(client_name)s,
				client_phone = %(client_phone)s,
				service_name = %(service_name)s,
				duration_minutes = %(duration_minutes)s,
				modified = %(modified)s,
				modified_by = %(user)s
			WHERE slot_date = %(slot_date)s
			AND slot_time = %(slot_time)s
			AND provider_key = %(provider_key)s
			AND is_available = 1
		""", {
			"client_name": client.client_name,
			"client_phone": client.client_phone,
			"service_name": client.service_name,
			"duration_minutes": duration_minutes,
			"modified": now_datetime(),
			"user": frappe.session.user,
			"slot_date": target_date,
			"slot_time": sql_time(slot_time),
			"provider_key": provider_key(provider_id),
		})
		if not affected:
			return None
		return self.find_slot(target_date, slot_time, provider_id)

	def insert_booked(self, target_date, slot_time, provider_id, client, duration_minutes):
		doc = frappe.get_doc({
			"doctype": SLOT_DOCTYPE,
			"slot_date": target_date,
			"slot_time": sql_time(slot_time),
			"provider": provider_id,
			"duration_minutes": duration_minutes,
			"is_available": 0,
			"client_name": client.client_name,
			"client_phone": client.client_phone,
			"service_name": client.service_name,
		})
		self._insert(doc)
		return self.get_slot(doc.name)

	def insert_available(self, target_date, slot_times, provider_id, duration_minutes):
		existing = {row.time for row in self.get_slots(target_date, provider_id)}
		inserted = 0
		for slot_time in slot_times:
			if slot_time in existing:
				continue
			doc = frappe.get_doc({
				"doctype": SLOT_DOCTYPE,
				"slot_date": target_date,
				"slot_time": sql_time(slot_time),
				"provider": provider_id,
				"duration_minutes": duration_minutes,
				"is_available": 1,
			})
			try:
				self._insert(doc)
			except DuplicateSlot:
				# Seeded concurrently
				continue
			inserted += 1
		return inserted

	def release(self, slot_id):
		current = self.get_slot(slot_id)
		if current is None or current.is_available:
			return None

		affected = self._execute("""
			UPDATE `tabSalon Slot`
			SET is_available = 1,
				client_name = NULL,
				client_phone = NULL,
				service_name = NULL,
				modified = %(modified)s,
				modified_by = %(user)s
			WHERE name = %(name)s
			AND is_available = 0
		""", {"name": slot_id, "modified": now_datetime(), "user": frappe.session.user})
		return current if affected else None

	def delete_available(self, target_date, provider_id, keep_times):
		keep = set(keep_times)
		deleted = 0
		for row in self.get_slots(target_date, provider_id):
			if not row.is_available or row.time in keep:
				continue
			deleted += self._execute(
				"DELETE FROM `tabSalon Slot` WHERE name = %(name)s AND is_available = 1",
				{"name": row.slot_id},
			)
		return deleted

	def mark_contacted(self, entry_id):
		affected = self._execute("""
			UPDATE `tabWaitlist Entry`
			SET status = 'contacted',
				modified = %(modified)s
			WHERE name = %(name)s
			AND status = 'waiting'
		""", {"name": entry_id, "modified": now_datetime()})
		return bool(affected)

	def add_notification(self, record):
		frappe.get_doc({
			"doctype": NOTIFICATION_DOCTYPE,
			"title": record.title,
			"content": record.content,
			"notification_type": record.notification_type,
			"recipient_name": record.recipient_name,
			"recipient_phone": record.recipient_phone,
			"waitlist_entry": record.waitlist_entry,
		}).insert(ignore_permissions=True)

	@contextmanager
	def atomic(self) -> Iterator[None]:
		save_point = f"salon_{frappe.generate_hash(length=10)}"
		frappe.db.savepoint(save_point)
		try:
			yield
		except Exception:
			frappe.db.rollback(save_point=save_point)
			raise
		else:
			frappe.db.release_savepoint(save_point)

	# ===== INTERNALS =====

	def _execute(self, query, values) -> int:
		"""Run a write statement and return the affected row count."""
		try:
			frappe.db.sql(query, values)
		except Exception as e:
			logger().error(f"Scheduling store write failed: {e}")
			raise PersistenceError(str(e)) from e
		return frappe.db._cursor.rowcount

	def _insert(self, doc) -> None:
		"""Insert a Salon Slot; a unique key hit raises DuplicateSlot with nothing left behind."""
		save_point = f"salon_{frappe.generate_hash(length=10)}"
		frappe.db.savepoint(save_point)
		try:
			doc.insert(ignore_permissions=True)
		except (frappe.UniqueValidationError, frappe.DuplicateEntryError) as e:
			frappe.db.rollback(save_point=save_point)
			raise DuplicateSlot(f"Duplicate slot {doc.slot_date} {doc.slot_time} ({doc.provider or 'salon'})") from e
		except frappe.ValidationError:
			frappe.db.rollback(save_point=save_point)
			raise
		except Exception as e:
			frappe.db.rollback(save_point=save_point)
			if frappe.db.is_unique_key_violation(e):
				raise DuplicateSlot(f"Duplicate slot {doc.slot_date} {doc.slot_time} ({doc.provider or 'salon'})") from e
			logger().error(f"Salon Slot insert failed: {e}")
			raise PersistenceError(str(e)) from e
		else:
			frappe.db.release_savepoint(save_point)
