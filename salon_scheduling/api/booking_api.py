"""
Booking API Endpoints

Whitelisted functions for the booking screens and the admin desk.
Public endpoints allow guest access with security protections:
- Rate limiting by IP address
- Honeypot validation for bot detection
- Input validation

All endpoints go through the scheduling engine with a FrappeStore:
- get_available_slots / get_nearest_slots: read path (windows -> slots)
- book_slot: BookingLedger (conflicts surface as HTTP 409)
- cancel_slot: BookingLedger + waitlist matching
- seed_day: slot seeding (System Manager only)
"""

import frappe
from frappe import _
from frappe.utils import getdate
from typing import Any, Dict, Optional

from salon_scheduling.salon_scheduling.notifications.waitlist import SiteWaitlistMessages
from salon_scheduling.salon_scheduling.scheduling import intervals, seeder
from salon_scheduling.salon_scheduling.scheduling.errors import ConstraintConflict, SlotTaken
from salon_scheduling.salon_scheduling.scheduling.frappe_store import FrappeStore, load_config
from salon_scheduling.salon_scheduling.scheduling.ledger import BookingLedger, SAME_DAY_POLICIES
from salon_scheduling.salon_scheduling.scheduling.models import ClientInfo, SlotRow
from salon_scheduling.salon_scheduling.scheduling.slots import (
	find_nearest_slots,
	get_offerable_slots,
	local_now,
	now_cutoff,
	resolve_duration,
)
from salon_scheduling.salon_scheduling.scheduling.waitlist import match_all_on_cancel

from salon_scheduling.api.shared import (
	check_honeypot,
	check_rate_limit,
	sanitize_string,
	validate_date_string,
	validate_docname,
	validate_duration,
	validate_phone,
	validate_time_string,
)


class SlotTakenError(frappe.ValidationError):
	"""The requested slot is no longer available. Re-fetch slots and pick another."""
	http_status_code = 409


# ===================
# Helpers
# ===================

def _slot_dict(row: SlotRow) -> Dict[str, Any]:
	return {
		"name": row.slot_id,
		"date": row.date.isoformat(),
		"time": intervals.format_hhmm(row.time),
		"duration_minutes": row.duration_minutes,
		"provider": row.provider_id,
		"is_available": row.is_available,
		"client_name": row.client_name,
		"service_name": row.service_name,
	}


def _validate_provider(provider: Optional[str]) -> Optional[str]:
	if not provider:
		return None

	provider = validate_docname(provider, "provider")
	if not frappe.db.exists("User", provider):
		frappe.throw(_("Provider '{0}' does not exist").format(provider), frappe.DoesNotExistError)
	return provider


def _validate_service(service_name: Optional[str]) -> Optional[str]:
	if not service_name:
		return None

	service_name = validate_docname(service_name, "service_name")
	if not frappe.db.exists("Salon Service", service_name):
		frappe.throw(_("Service '{0}' does not exist").format(service_name), frappe.DoesNotExistError)
	return service_name


def _close_waitlist_entries(client_phone: str, target_date) -> None:
	"""A client who booked the date no longer waits for it."""
	for name in frappe.get_all(
		"Waitlist Entry",
		filters={
			"client_phone": client_phone,
			"requested_date": target_date,
			"status": ["in", ["waiting", "contacted"]],
		},
		pluck="name",
	):
		frappe.db.set_value("Waitlist Entry", name, "status", "booked")


def _notify_waitlist(store, config, released: SlotRow) -> int:
	"""Run the cancel matchers; a failure is logged and does not undo the cancellation."""
	try:
		return match_all_on_cancel(
			store,
			config,
			released,
			today=local_now(config.timezone).date(),
			messages=SiteWaitlistMessages(),
		)
	except Exception as e:
		frappe.log_error(
			message=f"Waitlist matching failed for released slot {released.slot_id}: {str(e)}",
			title="Waitlist Matching Failed"
		)
		return 0


# ===================
# Read path
# ===================

@frappe.whitelist(allow_guest=True, methods=["GET"])
def get_available_slots(
	date: str,
	provider: Optional[str] = None,
	service_name: Optional[str] = None,
	duration_minutes: Optional[int] = None,
) -> Dict[str, Any]:
	"""
	Offerable start times for one date.

	Rate limited: 30 requests per minute per IP.

	Args:
		date: YYYY-MM-DD
		provider: provider (User), empty for the salon-wide schedule
		service_name: Salon Service; sets the duration if duration_minutes is empty
		duration_minutes: explicit duration

	Returns:
		dict: {
			"date": "2026-01-15",
			"provider": None,
			"duration_minutes": 60,
			"slots": ["09:00", "10:00", ...]
		}

	Example:
		```javascript
		frappe.call({
			method: "salon_scheduling.api.bookings.get_available_slots",
			args: { date: "2026-01-20", service_name: "Haircut" },
			callback: (r) => console.log(r.message.slots)
		});
		```
	"""
	check_rate_limit("get_available_slots")

	date = validate_date_string(date, "date")
	provider = _validate_provider(provider)
	service_name = _validate_service(service_name)
	duration_minutes = validate_duration(duration_minutes)

	try:
		config = load_config()
		store = FrappeStore()
		target_date = getdate(date)
		duration = resolve_duration(store, config, duration_minutes, service_name)

		slots = get_offerable_slots(store, config, target_date, provider, duration)

		return {
			"date": target_date.isoformat(),
			"provider": provider,
			"duration_minutes": duration,
			"slots": [intervals.format_hhmm(t) for t in slots],
		}

	except Exception as e:
		frappe.log_error(f"Error in get_available_slots: {str(e)}", "Salon Booking API Error")
		raise


@frappe.whitelist(allow_guest=True, methods=["GET"])
def get_nearest_slots(
	provider: Optional[str] = None,
	service_name: Optional[str] = None,
	duration_minutes: Optional[int] = None,
) -> Dict[str, Any]:
	"""
	Earliest offerable slots from today on.

	Rate limited: 30 requests per minute per IP.

	Returns:
		dict: {
			"duration_minutes": 60,
			"slots": [{"date": "2026-01-15", "time": "09:00"}, ...]
		}
	"""
	check_rate_limit("get_nearest_slots")

	provider = _validate_provider(provider)
	service_name = _validate_service(service_name)
	duration_minutes = validate_duration(duration_minutes)

	try:
		config = load_config()
		store = FrappeStore()
		duration = resolve_duration(store, config, duration_minutes, service_name)

		found = find_nearest_slots(store, config, provider, duration)

		return {
			"duration_minutes": duration,
			"slots": [
				{"date": item["date"].isoformat(), "time": intervals.format_hhmm(item["time"])}
				for item in found
			],
		}

	except Exception as e:
		frappe.log_error(f"Error in get_nearest_slots: {str(e)}", "Salon Booking API Error")
		raise


# ===================
# Booking
# ===================

@frappe.whitelist(allow_guest=True, methods=["POST"])
def book_slot(
	date: str,
	time: str,
	client_name: str,
	client_phone: str,
	service_name: Optional[str] = None,
	provider: Optional[str] = None,
	duration_minutes: Optional[int] = None,
	same_day_policy: str = "ask",
	honeypot: Optional[str] = None,
) -> Dict[str, Any]:
	"""
	Book a slot for a client.

	Rate limited: 10 requests per minute per IP.

	Args:
		date: YYYY-MM-DD
		time: HH:MM
		client_name: client full name
		client_phone: client phone (identifies the client)
		service_name: Salon Service
		provider: provider (User), empty for the salon-wide schedule
		duration_minutes: explicit duration (default: the service's)
		same_day_policy: "ask" | "replace" | "add" when the client already
			has an appointment that day
		honeypot: hidden form field, must stay empty

	Returns:
		dict: {"status": "booked", "slot": {...}, "replaced": {...} | None}
		or {"status": "duplicate_same_day", "existing": {...}}

	Raises:
		SlotTakenError (HTTP 409): the slot was taken or is closed
	"""
	check_rate_limit("book_slot")
	check_honeypot(honeypot)

	date = validate_date_string(date, "date")
	time = validate_time_string(time, "time")
	client_name = sanitize_string(client_name)
	if not client_name:
		frappe.throw(_("client_name is required"), frappe.ValidationError)
	client_phone = validate_phone(client_phone)
	service_name = _validate_service(service_name)
	provider = _validate_provider(provider)
	duration_minutes = validate_duration(duration_minutes)

	if same_day_policy not in SAME_DAY_POLICIES:
		frappe.throw(
			_("same_day_policy must be one of: {0}").format(", ".join(SAME_DAY_POLICIES)),
			frappe.ValidationError
		)

	config = load_config()
	store = FrappeStore()
	target_date = getdate(date)
	slot_time = intervals.to_minutes(time)

	if target_date < local_now(config.timezone).date():
		frappe.throw(_("Cannot book a date in the past"), frappe.ValidationError)

	cutoff = now_cutoff(target_date, config.timezone)
	if cutoff is not None and slot_time < cutoff:
		frappe.throw(_("Cannot book a time in the past"), frappe.ValidationError)

	try:
		result = BookingLedger(store, config).book_slot(
			target_date,
			slot_time,
			provider,
			duration_minutes,
			ClientInfo(client_name, client_phone, service_name),
			same_day_policy=same_day_policy,
		)

	except ConstraintConflict as e:
		frappe.throw(_("The salon is closed at that time: {0}").format(str(e)), SlotTakenError)

	except SlotTaken:
		frappe.throw(
			_("{0} at {1} is no longer available. Please pick another time.").format(date, time),
			SlotTakenError
		)

	except Exception as e:
		frappe.log_error(f"Error in book_slot: {str(e)}", "Salon Booking API Error")
		raise

	if not result.is_booked:
		return {
			"status": result.status,
			"existing": _slot_dict(result.existing),
		}

	_close_waitlist_entries(client_phone, target_date)

	if result.replaced is not None:
		_notify_waitlist(store, config, result.replaced)

	frappe.logger("salon_scheduling").info(
		f"Booked {result.slot.slot_id} ({date} {time}, {provider or 'salon'}) for {client_phone}"
	)

	return {
		"status": result.status,
		"slot": _slot_dict(result.slot),
		"replaced": _slot_dict(result.replaced) if result.replaced else None,
	}


@frappe.whitelist(methods=["POST"])
def cancel_slot(slot_id: str) -> Dict[str, Any]:
	"""
	Cancel a booked slot and notify matching waitlist clients.

	The slot becomes an available placeholder again.

	Args:
		slot_id: Salon Slot name

	Returns:
		dict: {
			"status": "released" | "not_found",
			"slot": {...} | None,
			"waitlist_notified": int
		}
	"""
	slot_id = validate_docname(slot_id, "slot_id")

	if not frappe.has_permission("Salon Slot", "write"):
		frappe.throw(_("Not permitted to cancel appointments"), frappe.PermissionError)

	config = load_config()
	store = FrappeStore()

	try:
		result = BookingLedger(store, config).cancel_slot(slot_id)

	except Exception as e:
		frappe.log_error(f"Error in cancel_slot: {str(e)}", "Salon Booking API Error")
		raise

	if not result.is_released:
		return {"status": result.status, "slot": None, "waitlist_notified": 0}

	notified = _notify_waitlist(store, config, result.slot)

	frappe.logger("salon_scheduling").info(
		f"Cancelled {slot_id}; {notified} waitlist entries notified"
	)

	return {
		"status": result.status,
		"slot": _slot_dict(result.slot),
		"waitlist_notified": notified,
	}


# ===================
# Maintenance
# ===================

@frappe.whitelist(methods=["POST"])
def seed_day(date: str, provider: Optional[str] = None) -> Dict[str, Any]:
	"""
	Seed one date's available slots and recurring claims.

	System Manager only.

	Returns:
		dict: {"inserted": int, "claimed": int, "windows": [{"start": "09:00", "end": "12:00"}, ...]}
	"""
	frappe.only_for("System Manager")

	date = validate_date_string(date, "date")
	provider = _validate_provider(provider)

	config = load_config()
	store = FrappeStore()

	try:
		with store.atomic():
			report = seeder.seed_day(store, config, getdate(date), provider)

	except Exception as e:
		frappe.log_error(f"Error in seed_day: {str(e)}", "Salon Booking API Error")
		raise

	return {
		"inserted": report["inserted"],
		"claimed": report["claimed"],
		"windows": [
			{"start": intervals.format_hhmm(w["start"]), "end": intervals.format_hhmm(w["end"])}
			for w in report["windows"]
		],
	}
