"""
Waitlist Matching Service

Notifies waiting clients when time frees up:
- match_waitlist_on_cancel: a booked slot was released
- match_service_waitlist_on_cancel: same service, any date from today on
- match_waitlist_on_hours_change: a working hours edit opened new time

Every match is a compare-and-set waiting -> contacted followed by one
outbox notification, inside one store transaction. Overlapping runs
never notify the same entry twice.
"""

import logging
from datetime import date
from typing import Callable, Iterable, List, Optional, Tuple

from . import intervals
from .availability import compute_windows, day_of_week
from .config import SchedulingConfig
from .intervals import Window
from .models import NotificationRecord, SlotRow, WaitlistEntry, WorkingHoursRule
from .store import SchedulingStore

logger = logging.getLogger(__name__)


class WaitlistMessages:
	"""
	Notification texts for waitlist matches.

	Subclass to translate or reformat (see notifications/waitlist.py).
	"""

	def slot_freed(self, entry: WaitlistEntry, slot_date: date, slot_time: int) -> Tuple[str, str]:
		title = "A spot opened up!"
		content = (
			f"Hi {entry.client_name}! A spot opened up for {entry.service_name or 'your service'} "
			f"on {slot_date.isoformat()} at {intervals.format_hhmm(slot_time)}. Book now!"
		)
		return title, content

	def hours_opened(self, entry: WaitlistEntry) -> Tuple[str, str]:
		title = "New hours added"
		content = (
			f"Hi {entry.client_name}! New working hours were added on "
			f"{entry.requested_date.isoformat()} that match your preference for "
			f"{entry.service_name or 'your service'}. You can try booking now."
		)
		return title, content


def _provider_matches(entry: WaitlistEntry, provider_id: Optional[str]) -> bool:
	"""A provider's time is offered to its own waitlist and to entries with no preference."""
	return provider_id is None or entry.provider_id is None or entry.provider_id == provider_id


def _notify(
	store: SchedulingStore,
	entries: Iterable[WaitlistEntry],
	compose: Callable[[WaitlistEntry], Tuple[str, str]],
) -> int:
	notified = 0
	for entry in entries:
		title, content = compose(entry)
		with store.atomic():
			if not store.mark_contacted(entry.entry_id):
				continue
			store.add_notification(NotificationRecord(
				title=title,
				content=content,
				recipient_name=entry.client_name,
				recipient_phone=entry.client_phone,
				waitlist_entry=entry.entry_id,
			))
		notified += 1
		logger.info(
			"Waitlist entry %s contacted (%s, %s)",
			entry.entry_id, entry.client_phone, entry.requested_date
		)
	return notified


def match_waitlist_on_cancel(
	store: SchedulingStore,
	cancelled: SlotRow,
	today: Optional[date] = None,
	messages: Optional[WaitlistMessages] = None,
) -> int:
	"""
	Notify waiting clients for the date of a released slot.

	An entry matches when its time_period equals the slot's bucket, is
	"any", or its service equals the released service.

	Args:
		store: scheduling store
		cancelled: the released row (as returned by BookingLedger.cancel_slot)
		today: first date still eligible (default: date.today())
		messages: notification texts

	Returns:
		int: number of entries notified
	"""
	today = today or date.today()
	if cancelled.date < today:
		return 0

	messages = messages or WaitlistMessages()
	period = intervals.time_period_for(cancelled.time)

	matches = [
		e for e in store.get_waiting_entries(requested_date=cancelled.date)
		if _provider_matches(e, cancelled.provider_id)
		and (
			e.time_period in (period, "any")
			or (cancelled.service_name and e.service_name == cancelled.service_name)
		)
	]

	notified = _notify(
		store, matches,
		lambda e: messages.slot_freed(e, cancelled.date, cancelled.time)
	)
	logger.debug("Cancel on %s %s notified %s", cancelled.date, period, notified)
	return notified


def match_service_waitlist_on_cancel(
	store: SchedulingStore,
	cancelled: SlotRow,
	today: Optional[date] = None,
	messages: Optional[WaitlistMessages] = None,
) -> int:
	"""Notify waiting clients of the released service on any date from today on."""
	if not cancelled.service_name:
		return 0

	today = today or date.today()
	messages = messages or WaitlistMessages()

	matches = [
		e for e in store.get_waiting_entries(from_date=today, service_name=cancelled.service_name)
		if _provider_matches(e, cancelled.provider_id)
	]

	return _notify(
		store, matches,
		lambda e: messages.slot_freed(e, cancelled.date, cancelled.time)
	)


def match_all_on_cancel(
	store: SchedulingStore,
	config: SchedulingConfig,
	cancelled: SlotRow,
	today: Optional[date] = None,
	messages: Optional[WaitlistMessages] = None,
) -> int:
	"""Same-date matching, then service matching when notify_service_waitlist_on_cancel is on."""
	notified = match_waitlist_on_cancel(store, cancelled, today, messages)
	if config.notify_service_waitlist_on_cancel:
		notified += match_service_waitlist_on_cancel(store, cancelled, today, messages)
	return notified


def match_waitlist_on_hours_change(
	store: SchedulingStore,
	weekday: int,
	new_windows: Iterable[Window],
	provider_id: Optional[str] = None,
	today: Optional[date] = None,
	messages: Optional[WaitlistMessages] = None,
) -> int:
	"""
	Notify waiting clients whose preference intersects newly opened hours.

	Args:
		store: scheduling store
		weekday: 0 = Sunday ... 6 = Saturday
		new_windows: windows the edit opened
		provider_id: provider whose hours changed, None for salon-wide hours
		today: first date still eligible (default: date.today())
		messages: notification texts

	Returns:
		int: number of entries notified
	"""
	windows = intervals.normalize(new_windows)
	if not windows:
		return 0

	today = today or date.today()
	messages = messages or WaitlistMessages()

	matches = [
		e for e in store.get_waiting_entries(from_date=today)
		if day_of_week(e.requested_date) == weekday
		and _provider_matches(e, provider_id)
		and any(intervals.overlaps(w, intervals.time_period_range(e.time_period)) for w in windows)
	]

	return _notify(store, matches, messages.hours_opened)


def newly_opened_windows(
	old_rule: Optional[WorkingHoursRule],
	new_rule: Optional[WorkingHoursRule],
) -> List[Window]:
	"""
	Windows an hours edit opened: new windows minus old windows.

	An inactive or missing new rule opens nothing. An inactive or missing
	old rule counts as a closed day.
	"""
	if new_rule is None or not new_rule.active:
		return []

	old_windows = compute_windows(old_rule) if old_rule is not None and old_rule.active else []
	return intervals.newly_opened(old_windows, compute_windows(new_rule))
