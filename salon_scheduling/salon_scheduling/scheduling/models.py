"""
Scheduling Records

Plain records exchanged between a SchedulingStore and the engine.
Times of day are minutes since midnight (see intervals.to_minutes).
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional

# Week 0 for recurring rules without a start date (a Sunday)
RECURRENCE_EPOCH = date(1970, 1, 4)


def day_of_week(target_date: date) -> int:
	"""Weekday index used by working hours rules: 0 = Sunday ... 6 = Saturday."""
	return (target_date.weekday() + 1) % 7


def next_weekday(weekday: int, from_date: date) -> date:
	"""First date on or after from_date that falls on weekday."""
	return from_date + timedelta(days=(weekday - day_of_week(from_date)) % 7)


@dataclass(frozen=True)
class Break:
	start: int
	end: int


@dataclass
class WorkingHoursRule:
	day_of_week: int  # 0 = Sunday ... 6 = Saturday
	start: int
	end: int
	breaks: List[Break] = field(default_factory=list)
	slot_duration_default: Optional[int] = None
	active: bool = True
	provider_id: Optional[str] = None
	name: Optional[str] = None


@dataclass
class DateConstraint:
	date: date
	start: int
	end: int
	reason: Optional[str] = None
	provider_id: Optional[str] = None

	def applies_to(self, provider_id: Optional[str]) -> bool:
		"""Salon-wide constraints apply to everyone; provider ones only to that provider."""
		return self.provider_id is None or self.provider_id == provider_id


@dataclass(frozen=True)
class ClientInfo:
	client_name: str
	client_phone: str
	service_name: Optional[str] = None


@dataclass
class SlotRow:
	slot_id: str
	date: date
	time: int
	duration_minutes: Optional[int] = None
	is_available: bool = True
	provider_id: Optional[str] = None
	client_name: Optional[str] = None
	client_phone: Optional[str] = None
	service_name: Optional[str] = None

	@property
	def key(self):
		return (self.date, self.time, self.provider_id)


@dataclass
class WaitlistEntry:
	entry_id: str
	requested_date: date
	time_period: str
	service_name: Optional[str]
	client_name: str
	client_phone: str
	status: str = "waiting"
	provider_id: Optional[str] = None


@dataclass
class RecurringRule:
	day_of_week: int
	time: int
	client_name: str
	client_phone: str
	service_name: Optional[str] = None
	provider_id: Optional[str] = None
	start_date: Optional[date] = None
	end_date: Optional[date] = None
	repeat_interval_weeks: int = 1
	name: Optional[str] = None

	@property
	def client(self) -> ClientInfo:
		return ClientInfo(self.client_name, self.client_phone, self.service_name)

	def applies_on(self, target_date: date) -> bool:
		"""
		Whether this rule produces an occurrence on target_date.

		Respects the optional validity range and the repeat interval, counted
		in whole weeks from start_date (or from RECURRENCE_EPOCH when the
		rule has no start date).
		"""
		if self.start_date and target_date < self.start_date:
			return False
		if self.end_date and target_date > self.end_date:
			return False

		interval = max(1, int(self.repeat_interval_weeks or 1))
		if interval == 1:
			return True
		weeks_from_anchor = (target_date - (self.start_date or RECURRENCE_EPOCH)).days // 7
		return weeks_from_anchor % interval == 0

	def next_date(self, from_date: date) -> Optional[date]:
		"""
		Nearest occurrence on or after from_date.

		Returns:
			date, or None if the rule ends before its next occurrence
		"""
		start = max(from_date, self.start_date) if self.start_date else from_date
		candidate = next_weekday(self.day_of_week, start)

		for _week in range(max(1, int(self.repeat_interval_weeks or 1))):
			if self.applies_on(candidate):
				return candidate
			candidate += timedelta(weeks=1)
		return None


@dataclass
class NotificationRecord:
	title: str
	content: str
	recipient_name: str
	recipient_phone: str
	notification_type: str = "appointment_reminder"
	waitlist_entry: Optional[str] = None
