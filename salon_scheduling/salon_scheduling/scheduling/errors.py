"""
Scheduling Errors

Typed failures raised by the booking engine. Availability computation
never raises these to callers; it degrades to "nothing available".
"""


class SchedulingError(Exception):
	"""Base class for scheduling engine errors."""
	pass


class InvalidWindow(SchedulingError):
	"""A working hours rule whose start is not before its end."""

	def __init__(self, start: int, end: int):
		self.start = start
		self.end = end
		super().__init__(f"start {start} >= end {end}")


class NoProviderHours(SchedulingError):
	"""No active working hours rule for the weekday/provider."""

	def __init__(self, day_of_week: int, provider_id=None):
		self.day_of_week = day_of_week
		self.provider_id = provider_id
		super().__init__(f"No active working hours for day {day_of_week} (provider: {provider_id or 'salon'})")


class SlotTaken(SchedulingError):
	"""The requested slot was booked by someone else. Re-fetch slots and retry."""

	def __init__(self, slot_date, slot_time, provider_id=None, message=None):
		self.slot_date = slot_date
		self.slot_time = slot_time
		self.provider_id = provider_id
		super().__init__(message or f"Slot {slot_date} {slot_time} is no longer available")


class ConstraintConflict(SlotTaken):
	"""The requested time falls inside a closed date constraint."""
	pass


class PersistenceError(SchedulingError):
	"""Underlying store failure."""
	pass


class DuplicateSlot(PersistenceError):
	"""Unique key violation on (date, time, provider). Converted to SlotTaken by the ledger."""
	pass
