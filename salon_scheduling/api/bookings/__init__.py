"""
Bookings API Domain

Handles slot lookup, booking, cancellation and seeding.
"""

# Re-export endpoints from booking_api for new-style imports
from salon_scheduling.api.booking_api import (
    # Read path
    get_available_slots,
    get_nearest_slots,
    # Booking
    book_slot,
    cancel_slot,
    # Maintenance
    seed_day,
)

__all__ = [
    # Read path
    "get_available_slots",
    "get_nearest_slots",
    # Booking
    "book_slot",
    "cancel_slot",
    # Maintenance
    "seed_day",
]
