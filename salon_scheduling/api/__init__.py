"""
Salon Scheduling API

This module provides a modular API structure for salon bookings.

Structure:
    api/
    ├── __init__.py              # This file
    ├── bookings/                # Bookings domain
    │   └── __init__.py          # Re-exports from booking_api
    ├── shared/                  # Shared utilities
    │   ├── __init__.py          # Re-exports security helpers and validators
    │   └── validators.py        # Booking input validators
    ├── booking_api.py           # Endpoints
    └── security.py              # Rate limiting, honeypot, sanitization

Usage:
    frappe.call("salon_scheduling.api.bookings.get_available_slots", ...)
    frappe.call("salon_scheduling.api.booking_api.book_slot", ...)
"""

# Re-export domains for convenient access
from . import bookings
from . import shared

__all__ = [
    "bookings",
    "shared",
]
