"""
Scheduling Services Module

This module provides the salon's availability and booking engine:
- Interval algebra (intervals.py)
- Window resolution from working hours and date constraints (availability.py)
- Slot generation for booking screens (slots.py)
- Booking and cancellation (ledger.py)
- Slot seeding and recurring claims (seeder.py)
- Waitlist matching (waitlist.py)
- Store interface and Frappe-backed store (store.py, frappe_store.py)
- Scheduled tasks (tasks.py)

Everything except frappe_store.py and tasks.py runs without a Frappe site.
"""
