"""
Security Utilities for Public APIs

Per-IP rate limits, honeypot rejection and input sanitization for the
guest-facing booking endpoints.
"""

import re
import frappe
from frappe import _
from frappe.utils import cint

# action -> (requests allowed, window in seconds)
RATE_LIMITS = {
    "get_available_slots": (30, 60),
    "get_nearest_slots": (30, 60),
    "book_slot": (10, 60),
}


def check_rate_limit(action: str) -> None:
    """
    Count one request for action from the caller's IP.

    Counters live in frappe.cache (Redis) and expire with their window.

    Raises:
        frappe.TooManyRequestsError: once the action's limit is reached
    """
    limit, seconds = RATE_LIMITS[action]
    ip = getattr(frappe.local, "request_ip", None) or "local"
    cache_key = f"rate_limit:salon_scheduling:{action}:{ip}"

    current = cint(frappe.cache.get_value(cache_key))
    if current >= limit:
        frappe.log_error(
            title=_("Rate Limit Exceeded"),
            message=f"IP: {ip}, Action: {action}, Limit: {limit}/{seconds}s"
        )
        frappe.throw(_("Too many requests. Please wait a moment and try again."), frappe.TooManyRequestsError)

    frappe.cache.set_value(cache_key, current + 1, expires_in_sec=seconds)


def check_honeypot(honeypot_value: str = None) -> None:
    """Reject a booking form whose hidden field was filled."""
    if honeypot_value:
        frappe.throw(_("Invalid request"), frappe.ValidationError)


def sanitize_string(value: str, max_length: int = 140) -> str:
    """Trim, truncate and strip control characters. Empty input gives None."""
    if not value:
        return None

    value = str(value).strip()[:max_length]
    return re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", value)
