"""
Shared utilities for Salon Scheduling API.

Re-exports the security helpers (rate limiting, honeypot, sanitization)
and the booking input validators.
"""

from salon_scheduling.api.security import (
    check_honeypot,
    check_rate_limit,
    sanitize_string,
)

from .validators import (
    validate_date_string,
    validate_docname,
    validate_duration,
    validate_phone,
    validate_time_string,
)

__all__ = [
    # Security
    "check_honeypot",
    "check_rate_limit",
    "sanitize_string",
    # Validators
    "validate_date_string",
    "validate_docname",
    "validate_duration",
    "validate_phone",
    "validate_time_string",
]
