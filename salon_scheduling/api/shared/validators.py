"""
Booking-specific Validators

Validation utilities for the salon_scheduling API inputs.
Every validator returns the cleaned value or raises frappe.ValidationError.
"""

import re
import frappe
from frappe import _


def validate_date_string(date_str: str, field_name: str = "date") -> str:
    """
    Validate date string format (YYYY-MM-DD).

    Args:
        date_str: Date string to validate
        field_name: Name of field for error messages

    Returns:
        str: Validated date string

    Raises:
        frappe.ValidationError: If date format is invalid
    """
    if not date_str:
        frappe.throw(_("{0} is required").format(field_name), frappe.ValidationError)

    date_str = str(date_str).strip()

    # Basic format check
    if not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        frappe.throw(
            _("Invalid {0} format. Use YYYY-MM-DD").format(field_name), frappe.ValidationError
        )

    return date_str


def validate_time_string(time_str: str, field_name: str = "time") -> str:
    """
    Validate time string format (HH:MM or HH:MM:SS, 24h).

    Args:
        time_str: Time string to validate
        field_name: Name of field for error messages

    Returns:
        str: Validated time string, normalized to HH:MM

    Raises:
        frappe.ValidationError: If time format is invalid
    """
    if not time_str:
        frappe.throw(_("{0} is required").format(field_name), frappe.ValidationError)

    time_str = str(time_str).strip()

    match = re.match(r"^([01]\d|2[0-3]):([0-5]\d)(:[0-5]\d)?$", time_str)
    if not match:
        frappe.throw(
            _("Invalid {0} format. Use HH:MM").format(field_name), frappe.ValidationError
        )

    return f"{match.group(1)}:{match.group(2)}"


def validate_docname(name: str, field_name: str = "name") -> str:
    """
    Validate a document name (ID).

    Ensures the name is not too long and doesn't contain injection patterns.

    Args:
        name: Document name to validate
        field_name: Name of field for error messages

    Returns:
        str: Validated document name

    Raises:
        frappe.ValidationError: If name is invalid
    """
    if not name:
        frappe.throw(_("{0} is required").format(field_name), frappe.ValidationError)

    name = str(name).strip()

    # Length check
    if len(name) > 140:
        frappe.throw(_("{0} is too long").format(field_name), frappe.ValidationError)

    # Block obvious injection attempts
    dangerous_patterns = [
        r"<script",
        r"javascript:",
        r"onclick",
        r"onerror",
        r"SELECT\s+",
        r"INSERT\s+",
        r"UPDATE\s+",
        r"DELETE\s+",
        r"DROP\s+",
        r"UNION\s+",
        r"--",
        r";",
    ]

    for pattern in dangerous_patterns:
        if re.search(pattern, name, re.IGNORECASE):
            frappe.throw(_("Invalid {0}").format(field_name), frappe.ValidationError)

    return name


def validate_phone(phone: str, field_name: str = "client_phone") -> str:
    """
    Validate a phone number.

    Accepts digits with an optional leading "+", spaces, dashes and
    parentheses. Separators are stripped from the returned value.

    Raises:
        frappe.ValidationError: If the phone number is invalid
    """
    if not phone:
        frappe.throw(_("{0} is required").format(field_name), frappe.ValidationError)

    phone = str(phone).strip()
    if not re.match(r"^\+?[\d\s\-()]+$", phone):
        frappe.throw(_("Invalid {0}").format(field_name), frappe.ValidationError)

    digits = re.sub(r"[\s\-()]", "", phone)
    if not 7 <= len(digits.lstrip("+")) <= 15:
        frappe.throw(_("Invalid {0}").format(field_name), frappe.ValidationError)

    return digits


def validate_duration(duration_minutes, field_name: str = "duration_minutes"):
    """
    Validate an optional duration in minutes.

    Returns:
        int or None: the duration, None if not given
    """
    if duration_minutes in (None, ""):
        return None

    try:
        duration = int(duration_minutes)
    except (TypeError, ValueError):
        frappe.throw(_("Invalid {0}").format(field_name), frappe.ValidationError)

    if duration <= 0 or duration > 24 * 60:
        frappe.throw(_("{0} must be between 1 and 1440").format(field_name), frappe.ValidationError)

    return duration
