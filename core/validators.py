"""
Input validation functions for API parameters.

All validators raise ValidationError on invalid input.
"""

import re
from datetime import date, datetime
from typing import Iterable, Optional, Tuple

from core.exceptions import ValidationError


# Maximum allowed values
MAX_LIMIT = 50
MAX_WINDOW_DAYS = 365
MAX_NAME_LENGTH = 255
MAX_SEARCH_LENGTH = 100

# Entity ids look like "sub_001" or "camp_3f9a1c2b"
_ID_PATTERN = re.compile(r"^[A-Za-z0-9_\-]{1,64}$")
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_date_string(
    value: str,
    field: str = "date",
    format: str = "%Y-%m-%d"
) -> date:
    """
    Validate and parse a date string.

    Args:
        value: Date string to validate
        field: Field name for error messages
        format: Expected date format (default: YYYY-MM-DD)

    Returns:
        Parsed date object

    Raises:
        ValidationError: If date is invalid or in wrong format
    """
    if not value:
        raise ValidationError(field, "Date is required", value)

    if not isinstance(value, str):
        raise ValidationError(field, "Must be a string", value)

    try:
        return datetime.strptime(value, format).date()
    except ValueError:
        raise ValidationError(field, f"Invalid date format. Expected {format}", value)


def validate_date_range(
    start_date: str,
    end_date: str,
    max_days: int = MAX_WINDOW_DAYS
) -> Tuple[date, date]:
    """
    Validate a date range.

    Returns:
        Tuple of (start_date, end_date) as date objects

    Raises:
        ValidationError: If dates are invalid or range is too large
    """
    start = validate_date_string(start_date, "start_date")
    end = validate_date_string(end_date, "end_date")

    if start > end:
        raise ValidationError(
            "date_range",
            "Start date must be before or equal to end date",
            f"{start_date} to {end_date}"
        )

    if (end - start).days + 1 > max_days:
        raise ValidationError("date_range", f"Date range cannot exceed {max_days} days")

    return start, end


def validate_days(value: int, field: str = "days", max_value: int = MAX_WINDOW_DAYS) -> int:
    """
    Validate an analytics window length in days.

    Raises:
        ValidationError: If not an integer in 1..max_value
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(field, "Must be an integer", value)

    if not 1 <= value <= max_value:
        raise ValidationError(field, f"Must be between 1 and {max_value}", value)

    return value


def validate_limit(
    value: int,
    field: str = "limit",
    min_value: int = 1,
    max_value: int = MAX_LIMIT
) -> int:
    """
    Validate a limit/count parameter.

    Raises:
        ValidationError: If limit is out of range
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(field, "Must be an integer", value)

    if value < min_value:
        raise ValidationError(field, f"Must be at least {min_value}", value)

    if value > max_value:
        raise ValidationError(field, f"Cannot exceed {max_value}", value)

    return value


def validate_entity_id(
    value: Optional[str],
    field: str = "id",
    allow_none: bool = True
) -> Optional[str]:
    """
    Validate an entity id (sub-account, campaign, report, team member).

    Empty strings are treated as "not given", so `?subAccountId=` means
    "all sub-accounts".
    """
    if value is None or value == "":
        if allow_none:
            return None
        raise ValidationError(field, "Id is required")

    if not isinstance(value, str):
        raise ValidationError(field, "Must be a string", value)

    value = value.strip()
    if not _ID_PATTERN.match(value):
        raise ValidationError(field, "Contains invalid characters", value)

    return value


def validate_choice(
    value: Optional[str],
    choices: Iterable[str],
    field: str,
    default: Optional[str] = None
) -> Optional[str]:
    """
    Validate that a string is one of a fixed set of choices (case-insensitive).

    Returns `default` when value is None or empty.
    """
    if value is None or value == "":
        return default

    if not isinstance(value, str):
        raise ValidationError(field, "Must be a string", value)

    valid = set(choices)
    value = value.lower().strip()
    if value not in valid:
        raise ValidationError(field, f"Must be one of: {', '.join(sorted(valid))}", value)

    return value


def validate_email(value: Optional[str], field: str = "email") -> str:
    """Validate an email address and return it lower-cased."""
    if not value or not isinstance(value, str):
        raise ValidationError(field, "Email is required", value)

    value = value.strip().lower()
    if len(value) > MAX_NAME_LENGTH or not _EMAIL_PATTERN.match(value):
        raise ValidationError(field, "Invalid email address", value)

    return value


def validate_name(value: Optional[str], field: str = "name") -> str:
    """Validate a display name (company, campaign, report)."""
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError(field, "Name is required")

    value = value.strip()
    if len(value) > MAX_NAME_LENGTH:
        raise ValidationError(field, f"Cannot exceed {MAX_NAME_LENGTH} characters", f"{len(value)} characters")

    return value


def validate_search(value: Optional[str], field: str = "search") -> Optional[str]:
    """Validate a free-text search term; returns it lower-cased or None."""
    if value is None or not value.strip():
        return None

    value = value.strip()
    if len(value) > MAX_SEARCH_LENGTH:
        raise ValidationError(field, f"Cannot exceed {MAX_SEARCH_LENGTH} characters", f"{len(value)} characters")

    return value.lower()
