"""Shared service helpers: dates, payload checks and the result envelope."""

from datetime import date, datetime
from typing import Any, Iterable, Optional

import pytz

from rental_api.exceptions import ValidationError
from rental_api.utils.constants import DATE_FMT

DEFAULT_TIMEZONE = "UTC"


# -------- date helpers --------
def parse_date(value: Any, field: str = "date") -> date:
    """
    Coerce a calendar date. Accepts date objects and 'YYYY-MM-DD' strings;
    anything carrying a time of day is rejected, so a rental always spans
    whole days.
    """
    if isinstance(value, datetime):
        raise ValidationError(f"Invalid {field} (expected YYYY-MM-DD)")
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip(), DATE_FMT).date()
        except ValueError:
            pass
    raise ValidationError(f"Invalid {field} (expected YYYY-MM-DD)")


def _today(tz_name: Optional[str] = None) -> date:
    """Current calendar date in the business timezone. Wrapper for easier testing/mocking."""
    try:
        tz = pytz.timezone(tz_name or DEFAULT_TIMEZONE)
    except pytz.UnknownTimeZoneError:
        tz = pytz.utc
    return datetime.now(tz).date()


def rental_days(start: date, end: date) -> int:
    """Whole days between two calendar dates (end exclusive)."""
    return (end - start).days


# -------- payload helpers --------
def require_fields(payload: Optional[dict], fields: Iterable[str], message: str) -> dict:
    payload = payload or {}
    for f in fields:
        value = payload.get(f)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(message)
    return payload


def to_int(value: Any, label: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {label}")
    # int() would truncate 10.9 to 10
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"Invalid {label}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {label}") from None


def to_positive_float(value: Any, label: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a positive number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a positive number") from None
    if not number > 0:
        raise ValidationError(f"{label} must be a positive number")
    return number


def _lc(s):
    """Safe lowercase for case-insensitive compare."""
    return (s or "").strip().lower()


# -------- result envelope --------
def result(message: str, data: Any = None) -> dict:
    """{success, message, data?}; failures are raised as RentalError instead."""
    out = {"success": True, "message": message}
    if data is not None:
        out["data"] = data
    return out
