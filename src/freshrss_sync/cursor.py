"""Conversion of dates and ids into microsecond cursor values.

Item ids on FreshRSS are microsecond timestamps, so any date a caller
passes can be compared directly against an id once it is expressed in
microseconds since the epoch.
"""

import math
from datetime import date, datetime, timezone

from freshrss_sync.errors import ValidationError

DEFAULT_DATE_FORMAT = "%Y-%m-%d"

MICROSECONDS = 1_000_000

DateInput = str | int | float | date | datetime


def to_cursor(value: DateInput, date_format: str = DEFAULT_DATE_FORMAT) -> int:
    """Normalize a date-like value into an integer microsecond cursor.

    Args:
        value: A date string (``date_format`` first, then ISO 8601), a
            numeric id/cursor (int, float or digit string), a ``datetime``
            or a ``date``. Naive values are read as UTC.
        date_format: ``strptime`` format tried before ISO parsing.

    Returns:
        Microseconds since the epoch.

    Raises:
        ValidationError: If the value cannot be interpreted.
    """
    if isinstance(value, bool):
        raise ValidationError(f"Invalid date value: {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(f"Invalid date value: {value!r}")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, datetime):
        return datetime_to_cursor(value)
    if isinstance(value, date):
        return datetime_to_cursor(datetime(value.year, value.month, value.day))
    if isinstance(value, str):
        return _string_to_cursor(value.strip(), date_format)
    raise ValidationError(f"Unsupported date type: {type(value).__name__}")


def datetime_to_cursor(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    delta = value - datetime(1970, 1, 1, tzinfo=timezone.utc)
    return (delta.days * 86400 + delta.seconds) * MICROSECONDS + delta.microseconds


def now_cursor() -> int:
    return datetime_to_cursor(datetime.now(timezone.utc))


def _string_to_cursor(text: str, date_format: str) -> int:
    if not text:
        raise ValidationError("Empty date string")
    if text.isdecimal():
        return int(text)
    try:
        return datetime_to_cursor(datetime.strptime(text, date_format))
    except ValueError:
        pass
    try:
        # Python < 3.11 does not accept a trailing "Z"
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"Invalid date string: {text}")
    return datetime_to_cursor(parsed)
