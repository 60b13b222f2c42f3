"""
Datetime utilities for consistent timezone handling across the application.
Timestamps are timezone-aware UTC; calendar dates are whole days.
"""

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Iterator, Tuple, Union


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.

    Returns:
        Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def parse_iso_datetime(iso_string: str) -> datetime:
    """
    Parse ISO format datetime string to timezone-aware datetime.
    Handles both 'Z' suffix and '+00:00' timezone formats.

    Args:
        iso_string: ISO format datetime string

    Returns:
        Timezone-aware datetime object

    Raises:
        ValueError: If datetime string cannot be parsed
    """
    normalized = iso_string.replace("Z", "+00:00")

    try:
        dt = datetime.fromisoformat(normalized)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except ValueError as e:
        raise ValueError(f"Invalid datetime string: {iso_string}") from e


def parse_date(value: Union[str, date, datetime]) -> date:
    """
    Parse a calendar date.

    Accepts ``YYYY-MM-DD`` strings, full ISO datetimes (the date part is
    kept) and date/datetime objects.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid date: {value!r}")

    text = value.strip()
    try:
        if len(text) > 10:
            return parse_iso_datetime(text).date()
        return date.fromisoformat(text)
    except ValueError as e:
        raise ValueError(f"Invalid date: {value!r}") from e


def to_iso_string(dt: datetime) -> str:
    """
    Convert datetime to ISO format string.
    Ensures timezone-aware datetimes are properly formatted.

    Args:
        dt: Datetime object (timezone-aware or naive)

    Returns:
        ISO format string
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.isoformat()


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last day of a month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every day from start to end, inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def previous_month(year: int, month: int) -> Tuple[int, int]:
    """(year, month) of the month before the given one."""
    if month == 1:
        return year - 1, 12
    return year, month - 1
