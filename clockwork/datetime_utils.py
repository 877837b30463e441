"""Shared datetime helpers for minute-of-day arithmetic and ISO (de)serialization."""

from __future__ import annotations

import re
from datetime import datetime, time, timedelta, timezone

MINUTES_PER_DAY = 24 * 60

_TIME_KEYWORDS = {
    "noon": (12, 0),
    "midday": (12, 0),
    "midnight": (0, 0),
}


def local_now() -> datetime:
    """Get current datetime in local timezone."""
    return datetime.now().astimezone()


def minutes_of_day(dt: datetime) -> int:
    """Minutes elapsed since local midnight for ``dt``."""
    return dt.hour * 60 + dt.minute


def at_minutes(reference: datetime, time_in_minutes: int, days_ahead: int = 0) -> datetime:
    """Wall-clock ``time_in_minutes`` on the date ``days_ahead`` after ``reference``.

    The offset is resolved for the target date, so a DST change between the two
    dates does not shift the local time of day.
    """
    hour, minute = divmod(time_in_minutes, 60)
    naive = datetime.combine(reference.date() + timedelta(days=days_ahead), time(hour, minute))
    tzinfo = reference.tzinfo
    if tzinfo is None:
        return naive
    if _is_system_offset(reference):
        # local_now() carries a fixed offset; let the system zone pick the one for the target date.
        return naive.astimezone()
    return naive.replace(tzinfo=tzinfo)


def _is_system_offset(reference: datetime) -> bool:
    tzinfo = reference.tzinfo
    if not isinstance(tzinfo, timezone) or tzinfo is timezone.utc:
        return False
    return reference.utcoffset() == reference.astimezone().utcoffset()


def format_minutes(time_in_minutes: int) -> str:
    """Render minutes since midnight as ``HH:MM``."""
    hour, minute = divmod(time_in_minutes, 60)
    return f"{hour:02d}:{minute:02d}"


def parse_time_of_day(phrase: str | None) -> tuple[int, int] | None:
    """Parse time of day phrase into (hour, minute) tuple. Returns None if invalid."""
    if not phrase:
        return None
    cleaned = phrase.strip().lower()
    if not cleaned:
        return None
    keyword = _TIME_KEYWORDS.get(cleaned)
    if keyword:
        return keyword
    match = re.match(r"^(\d{1,2})(?::(\d{2}))?\s*(am|pm)?$", cleaned)
    if not match:
        return None
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    suffix = match.group(3)
    if suffix:
        if hour == 12:
            hour = 0
        if suffix == "pm":
            hour += 12
    if hour >= 24 or minute >= 60:
        return None
    return hour, minute


def parse_time_in_minutes(value: str) -> int:
    """Parse ``HH:MM`` (or ``7am`` style) text into minutes since midnight. Raises ValueError if invalid."""
    result = parse_time_of_day(value)
    if result is None:
        raise ValueError("Invalid time format")
    hour, minute = result
    return hour * 60 + minute


def serialize_dt(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.astimezone()
    return value.isoformat()


def deserialize_dt(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed
