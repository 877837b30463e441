"""Resolve the next absolute trigger instant of an alarm."""

from __future__ import annotations

from datetime import datetime, timedelta

from clockwork.datetime_utils import MINUTES_PER_DAY, at_minutes, local_now, minutes_of_day

from .days import DayBitmask


def resolve_next_trigger(time_in_minutes: int, days: DayBitmask, *, now: datetime | None = None) -> datetime:
    """Compute when an alarm at ``time_in_minutes`` repeating on ``days`` should ring next.

    ``TODAY`` always resolves to today, even when that time already passed; the
    caller decides what a past one-shot means. ``TOMORROW`` always resolves to
    tomorrow. Any other mask scans forward from today, where today only
    qualifies while the alarm time is still ahead. An empty mask matches every
    day.
    """
    if not 0 <= time_in_minutes < MINUTES_PER_DAY:
        raise ValueError(f"time_in_minutes out of range: {time_in_minutes}")
    reference = now or local_now()

    if days.is_today:
        return at_minutes(reference, time_in_minutes)
    if days.is_tomorrow:
        return at_minutes(reference, time_in_minutes, 1)

    still_ahead_today = time_in_minutes > minutes_of_day(reference)
    start_date = reference.date()
    for offset in range(0, 8):
        if offset == 0 and not still_ahead_today:
            continue
        weekday = (start_date + timedelta(days=offset)).weekday()
        if days.value == 0 or days.includes(weekday):
            return at_minutes(reference, time_in_minutes, offset)
    return at_minutes(reference, time_in_minutes, 7)
