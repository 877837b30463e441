"""Weekday repeat mask used by alarms.

Bit 0 is Monday and bit 6 is Sunday, matching ``datetime.weekday()``. Two
negative sentinels mark alarms that ring once today or once tomorrow; they
never combine with weekday bits. A mask of ``0`` means "no repeat".
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY, SUNDAY = range(7)

MONDAY_BIT = 1 << MONDAY
TUESDAY_BIT = 1 << TUESDAY
WEDNESDAY_BIT = 1 << WEDNESDAY
THURSDAY_BIT = 1 << THURSDAY
FRIDAY_BIT = 1 << FRIDAY
SATURDAY_BIT = 1 << SATURDAY
SUNDAY_BIT = 1 << SUNDAY
EVERY_DAY_BIT = 0b1111111
TODAY_BIT = -1
TOMORROW_BIT = -2

SelectionKind = Literal["today", "tomorrow", "every_day", "selected", "none"]

DAY_NAMES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

DAY_NAME_MAP = {
    "mon": 0,
    "monday": 0,
    "tue": 1,
    "tues": 1,
    "tuesday": 1,
    "wed": 2,
    "wednesday": 2,
    "thu": 3,
    "thur": 3,
    "thurs": 3,
    "thursday": 3,
    "fri": 4,
    "friday": 4,
    "sat": 5,
    "saturday": 5,
    "sun": 6,
    "sunday": 6,
}

WEEKDAY_SET = {0, 1, 2, 3, 4}
WEEKEND_SET = {5, 6}


def parse_weekday(value: str | None) -> int | None:
    """Map a day name (``"sun"``, ``"Sunday"``) or index (``"6"``) to a weekday index."""
    if not value:
        return None
    lowered = value.strip().lower()
    if re.fullmatch(r"[0-9]{1,3}", lowered):
        return int(lowered) % 7
    return DAY_NAME_MAP.get(lowered[:3], DAY_NAME_MAP.get(lowered))


def display_order(first_day: int = MONDAY) -> tuple[int, ...]:
    """Weekday indexes rotated so the week starts on ``first_day``."""
    start = first_day % 7
    return tuple((start + offset) % 7 for offset in range(7))


@dataclass(frozen=True, slots=True)
class DayBitmask:
    value: int = 0

    def __post_init__(self) -> None:
        if self.value in (TODAY_BIT, TOMORROW_BIT):
            return
        if not 0 <= self.value <= EVERY_DAY_BIT:
            raise ValueError(f"Invalid day bitmask: {self.value}")

    def __int__(self) -> int:
        return self.value

    @classmethod
    def today(cls) -> DayBitmask:
        return cls(TODAY_BIT)

    @classmethod
    def tomorrow(cls) -> DayBitmask:
        return cls(TOMORROW_BIT)

    @classmethod
    def every_day(cls) -> DayBitmask:
        return cls(EVERY_DAY_BIT)

    @classmethod
    def from_weekdays(cls, days: Iterable[int]) -> DayBitmask:
        value = 0
        for day in days:
            value |= 1 << (int(day) % 7)
        return cls(value)

    @classmethod
    def parse(cls, text: str | None) -> DayBitmask | None:
        """Parse user-facing repeat phrases; returns None when nothing is recognized."""
        if text is None:
            return None
        lowered = text.strip().lower()
        condensed = lowered.replace(" ", "")
        if lowered in {"", "single", "once", "next", "none"}:
            return cls(0)
        if lowered == "today":
            return cls.today()
        if lowered == "tomorrow":
            return cls.tomorrow()
        if lowered in {"weekdays", "weekday"}:
            return cls.from_weekdays(WEEKDAY_SET)
        if lowered in {"weekend", "weekends"}:
            return cls.from_weekdays(WEEKEND_SET)
        if condensed in {"everyday", "alldays"} or lowered in {"daily", "all"}:
            return cls.every_day()
        days: set[int] = set()
        for chunk in re.split(r"[,\s]+", lowered):
            chunk = chunk.strip()
            if not chunk:
                continue
            idx = DAY_NAME_MAP.get(chunk[:3], DAY_NAME_MAP.get(chunk))
            if idx is None:
                continue
            days.add(idx)
        if not days:
            return None
        return cls.from_weekdays(days)

    @property
    def is_today(self) -> bool:
        return self.value == TODAY_BIT

    @property
    def is_tomorrow(self) -> bool:
        return self.value == TOMORROW_BIT

    @property
    def is_every_day(self) -> bool:
        return self.value == EVERY_DAY_BIT

    @property
    def is_repeating(self) -> bool:
        return self.value > 0

    def includes(self, weekday: int) -> bool:
        if self.value < 0:
            return False
        return bool(self.value & (1 << (weekday % 7)))

    def weekdays(self) -> list[int]:
        return [day for day in range(7) if self.includes(day)]

    def selection_kind(self) -> SelectionKind:
        if self.is_today:
            return "today"
        if self.is_tomorrow:
            return "tomorrow"
        if self.is_every_day:
            return "every_day"
        if self.value == 0:
            return "none"
        return "selected"

    def display_days(self, first_day: int = MONDAY) -> list[int]:
        return [day for day in display_order(first_day) if self.includes(day)]

    def day_names(self, first_day: int = MONDAY) -> list[str]:
        return [DAY_NAMES[day] for day in self.display_days(first_day)]

    def first_day_order(self, first_day: int = MONDAY) -> int:
        """Sort key for alarm lists: one-shot sentinels first, then by first selected day."""
        if self.is_today:
            return -2
        if self.is_tomorrow:
            return -1
        for position, day in enumerate(display_order(first_day)):
            if self.includes(day):
                return position
        return 7
