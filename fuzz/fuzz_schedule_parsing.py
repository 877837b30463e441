import sys
from datetime import UTC, datetime

import atheris

with atheris.instrument_imports():
    from clockwork.clock.days import DayBitmask, parse_weekday
    from clockwork.clock.next_trigger import resolve_next_trigger
    from clockwork.datetime_utils import parse_time_in_minutes, parse_time_of_day

_REFERENCE = datetime(2024, 1, 1, 8, 0, tzinfo=UTC)


def TestOneInput(data: bytes) -> None:
    """Fuzz time and repeat-day parsing, then resolve whatever parsed."""
    value = data.decode("utf-8", errors="ignore")

    parse_time_of_day(value)
    parse_weekday(value)

    try:
        minutes = parse_time_in_minutes(value)
    except ValueError:
        minutes = 420  # Expected for invalid input

    days = DayBitmask.parse(value)
    if days is None:
        return

    trigger = resolve_next_trigger(minutes, days, now=_REFERENCE)
    if days.is_repeating or days.value == 0:
        assert trigger >= _REFERENCE


def main() -> None:
    atheris.Setup(sys.argv, TestOneInput)
    atheris.Fuzz()


if __name__ == "__main__":
    main()
