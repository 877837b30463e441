from __future__ import annotations

from clockwork.clock.days import DayBitmask
from clockwork.clock.models import Alarm
from clockwork.clock.snooze import SnoozeResolver


def _alarm(alarm_id: int = 4) -> Alarm:
    return Alarm(
        alarm_id=alarm_id,
        time_in_minutes=420,
        days=DayBitmask.every_day(),
        is_enabled=True,
        vibrate=False,
        sound_title="Silent",
        sound_uri="silent",
    )


def test_same_snooze_routes_to_service():
    target = SnoozeResolver(use_same_snooze=True).get_snooze_target(_alarm())
    assert target.handler == "service"
    assert target.alarm_id == 4


def test_custom_snooze_routes_to_activity():
    target = SnoozeResolver(use_same_snooze=False).get_snooze_target(_alarm())
    assert target.handler == "activity"


def test_request_key_is_stable_per_alarm():
    resolver = SnoozeResolver(use_same_snooze=True)
    first = resolver.get_snooze_target(_alarm(9))
    second = resolver.get_snooze_target(_alarm(9))
    assert first.request_key == second.request_key == "snooze-9"
    assert resolver.get_snooze_target(_alarm(10)).request_key != first.request_key
