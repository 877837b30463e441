"""Decide which execution path receives an alarm's snooze request."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from .models import Alarm

SnoozeHandler = Literal["service", "activity"]


@dataclass(frozen=True)
class SnoozeTarget:
    handler: SnoozeHandler
    request_key: str
    alarm_id: int


class SnoozeResolver:
    """Resolve the snooze handler; the delay itself comes from configuration."""

    def __init__(self, *, use_same_snooze: bool) -> None:
        self.use_same_snooze = use_same_snooze

    def get_snooze_target(self, alarm: Alarm) -> SnoozeTarget:
        # One pending snooze request per alarm.
        handler: SnoozeHandler = "service" if self.use_same_snooze else "activity"
        return SnoozeTarget(handler=handler, request_key=f"snooze-{alarm.alarm_id}", alarm_id=alarm.alarm_id)
