"""Contracts for the collaborators the scheduling core talks to.

Concrete adapters live in ``storage``, ``wake_service`` and ``mqtt_notifier``;
tests substitute mocks that satisfy the same protocols.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Literal, Protocol

if TYPE_CHECKING:
    from .models import Alarm, Timer
    from .notifications import ChannelAttributes, NotificationDescriptor

Clock = Callable[[], datetime]
WakeKind = Literal["alarm", "early_dismissal", "timer"]


class WakeServiceError(RuntimeError):
    """Raised when the wake-up mechanism refuses a registration."""


@dataclass(frozen=True)
class WakePayload:
    kind: WakeKind
    target_id: int
    fire_at: datetime


class WakeService(Protocol):
    def arm_exact_wake(self, key: str, when: datetime, payload: WakePayload) -> None: ...

    def cancel_wake(self, key: str) -> None: ...


class NotificationService(Protocol):
    def show_notification(self, notification_id: int, descriptor: NotificationDescriptor) -> None: ...

    def cancel_notification(self, notification_id: int) -> None: ...

    def create_channel(self, channel_id: str, attributes: ChannelAttributes) -> None: ...

    def delete_channel(self, channel_id: str) -> None: ...


class UserMessenger(Protocol):
    def show_remaining_time(self, total_minutes: int) -> None: ...

    def show_error(self, error: Exception) -> None: ...


class ClockStorage(Protocol):
    def get_alarms(self) -> list[Alarm]: ...

    def get_enabled_alarms(self) -> list[Alarm]: ...

    def get_alarms_by_sound_uri(self, uri: str) -> list[Alarm]: ...

    def get_alarm(self, alarm_id: int) -> Alarm | None: ...

    def insert_alarm(self, alarm: Alarm) -> int: ...

    def update_alarm(self, alarm: Alarm) -> bool: ...

    def delete_alarm(self, alarm_id: int) -> bool: ...

    def get_timer(self, timer_id: int) -> Timer | None: ...

    def insert_or_update_timer(self, timer: Timer) -> int: ...

    def delete_timer(self, timer_id: int) -> bool: ...
