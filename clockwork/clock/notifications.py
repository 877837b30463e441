"""Notification and channel descriptors for ringing alarms, upcoming alarms and expired timers."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Literal

from clockwork.datetime_utils import format_minutes, minutes_of_day
from clockwork.sound_library import SILENT

from .models import Alarm, Timer
from .snooze import SnoozeTarget

NotificationCategory = Literal["alarm", "early_dismissal", "timer"]
ActionName = Literal["snooze", "dismiss", "dismiss_upcoming", "reset_timer"]

EARLY_DISMISSAL_NOTIFICATION_BASE = 1_000_000
TIMER_NOTIFICATION_BASE = 2_000_000

VIBRATION_PATTERN_MS = (500, 500)


@dataclass(frozen=True)
class NotificationAction:
    action: ActionName
    handler: str
    request_key: str
    target_id: int


@dataclass(frozen=True)
class NotificationDescriptor:
    title: str
    text: str
    channel_id: str
    category: NotificationCategory
    sound_uri: str | None = None
    vibrate: bool = False
    insistent: bool = False
    actions: tuple[NotificationAction, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["actions"] = [asdict(action) for action in self.actions]
        data["vibration_pattern"] = list(VIBRATION_PATTERN_MS) if self.vibrate else []
        return data


@dataclass(frozen=True)
class ChannelAttributes:
    name: str
    sound_uri: str | None
    vibrate: bool
    importance: str = "high"
    bypass_dnd: bool = True

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _audible_uri(sound_uri: str) -> str | None:
    return None if not sound_uri or sound_uri == SILENT else sound_uri


def early_dismissal_notification_id(alarm_id: int) -> int:
    return EARLY_DISMISSAL_NOTIFICATION_BASE + alarm_id


def timer_notification_id(timer_id: int) -> int:
    return TIMER_NOTIFICATION_BASE + timer_id


def alarm_title(alarm: Alarm) -> str:
    return alarm.label or "Alarm"


def alarm_channel_id(alarm: Alarm) -> str:
    """Alarms sharing a sound and vibration setting share a channel."""
    return f"clockwork_alarm_{alarm.sound_uri}_{str(alarm.vibrate).lower()}"


def build_alarm_channel(alarm: Alarm) -> ChannelAttributes:
    return ChannelAttributes(
        name=alarm_title(alarm),
        sound_uri=_audible_uri(alarm.sound_uri),
        vibrate=alarm.vibrate,
    )


def build_alarm_notification(alarm: Alarm, snooze: SnoozeTarget, now: datetime) -> NotificationDescriptor:
    return NotificationDescriptor(
        title=alarm_title(alarm),
        text=format_minutes(minutes_of_day(now)),
        channel_id=alarm_channel_id(alarm),
        category="alarm",
        sound_uri=_audible_uri(alarm.sound_uri),
        vibrate=alarm.vibrate,
        insistent=True,
        actions=(
            NotificationAction(
                action="snooze",
                handler=snooze.handler,
                request_key=snooze.request_key,
                target_id=alarm.alarm_id,
            ),
            NotificationAction(
                action="dismiss",
                handler="receiver",
                request_key=f"dismiss-{alarm.alarm_id}",
                target_id=alarm.alarm_id,
            ),
        ),
    )


def build_early_dismissal_notification(alarm: Alarm, trigger_at: datetime) -> NotificationDescriptor:
    return NotificationDescriptor(
        title=f"Upcoming: {alarm_title(alarm)}",
        text=format_minutes(minutes_of_day(trigger_at)),
        channel_id="clockwork_early_dismissal",
        category="early_dismissal",
        actions=(
            NotificationAction(
                action="dismiss_upcoming",
                handler="receiver",
                request_key=f"dismiss-upcoming-{alarm.alarm_id}",
                target_id=alarm.alarm_id,
            ),
        ),
    )


def build_timer_channel(timer: Timer) -> ChannelAttributes:
    return ChannelAttributes(
        name="Timer",
        sound_uri=_audible_uri(timer.sound_uri),
        vibrate=timer.vibrate,
    )


def build_timer_notification(timer: Timer, channel_id: str) -> NotificationDescriptor:
    timer_id = timer.timer_id or 0
    return NotificationDescriptor(
        title=timer.label or "Timer",
        text="Time expired",
        channel_id=channel_id,
        category="timer",
        sound_uri=_audible_uri(timer.sound_uri),
        vibrate=timer.vibrate,
        insistent=True,
        actions=(
            NotificationAction(
                action="reset_timer",
                handler="receiver",
                request_key=f"timer-{timer_id}",
                target_id=timer_id,
            ),
        ),
    )
