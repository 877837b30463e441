"""Alarm and timer records shared by the scheduler, timer engine and stores."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from clockwork.datetime_utils import deserialize_dt, local_now, serialize_dt
from clockwork.sound_library import SILENT, SoundInfo

from .days import DayBitmask


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    EXPIRED = "expired"


@dataclass
class Alarm:
    alarm_id: int
    time_in_minutes: int
    days: DayBitmask
    is_enabled: bool
    vibrate: bool
    sound_title: str
    sound_uri: str
    label: str = ""

    @property
    def is_saved(self) -> bool:
        return self.alarm_id > 0

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "alarm_id": self.alarm_id,
            "time_in_minutes": self.time_in_minutes,
            "days": int(self.days),
            "is_enabled": self.is_enabled,
            "vibrate": self.vibrate,
            "sound_title": self.sound_title,
            "sound_uri": self.sound_uri,
            "label": self.label,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Alarm:
        return cls(
            alarm_id=int(payload["alarm_id"]),
            time_in_minutes=int(payload["time_in_minutes"]),
            days=DayBitmask(int(payload.get("days") or 0)),
            is_enabled=bool(payload.get("is_enabled", False)),
            vibrate=bool(payload.get("vibrate", False)),
            sound_title=payload.get("sound_title") or "",
            sound_uri=payload.get("sound_uri") or SILENT,
            label=payload.get("label") or "",
        )


def create_new_alarm(time_in_minutes: int, days: DayBitmask, sound: SoundInfo) -> Alarm:
    """Unsaved, disabled alarm using the device default sound."""
    return Alarm(
        alarm_id=0,
        time_in_minutes=time_in_minutes,
        days=days,
        is_enabled=False,
        vibrate=False,
        sound_title=sound.title,
        sound_uri=sound.uri,
        label="",
    )


@dataclass
class Timer:
    timer_id: int | None
    duration_seconds: int
    state: TimerState
    vibrate: bool
    sound_uri: str
    sound_title: str
    label: str
    created_at: datetime
    channel_id: str | None = None
    remaining_seconds: float | None = None
    reference_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.duration_seconds <= 0:
            raise ValueError("Timer duration must be positive")
        if self.remaining_seconds is None:
            self.remaining_seconds = float(self.duration_seconds)

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "timer_id": self.timer_id,
            "duration_seconds": self.duration_seconds,
            "state": self.state.value,
            "vibrate": self.vibrate,
            "sound_uri": self.sound_uri,
            "sound_title": self.sound_title,
            "label": self.label,
            "created_at": serialize_dt(self.created_at),
            "channel_id": self.channel_id,
            "remaining_seconds": self.remaining_seconds,
            "reference_at": serialize_dt(self.reference_at) if self.reference_at else None,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Timer:
        timer_id = payload.get("timer_id")
        return cls(
            timer_id=int(timer_id) if timer_id is not None else None,
            duration_seconds=int(payload["duration_seconds"]),
            state=TimerState(payload.get("state") or TimerState.IDLE.value),
            vibrate=bool(payload.get("vibrate", False)),
            sound_uri=payload.get("sound_uri") or SILENT,
            sound_title=payload.get("sound_title") or "",
            label=payload.get("label") or "",
            created_at=deserialize_dt(payload.get("created_at")) or local_now(),
            channel_id=payload.get("channel_id"),
            remaining_seconds=payload.get("remaining_seconds"),
            reference_at=deserialize_dt(payload.get("reference_at")),
        )
