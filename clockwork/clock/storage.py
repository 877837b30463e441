"""JSON-file store for alarms and timers."""

from __future__ import annotations

import copy
import json
import logging
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any

from .models import Alarm, Timer

LOGGER = logging.getLogger("clockwork.storage")


class JsonClockStore:
    """Blocking, thread-safe persistence; callers on the event loop go through ``asyncio.to_thread``."""

    def __init__(self, storage_path: Path) -> None:
        self._storage_path = storage_path
        self._lock = threading.Lock()
        self._alarms: dict[int, Alarm] = {}
        self._timers: dict[int, Timer] = {}
        self._next_alarm_id = 1
        self._next_timer_id = 1
        self._load()

    def get_alarms(self) -> list[Alarm]:
        with self._lock:
            return [copy.deepcopy(alarm) for alarm in self._alarms.values()]

    def get_enabled_alarms(self) -> list[Alarm]:
        with self._lock:
            return [copy.deepcopy(alarm) for alarm in self._alarms.values() if alarm.is_enabled]

    def get_alarms_by_sound_uri(self, uri: str) -> list[Alarm]:
        with self._lock:
            return [copy.deepcopy(alarm) for alarm in self._alarms.values() if alarm.sound_uri == uri]

    def get_alarm(self, alarm_id: int) -> Alarm | None:
        with self._lock:
            alarm = self._alarms.get(alarm_id)
            return copy.deepcopy(alarm) if alarm else None

    def insert_alarm(self, alarm: Alarm) -> int:
        with self._lock:
            alarm_id = self._next_alarm_id
            self._next_alarm_id += 1
            self._alarms[alarm_id] = replace(alarm, alarm_id=alarm_id)
            self._persist_locked()
        alarm.alarm_id = alarm_id
        return alarm_id

    def update_alarm(self, alarm: Alarm) -> bool:
        with self._lock:
            if alarm.alarm_id not in self._alarms:
                return False
            self._alarms[alarm.alarm_id] = copy.deepcopy(alarm)
            self._persist_locked()
            return True

    def delete_alarm(self, alarm_id: int) -> bool:
        with self._lock:
            if self._alarms.pop(alarm_id, None) is None:
                return False
            self._persist_locked()
            return True

    def get_timers(self) -> list[Timer]:
        with self._lock:
            return [copy.deepcopy(timer) for timer in self._timers.values()]

    def get_timer(self, timer_id: int) -> Timer | None:
        with self._lock:
            timer = self._timers.get(timer_id)
            return copy.deepcopy(timer) if timer else None

    def insert_or_update_timer(self, timer: Timer) -> int:
        with self._lock:
            timer_id = timer.timer_id
            if timer_id is None:
                timer_id = self._next_timer_id
            if timer_id >= self._next_timer_id:
                self._next_timer_id = timer_id + 1
            self._timers[timer_id] = replace(timer, timer_id=timer_id)
            self._persist_locked()
        return timer_id

    def delete_timer(self, timer_id: int) -> bool:
        with self._lock:
            if self._timers.pop(timer_id, None) is None:
                return False
            self._persist_locked()
            return True

    def _persist_locked(self) -> None:
        payload: dict[str, Any] = {
            "alarms": [alarm.to_json_dict() for alarm in self._alarms.values()],
            "timers": [timer.to_json_dict() for timer in self._timers.values()],
            "next_alarm_id": self._next_alarm_id,
            "next_timer_id": self._next_timer_id,
        }
        self._storage_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._storage_path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        tmp_path.replace(self._storage_path)

    def _load(self) -> None:
        if not self._storage_path.exists():
            return
        try:
            data = json.loads(self._storage_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            LOGGER.warning("Failed to load clock store %s: %s", self._storage_path, exc)
            return
        for item in data.get("alarms", []):
            try:
                alarm = Alarm.from_dict(item)
            except Exception:
                LOGGER.debug("Skipping invalid alarm entry: %s", item, exc_info=True)
                continue
            self._alarms[alarm.alarm_id] = alarm
        for item in data.get("timers", []):
            try:
                timer = Timer.from_dict(item)
            except Exception:
                LOGGER.debug("Skipping invalid timer entry: %s", item, exc_info=True)
                continue
            if timer.timer_id is not None:
                self._timers[timer.timer_id] = timer
        self._next_alarm_id = max([int(data.get("next_alarm_id") or 1), *(key + 1 for key in self._alarms)])
        self._next_timer_id = max([int(data.get("next_timer_id") or 1), *(key + 1 for key in self._timers)])
