"""MQTT command processor for alarms and timers.

Commands arrive as JSON objects on ``<base>/command`` with an ``action`` key,
for example ``{"action": "snooze", "alarm_id": 3, "minutes": 5}``. Messages are
received on the paho network thread and handed to the event loop.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any

from clockwork.datetime_utils import format_minutes, parse_time_in_minutes, serialize_dt
from clockwork.utils import coerce_int

from .days import DayBitmask
from .models import Timer

if TYPE_CHECKING:
    from .mqtt import ClockMqtt
    from .service import ClockService

LOGGER = logging.getLogger(__name__)


class ClockCommandProcessor:
    """Route MQTT commands to the clock service.

    Supported actions:
    - Alarms: create_alarm, dismiss, dismiss_upcoming, snooze, reschedule,
              next_alarm, delete_alarm
    - Timers: start_timer, pause_timer, resume_timer, reset_timer, delete_timer
    """

    def __init__(
        self,
        service: ClockService,
        mqtt: ClockMqtt,
        base_topic: str,
        logger: logging.Logger | None = None,
    ) -> None:
        self.service = service
        self.mqtt = mqtt
        self.logger = logger or LOGGER
        self._command_topic = f"{base_topic}/command"
        self._next_alarm_topic = f"{base_topic}/next_alarm"
        self._timers_topic = f"{base_topic}/timers"
        self._loop: asyncio.AbstractEventLoop | None = None

    def set_event_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    @property
    def command_topic(self) -> str:
        return self._command_topic

    def handle_command_message(self, payload: str) -> None:
        """MQTT callback: parse the JSON payload and schedule processing on the loop."""
        if not self._loop:
            return
        try:
            data = json.loads(payload)
        except json.JSONDecodeError:
            self.logger.debug("[commands] Ignoring malformed command: %s", payload)
            return
        asyncio.run_coroutine_threadsafe(self._process_command(data), self._loop)

    async def _process_command(self, payload: Any) -> None:
        if not isinstance(payload, dict):
            return
        action = str(payload.get("action") or "").lower()
        if not action:
            return
        try:
            await self._dispatch_action(action, payload)
        except Exception as exc:
            self.logger.debug("[commands] Command %s failed: %s", action, exc)

    async def _dispatch_action(self, action: str, payload: dict[str, Any]) -> None:
        # Alarm actions
        if action in {"create_alarm", "add_alarm"}:
            await self._create_alarm(payload)
        elif action in {"dismiss", "stop"}:
            await self.service.alarms.dismiss_alarm(self._require_id(payload, "alarm_id"))
        elif action == "dismiss_upcoming":
            await self.service.alarms.dismiss_upcoming(self._require_id(payload, "alarm_id"))
        elif action == "snooze":
            await self._snooze_alarm(payload)
        elif action == "reschedule":
            await self.service.start()
        elif action == "next_alarm":
            await self._publish_next_alarm()
        elif action == "delete_alarm":
            await self.service.delete_alarm(self._require_id(payload, "alarm_id"))

        # Timer actions
        elif action == "start_timer":
            await self._start_timer(payload)
        elif action == "pause_timer":
            self._publish_timer(await self.service.timers.pause(await self._load_timer(payload)))
        elif action == "resume_timer":
            self._publish_timer(await self.service.timers.resume(await self._load_timer(payload)))
        elif action == "reset_timer":
            self._publish_timer(await self.service.timers.reset(await self._load_timer(payload)))
        elif action == "delete_timer":
            timer = await self._load_timer(payload)
            if await self.service.timers.delete(timer):
                self.mqtt.publish(f"{self._timers_topic}/{timer.timer_id}", "", retain=True)
        else:
            self.logger.debug("[commands] Unknown action: %s", action)

    async def _create_alarm(self, payload: dict[str, Any]) -> None:
        time_text = payload.get("time") or payload.get("time_of_day")
        if not time_text:
            raise ValueError("alarm time is required")
        raw_days = payload.get("days") or ""
        if isinstance(raw_days, list):
            raw_days = ",".join(str(day) for day in raw_days)
        days = DayBitmask.parse(str(raw_days))
        if days is None:
            raise ValueError(f"unrecognized days: {payload.get('days')}")
        await self.service.create_alarm(
            parse_time_in_minutes(str(time_text)),
            days,
            label=str(payload.get("label") or ""),
            vibrate=bool(payload.get("vibrate", False)),
        )

    async def _snooze_alarm(self, payload: dict[str, Any]) -> None:
        alarm_id = self._require_id(payload, "alarm_id")
        minutes = coerce_int(payload.get("minutes"))
        await self.service.alarms.snooze(alarm_id, minutes=minutes if minutes and minutes > 0 else None)

    async def _publish_next_alarm(self) -> None:
        closest = await self.service.alarms.closest_enabled_alarm()
        info: dict[str, Any] | None = None
        if closest is not None:
            alarm, when = closest
            info = {
                "alarm_id": alarm.alarm_id,
                "label": alarm.label,
                "time": format_minutes(alarm.time_in_minutes),
                "fire_at": serialize_dt(when),
            }
        self.mqtt.publish(self._next_alarm_topic, json.dumps({"next_alarm": info}), retain=True)

    async def _start_timer(self, payload: dict[str, Any]) -> None:
        if payload.get("timer_id") is not None:
            timer = await self._load_timer(payload)
        else:
            seconds = coerce_int(payload.get("seconds") or payload.get("duration"))
            if seconds is not None and seconds <= 0:
                raise ValueError("timer duration must be positive")
            label = payload.get("label")
            timer = self.service.timers.create_timer(seconds, None if label is None else str(label))
        self._publish_timer(await self.service.timers.start(timer))

    async def _load_timer(self, payload: dict[str, Any]) -> Timer:
        timer_id = self._require_id(payload, "timer_id")
        timer = await asyncio.to_thread(self.service.storage.get_timer, timer_id)
        if timer is None:
            raise ValueError(f"unknown timer {timer_id}")
        return timer

    def _publish_timer(self, timer: Timer) -> None:
        if timer.timer_id is None:
            return
        state = {
            **timer.to_json_dict(),
            "remaining_seconds": round(self.service.timers.remaining(timer), 1),
        }
        self.mqtt.publish(f"{self._timers_topic}/{timer.timer_id}", json.dumps(state), retain=True)

    @staticmethod
    def _require_id(payload: dict[str, Any], key: str) -> int:
        value = coerce_int(payload.get(key))
        if value is None:
            raise ValueError(f"{key} is required")
        return value
