"""Facade tying alarms, timers and snooze together behind one wake-up entry point."""

from __future__ import annotations

import asyncio
import logging

from clockwork.datetime_utils import MINUTES_PER_DAY, local_now
from clockwork.sound_library import SoundLibrary

from .alarm_scheduler import AlarmScheduler
from .config import ClockConfig
from .days import DayBitmask
from .models import Alarm, create_new_alarm
from .notifications import early_dismissal_notification_id
from .services import Clock, ClockStorage, NotificationService, UserMessenger, WakePayload, WakeService
from .snooze import SnoozeResolver
from .timer_engine import TimerEngine

LOGGER = logging.getLogger("clockwork.service")


class ClockService:
    """Manage alarm and timer lifecycles for one device."""

    def __init__(
        self,
        *,
        config: ClockConfig,
        storage: ClockStorage,
        wake_service: WakeService,
        notifications: NotificationService,
        messenger: UserMessenger,
        sound_library: SoundLibrary | None = None,
        clock: Clock = local_now,
    ) -> None:
        self.config = config
        self.storage = storage
        self.notifications = notifications
        self.sound_library = sound_library or SoundLibrary(config.sounds)
        self.snooze_resolver = SnoozeResolver(use_same_snooze=config.use_same_snooze)
        self.alarms = AlarmScheduler(
            wake_service=wake_service,
            notifications=notifications,
            messenger=messenger,
            storage=storage,
            snooze_resolver=self.snooze_resolver,
            snooze_minutes=config.snooze_minutes,
            clock=clock,
        )
        self.timers = TimerEngine(
            defaults=config.timer,
            wake_service=wake_service,
            notifications=notifications,
            messenger=messenger,
            storage=storage,
            clock=clock,
        )

    async def start(self) -> int:
        return await self.alarms.reschedule_all_enabled()

    async def on_wake(self, payload: WakePayload) -> None:
        if payload.kind == "alarm":
            await self.alarms.handle_alarm_fired(payload.target_id, payload.fire_at)
        elif payload.kind == "early_dismissal":
            await self.alarms.handle_early_dismissal(payload.target_id, payload.fire_at)
        elif payload.kind == "timer":
            await self.timers.handle_timer_fired(payload.target_id)
        else:
            LOGGER.debug("Unknown wake payload kind: %s", payload.kind)

    def new_alarm(self, time_in_minutes: int, days: DayBitmask) -> Alarm:
        return create_new_alarm(time_in_minutes, days, self.sound_library.default_alarm_sound())

    async def create_alarm(
        self,
        time_in_minutes: int,
        days: DayBitmask,
        *,
        label: str = "",
        vibrate: bool = False,
        enabled: bool = True,
        notify_user: bool = True,
    ) -> Alarm:
        if not 0 <= time_in_minutes < MINUTES_PER_DAY:
            raise ValueError(f"time_in_minutes out of range: {time_in_minutes}")
        alarm = self.new_alarm(time_in_minutes, days)
        alarm.label = label
        alarm.vibrate = vibrate
        alarm.is_enabled = enabled
        return await self.update_alarm(alarm, notify_user=notify_user)

    async def update_alarm(self, alarm: Alarm, *, notify_user: bool = True) -> Alarm:
        """Persist an alarm and bring its wake-ups in line with its enabled flag."""
        if alarm.is_saved:
            await asyncio.to_thread(self.storage.update_alarm, alarm)
        else:
            alarm.alarm_id = await asyncio.to_thread(self.storage.insert_alarm, alarm)
        if alarm.is_enabled:
            self.alarms.schedule(alarm, notify_user)
        else:
            self.alarms.cancel(alarm)
        return alarm

    async def delete_alarm(self, alarm_id: int) -> bool:
        alarm = await asyncio.to_thread(self.storage.get_alarm, alarm_id)
        if alarm is None:
            return False
        self.alarms.cancel(alarm)
        for notification_id in (alarm_id, early_dismissal_notification_id(alarm_id)):
            try:
                self.notifications.cancel_notification(notification_id)
            except Exception:
                LOGGER.debug("Failed to hide notification %s", notification_id, exc_info=True)
        return await asyncio.to_thread(self.storage.delete_alarm, alarm_id)

    async def sorted_alarms(self) -> list[Alarm]:
        alarms = await asyncio.to_thread(self.storage.get_alarms)
        first_day = self.config.first_day_of_week
        return sorted(alarms, key=lambda alarm: (alarm.days.first_day_order(first_day), alarm.time_in_minutes))

    async def check_alarms_with_deleted_sound(self, uri: str) -> int:
        """Point alarms whose sound file disappeared back at the default sound."""
        default_sound = self.sound_library.default_alarm_sound()
        alarms = await asyncio.to_thread(self.storage.get_alarms_by_sound_uri, uri)
        for alarm in alarms:
            alarm.sound_title = default_sound.title
            alarm.sound_uri = default_sound.uri
            await asyncio.to_thread(self.storage.update_alarm, alarm)
        if alarms:
            LOGGER.info("Reset %d alarm(s) using deleted sound %s", len(alarms), uri)
        return len(alarms)
