"""Alarm scheduling: paired main/early-dismissal wake-ups, firing, dismissal and snooze."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from clockwork.datetime_utils import local_now, minutes_of_day

from .models import Alarm
from .next_trigger import resolve_next_trigger
from .notifications import (
    alarm_channel_id,
    build_alarm_channel,
    build_alarm_notification,
    build_early_dismissal_notification,
    early_dismissal_notification_id,
)
from .services import Clock, ClockStorage, NotificationService, UserMessenger, WakePayload, WakeService
from .snooze import SnoozeResolver

LOGGER = logging.getLogger("clockwork.alarm_scheduler")

EARLY_DISMISSAL_LEAD = timedelta(minutes=10)
MIN_WAKE_DELAY = timedelta(milliseconds=500)


def early_dismissal_time(trigger_at: datetime, now: datetime) -> datetime:
    """Ten minutes ahead of the alarm, but never sooner than half a second from now."""
    return max(trigger_at - EARLY_DISMISSAL_LEAD, now + MIN_WAKE_DELAY)


@dataclass(frozen=True)
class AlarmTriggers:
    """The two wake registrations every armed alarm owns; armed and cancelled together."""

    alarm_id: int

    @property
    def main_key(self) -> str:
        return f"alarm-{self.alarm_id}"

    @property
    def early_key(self) -> str:
        return f"alarm-{self.alarm_id}-early-dismissal"

    def arm(self, wake_service: WakeService, trigger_at: datetime, early_at: datetime) -> None:
        wake_service.arm_exact_wake(
            self.main_key,
            trigger_at,
            WakePayload(kind="alarm", target_id=self.alarm_id, fire_at=trigger_at),
        )
        # The early payload carries the main trigger instant so the upcoming notice can show it.
        wake_service.arm_exact_wake(
            self.early_key,
            early_at,
            WakePayload(kind="early_dismissal", target_id=self.alarm_id, fire_at=trigger_at),
        )

    def cancel(self, wake_service: WakeService) -> None:
        wake_service.cancel_wake(self.main_key)
        wake_service.cancel_wake(self.early_key)


class AlarmScheduler:
    """Arm, re-arm and cancel alarms against the wake service."""

    def __init__(
        self,
        *,
        wake_service: WakeService,
        notifications: NotificationService,
        messenger: UserMessenger,
        storage: ClockStorage,
        snooze_resolver: SnoozeResolver,
        snooze_minutes: int = 10,
        clock: Clock = local_now,
    ) -> None:
        self._wake = wake_service
        self._notifications = notifications
        self._messenger = messenger
        self._storage = storage
        self._snooze = snooze_resolver
        self._snooze_minutes = max(1, snooze_minutes)
        self._clock = clock

    def schedule(self, alarm: Alarm, notify_user: bool = False, *, now: datetime | None = None) -> datetime | None:
        """Arm both wake-ups for the next occurrence; returns the trigger instant or None on failure."""
        reference = now or self._clock()
        trigger_at = resolve_next_trigger(alarm.time_in_minutes, alarm.days, now=reference)
        triggers = AlarmTriggers(alarm.alarm_id)
        try:
            triggers.arm(self._wake, trigger_at, early_dismissal_time(trigger_at, reference))
        except Exception as exc:
            LOGGER.warning("Failed to arm alarm %s for %s: %s", alarm.alarm_id, trigger_at.isoformat(), exc)
            with contextlib.suppress(Exception):
                triggers.cancel(self._wake)
            self._messenger.show_error(exc)
            return None
        LOGGER.debug("Alarm %s armed for %s", alarm.alarm_id, trigger_at.isoformat())
        if notify_user:
            total_minutes = int((trigger_at - reference).total_seconds() // 60)
            self._messenger.show_remaining_time(total_minutes)
        return trigger_at

    def cancel(self, alarm: Alarm) -> None:
        try:
            AlarmTriggers(alarm.alarm_id).cancel(self._wake)
        except Exception:
            LOGGER.debug("Failed to cancel wake-ups for alarm %s", alarm.alarm_id, exc_info=True)

    async def get_enabled_alarms(self) -> list[Alarm]:
        # Storage reads may block; keep them off the event loop.
        return await asyncio.to_thread(self._storage.get_enabled_alarms)

    async def reschedule_all_enabled(self) -> int:
        """Re-arm every enabled alarm, e.g. after a restart dropped all wake registrations."""
        alarms = await self.get_enabled_alarms()
        now = self._clock()
        current_minutes = minutes_of_day(now)
        scheduled = 0
        for alarm in alarms:
            if alarm.days.is_today and alarm.time_in_minutes <= current_minutes:
                continue
            if self.schedule(alarm, False, now=now) is not None:
                scheduled += 1
        LOGGER.info("Rescheduled %d of %d enabled alarms", scheduled, len(alarms))
        return scheduled

    async def closest_enabled_alarm(self, now: datetime | None = None) -> tuple[Alarm, datetime] | None:
        alarms = await self.get_enabled_alarms()
        reference = now or self._clock()
        upcoming = [(resolve_next_trigger(alarm.time_in_minutes, alarm.days, now=reference), alarm) for alarm in alarms]
        upcoming = [item for item in upcoming if item[0] > reference]
        if not upcoming:
            return None
        when, alarm = min(upcoming, key=lambda item: item[0])
        return alarm, when

    async def handle_alarm_fired(self, alarm_id: int, fired_at: datetime | None = None) -> bool:
        alarm = await self._load(alarm_id)
        if alarm is None or not alarm.is_enabled:
            LOGGER.debug("Ignoring wake-up for missing or disabled alarm %s", alarm_id)
            return False
        now = self._clock()
        self._hide(early_dismissal_notification_id(alarm_id))
        self._show_alarm_notification(alarm, now)
        if alarm.days.is_repeating:
            # Early wake-ups must not re-arm the occurrence that just rang.
            reference = max(now, fired_at) if fired_at else now
            self.schedule(alarm, False, now=reference)
        return True

    async def handle_early_dismissal(self, alarm_id: int, trigger_at: datetime) -> bool:
        alarm = await self._load(alarm_id)
        if alarm is None or not alarm.is_enabled:
            return False
        descriptor = build_early_dismissal_notification(alarm, trigger_at)
        try:
            self._notifications.show_notification(early_dismissal_notification_id(alarm_id), descriptor)
        except Exception as exc:
            LOGGER.warning("Failed to show upcoming alarm %s: %s", alarm_id, exc)
            self._messenger.show_error(exc)
            return False
        return True

    async def dismiss_alarm(self, alarm_id: int) -> bool:
        """Dismiss a ringing alarm; one-shot alarms are switched off."""
        self._hide(alarm_id)
        alarm = await self._load(alarm_id)
        if alarm is None:
            return False
        if not alarm.days.is_repeating:
            self.cancel(alarm)
            await self._disable(alarm)
        return True

    async def dismiss_upcoming(self, alarm_id: int) -> bool:
        """Skip the next occurrence before it rings."""
        self._hide(early_dismissal_notification_id(alarm_id))
        alarm = await self._load(alarm_id)
        if alarm is None:
            return False
        self.cancel(alarm)
        if alarm.days.is_repeating and alarm.is_enabled:
            skipped = resolve_next_trigger(alarm.time_in_minutes, alarm.days, now=self._clock())
            self.schedule(alarm, False, now=skipped)
        else:
            await self._disable(alarm)
        return True

    async def snooze(self, alarm_id: int, minutes: int | None = None) -> datetime | None:
        alarm = await self._load(alarm_id)
        if alarm is None:
            return None
        self._hide(alarm_id)
        target = self._clock() + timedelta(minutes=max(1, minutes or self._snooze_minutes))
        triggers = AlarmTriggers(alarm_id)
        try:
            self._wake.cancel_wake(triggers.early_key)
            self._wake.arm_exact_wake(
                triggers.main_key,
                target,
                WakePayload(kind="alarm", target_id=alarm_id, fire_at=target),
            )
        except Exception as exc:
            LOGGER.warning("Failed to snooze alarm %s: %s", alarm_id, exc)
            self._messenger.show_error(exc)
            return None
        LOGGER.info("Alarm %s snoozed until %s", alarm_id, target.isoformat())
        return target

    def _show_alarm_notification(self, alarm: Alarm, now: datetime) -> None:
        descriptor = build_alarm_notification(alarm, self._snooze.get_snooze_target(alarm), now)
        try:
            self._notifications.create_channel(alarm_channel_id(alarm), build_alarm_channel(alarm))
            self._notifications.show_notification(alarm.alarm_id, descriptor)
        except Exception as exc:
            LOGGER.warning("Failed to show alarm %s notification: %s", alarm.alarm_id, exc)
            self._messenger.show_error(exc)

    def _hide(self, notification_id: int) -> None:
        try:
            self._notifications.cancel_notification(notification_id)
        except Exception:
            LOGGER.debug("Failed to hide notification %s", notification_id, exc_info=True)

    async def _load(self, alarm_id: int) -> Alarm | None:
        return await asyncio.to_thread(self._storage.get_alarm, alarm_id)

    async def _disable(self, alarm: Alarm) -> None:
        if not alarm.is_enabled:
            return
        alarm.is_enabled = False
        await asyncio.to_thread(self._storage.update_alarm, alarm)
        LOGGER.info("Alarm %s disabled after dismissal", alarm.alarm_id)
