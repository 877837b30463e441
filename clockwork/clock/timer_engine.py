"""Countdown timer state machine and notification-channel identity."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime, timedelta

from clockwork.datetime_utils import local_now

from .config import TimerDefaults
from .models import Timer, TimerState
from .notifications import build_timer_channel, build_timer_notification, timer_notification_id
from .services import Clock, ClockStorage, NotificationService, UserMessenger, WakePayload, WakeService

LOGGER = logging.getLogger("clockwork.timer_engine")


class TimerStateError(ValueError):
    """Raised when a transition is not allowed from the timer's current state."""


def timer_wake_key(timer_id: int) -> str:
    return f"timer-{timer_id}"


def derive_channel_id(sound_uri: str, now: datetime) -> str:
    """Fresh per first expiry; the epoch-millis suffix keeps channels of different timers apart."""
    return f"clockwork_timer_{sound_uri}_{int(now.timestamp() * 1000)}"


class TimerEngine:
    """Drive timers through idle, running, paused and expired states."""

    def __init__(
        self,
        *,
        defaults: TimerDefaults,
        wake_service: WakeService,
        notifications: NotificationService,
        messenger: UserMessenger,
        storage: ClockStorage,
        clock: Clock = local_now,
    ) -> None:
        self._defaults = defaults
        self._wake = wake_service
        self._notifications = notifications
        self._messenger = messenger
        self._storage = storage
        self._clock = clock

    def create_timer(self, duration_seconds: int | None = None, label: str | None = None) -> Timer:
        return Timer(
            timer_id=None,
            duration_seconds=duration_seconds or self._defaults.seconds,
            state=TimerState.IDLE,
            vibrate=self._defaults.vibrate,
            sound_uri=self._defaults.sound_uri,
            sound_title=self._defaults.sound_title,
            label=self._defaults.label if label is None else label,
            created_at=self._clock(),
            channel_id=None,
        )

    async def save(self, timer: Timer) -> Timer:
        await self._persist(timer)
        return timer

    async def _persist(self, timer: Timer) -> int:
        timer_id = await asyncio.to_thread(self._storage.insert_or_update_timer, timer)
        timer.timer_id = timer_id
        return timer_id

    def remaining(self, timer: Timer, now: datetime | None = None) -> float:
        if timer.state is TimerState.EXPIRED:
            return 0.0
        remaining = float(timer.remaining_seconds or 0.0)
        if timer.state is TimerState.RUNNING and timer.reference_at is not None:
            elapsed = ((now or self._clock()) - timer.reference_at).total_seconds()
            return max(0.0, remaining - elapsed)
        return remaining

    async def start(self, timer: Timer) -> Timer:
        if timer.state is TimerState.RUNNING:
            return timer
        if timer.state not in (TimerState.IDLE, TimerState.PAUSED):
            raise TimerStateError(f"Cannot start a timer that is {timer.state.value}")
        previous_state = timer.state
        if timer.state is TimerState.IDLE:
            timer.remaining_seconds = float(timer.duration_seconds)
        now = self._clock()
        timer.state = TimerState.RUNNING
        timer.reference_at = now
        timer_id = await self._persist(timer)
        fire_at = now + timedelta(seconds=timer.remaining_seconds or 0.0)
        try:
            self._wake.arm_exact_wake(
                timer_wake_key(timer_id),
                fire_at,
                WakePayload(kind="timer", target_id=timer_id, fire_at=fire_at),
            )
        except Exception as exc:
            LOGGER.warning("Failed to arm timer %s: %s", timer_id, exc)
            timer.state = previous_state
            timer.reference_at = None
            await self.save(timer)
            self._messenger.show_error(exc)
            return timer
        LOGGER.debug("Timer %s running until %s", timer_id, fire_at.isoformat())
        return timer

    async def resume(self, timer: Timer) -> Timer:
        if timer.state is not TimerState.PAUSED:
            raise TimerStateError(f"Cannot resume a timer that is {timer.state.value}")
        return await self.start(timer)

    async def pause(self, timer: Timer) -> Timer:
        if timer.state is not TimerState.RUNNING:
            raise TimerStateError(f"Cannot pause a timer that is {timer.state.value}")
        timer.remaining_seconds = self.remaining(timer)
        timer.state = TimerState.PAUSED
        timer.reference_at = None
        self._cancel_wake(timer)
        return await self.save(timer)

    async def expire(self, timer: Timer) -> Timer:
        if timer.state not in (TimerState.RUNNING, TimerState.EXPIRED):
            raise TimerStateError(f"Cannot expire a timer that is {timer.state.value}")
        self._cancel_wake(timer)
        timer.state = TimerState.EXPIRED
        timer.remaining_seconds = 0.0
        timer.reference_at = None
        channel_id = timer.channel_id or derive_channel_id(timer.sound_uri, self._clock())
        timer.channel_id = channel_id
        # The channel id must be on record before the channel exists.
        timer_id = await self._persist(timer)
        with contextlib.suppress(Exception):
            self._notifications.delete_channel(channel_id)
        try:
            self._notifications.create_channel(channel_id, build_timer_channel(timer))
            self._notifications.show_notification(
                timer_notification_id(timer_id), build_timer_notification(timer, channel_id)
            )
        except Exception as exc:
            LOGGER.warning("Failed to show timer %s notification: %s", timer_id, exc)
            self._messenger.show_error(exc)
        return timer

    async def reset(self, timer: Timer) -> Timer:
        self._cancel_wake(timer)
        self._clear_notification(timer)
        timer.state = TimerState.IDLE
        timer.remaining_seconds = float(timer.duration_seconds)
        timer.reference_at = None
        return await self.save(timer)

    async def delete(self, timer: Timer) -> bool:
        self._cancel_wake(timer)
        self._clear_notification(timer)
        if timer.timer_id is None:
            return False
        return await asyncio.to_thread(self._storage.delete_timer, timer.timer_id)

    async def handle_timer_fired(self, timer_id: int) -> bool:
        timer = await asyncio.to_thread(self._storage.get_timer, timer_id)
        if timer is None or timer.state is not TimerState.RUNNING:
            LOGGER.debug("Ignoring wake-up for timer %s", timer_id)
            return False
        await self.expire(timer)
        return True

    def _cancel_wake(self, timer: Timer) -> None:
        if timer.timer_id is None:
            return
        try:
            self._wake.cancel_wake(timer_wake_key(timer.timer_id))
        except Exception:
            LOGGER.debug("Failed to cancel wake-up for timer %s", timer.timer_id, exc_info=True)

    def _clear_notification(self, timer: Timer) -> None:
        if timer.timer_id is not None:
            with contextlib.suppress(Exception):
                self._notifications.cancel_notification(timer_notification_id(timer.timer_id))
        if timer.channel_id:
            with contextlib.suppress(Exception):
                self._notifications.delete_channel(timer.channel_id)
