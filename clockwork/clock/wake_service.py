"""In-process wake service backed by the asyncio event loop.

Registrations live only as long as the process; ``AlarmScheduler.reschedule_all_enabled``
restores them on start-up.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from clockwork.datetime_utils import local_now

from .services import Clock, WakePayload, WakeServiceError

LOGGER = logging.getLogger("clockwork.wake_service")

WakeHandler = Callable[[WakePayload], Awaitable[None]]


class AsyncioWakeService:
    """One pending callback per key; re-arming a key replaces its previous registration."""

    def __init__(self, handler: WakeHandler | None = None, *, clock: Clock = local_now) -> None:
        self._handler = handler
        self._clock = clock
        self._loop: asyncio.AbstractEventLoop | None = None
        self._handles: dict[str, asyncio.TimerHandle] = {}
        self._payloads: dict[str, WakePayload] = {}
        self._tasks: set[asyncio.Task] = set()

    def set_handler(self, handler: WakeHandler) -> None:
        self._handler = handler

    def start(self) -> None:
        self._loop = asyncio.get_running_loop()

    async def stop(self) -> None:
        for handle in self._handles.values():
            handle.cancel()
        self._handles.clear()
        self._payloads.clear()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._loop = None

    @property
    def running(self) -> bool:
        return self._loop is not None and not self._loop.is_closed()

    def pending(self) -> dict[str, WakePayload]:
        return dict(self._payloads)

    def arm_exact_wake(self, key: str, when: datetime, payload: WakePayload) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            raise WakeServiceError("Wake service is not running")
        self.cancel_wake(key)
        delay = max(0.0, (when - self._clock()).total_seconds())
        self._handles[key] = loop.call_later(delay, self._fire, key, payload)
        self._payloads[key] = payload

    def cancel_wake(self, key: str) -> None:
        handle = self._handles.pop(key, None)
        self._payloads.pop(key, None)
        if handle:
            handle.cancel()

    def _fire(self, key: str, payload: WakePayload) -> None:
        self._handles.pop(key, None)
        self._payloads.pop(key, None)
        handler = self._handler
        if handler is None or self._loop is None:
            LOGGER.debug("No wake handler registered; dropping %s", key)
            return
        task = self._loop.create_task(self._dispatch(handler, key, payload))
        self._track(task)

    async def _dispatch(self, handler: WakeHandler, key: str, payload: WakePayload) -> None:
        try:
            await handler(payload)
        except Exception:
            LOGGER.exception("Wake handler failed for %s", key)

    def _track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)

        def _cleanup(_task: asyncio.Task) -> None:
            self._tasks.discard(_task)

        task.add_done_callback(_cleanup)
