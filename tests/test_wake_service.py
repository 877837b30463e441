"""Tests for the asyncio-backed wake service."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from clockwork.clock.services import WakePayload, WakeServiceError
from clockwork.clock.wake_service import AsyncioWakeService
from clockwork.datetime_utils import local_now

pytestmark = pytest.mark.anyio


def _payload(target_id: int = 1) -> WakePayload:
    return WakePayload(kind="alarm", target_id=target_id, fire_at=local_now())


async def test_arm_fires_handler():
    handler = AsyncMock()
    service = AsyncioWakeService(handler)
    service.start()
    payload = _payload()

    service.arm_exact_wake("alarm-1", local_now() + timedelta(milliseconds=10), payload)
    await asyncio.sleep(0.1)

    handler.assert_awaited_once_with(payload)
    assert service.pending() == {}
    await service.stop()


async def test_past_instant_fires_immediately():
    handler = AsyncMock()
    service = AsyncioWakeService(handler)
    service.start()

    service.arm_exact_wake("alarm-1", local_now() - timedelta(minutes=5), _payload())
    await asyncio.sleep(0.05)

    handler.assert_awaited_once()
    await service.stop()


async def test_rearming_key_replaces_previous():
    handler = AsyncMock()
    service = AsyncioWakeService(handler)
    service.start()
    first, second = _payload(1), _payload(2)

    service.arm_exact_wake("alarm-1", local_now() + timedelta(milliseconds=20), first)
    service.arm_exact_wake("alarm-1", local_now() + timedelta(milliseconds=30), second)
    assert service.pending() == {"alarm-1": second}
    await asyncio.sleep(0.1)

    handler.assert_awaited_once_with(second)
    await service.stop()


async def test_cancel_prevents_firing():
    handler = AsyncMock()
    service = AsyncioWakeService(handler)
    service.start()

    service.arm_exact_wake("alarm-1", local_now() + timedelta(milliseconds=20), _payload())
    service.cancel_wake("alarm-1")
    service.cancel_wake("never-armed")
    await asyncio.sleep(0.06)

    handler.assert_not_awaited()
    await service.stop()


async def test_arm_before_start_raises():
    service = AsyncioWakeService(AsyncMock())
    with pytest.raises(WakeServiceError):
        service.arm_exact_wake("alarm-1", local_now(), _payload())


async def test_handler_errors_are_logged(caplog):
    handler = AsyncMock(side_effect=RuntimeError("boom"))
    service = AsyncioWakeService(handler)
    service.start()

    service.arm_exact_wake("alarm-1", local_now(), _payload())
    await asyncio.sleep(0.05)

    assert "Wake handler failed for alarm-1" in caplog.text
    await service.stop()


async def test_stop_drops_pending_registrations():
    handler = AsyncMock()
    service = AsyncioWakeService(handler)
    service.start()
    service.arm_exact_wake("timer-1", local_now() + timedelta(milliseconds=20), _payload())

    await service.stop()
    await asyncio.sleep(0.05)

    assert not service.running
    assert service.pending() == {}
    handler.assert_not_awaited()


async def test_handler_can_be_set_after_construction():
    handler = AsyncMock()
    service = AsyncioWakeService()
    service.set_handler(handler)
    service.start()

    service.arm_exact_wake("alarm-1", local_now(), _payload())
    await asyncio.sleep(0.05)

    handler.assert_awaited_once()
    await service.stop()


async def test_arm_after_stop_raises():
    service = AsyncioWakeService(AsyncMock())
    service.start()
    await service.stop()
    with pytest.raises(WakeServiceError, match="not running"):
        service.arm_exact_wake("alarm-1", local_now(), _payload())


async def test_handler_is_captured_when_the_wake_fires():
    first, second = AsyncMock(), AsyncMock()
    service = AsyncioWakeService(first)
    service.start()

    service.arm_exact_wake("alarm-1", local_now() + timedelta(milliseconds=10), _payload())
    service.set_handler(second)
    await asyncio.sleep(0.05)

    first.assert_not_awaited()
    second.assert_awaited_once()
    await service.stop()
