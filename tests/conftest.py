"""Shared test fixtures and configuration for the clockwork test suite.

This module provides reusable fixtures for common test scenarios including:
- A controllable clock
- Mocked wake, notification and messenger collaborators
- A JSON store in a temporary directory
- MQTT configuration and client mocking
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime, timedelta
from pathlib import Path
from unittest.mock import Mock

import paho.mqtt.client as mqtt
import pytest
from clockwork.clock.config import ClockConfig, MqttConfig
from clockwork.clock.storage import JsonClockStore

# ============================================================================
# Pytest Configuration
# ============================================================================


@pytest.fixture(scope="session")
def anyio_backend():
    """Configure anyio backend for async tests."""
    return "asyncio"


# ============================================================================
# Clock
# ============================================================================


class FakeClock:
    """Callable clock that only moves when a test advances it."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    """Monday 2024-01-01 08:00 UTC."""
    return FakeClock(datetime(2024, 1, 1, 8, 0, tzinfo=UTC))


@pytest.fixture
def system_tz_new_york(monkeypatch):
    """Run the test with the process-local timezone set to America/New_York."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is unavailable on this platform")
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


# ============================================================================
# Logging Fixtures
# ============================================================================


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing."""
    return Mock(spec=logging.Logger)


# ============================================================================
# Collaborator Fixtures
# ============================================================================


@pytest.fixture
def wake_service():
    """Mock wake service recording arm/cancel calls."""
    return Mock(spec=["arm_exact_wake", "cancel_wake"])


@pytest.fixture
def notifications():
    """Mock notification service."""
    return Mock(spec=["show_notification", "cancel_notification", "create_channel", "delete_channel"])


@pytest.fixture
def messenger():
    """Mock user messenger."""
    return Mock(spec=["show_remaining_time", "show_error"])


@pytest.fixture
def store(tmp_path: Path):
    """JSON store backed by a temporary file."""
    return JsonClockStore(tmp_path / "clock.json")


@pytest.fixture
def clock_config(tmp_path: Path) -> ClockConfig:
    """Config with storage and sounds pointed at a temporary directory and no MQTT host."""
    return ClockConfig.from_env(
        {
            "CLOCK_HOSTNAME": "test-clock",
            "CLOCK_STORAGE_PATH": str(tmp_path / "clock.json"),
            "CLOCK_SOUNDS_DIR": str(tmp_path / "sounds"),
        }
    )


# ============================================================================
# MQTT Fixtures
# ============================================================================


@pytest.fixture
def mqtt_config():
    """Create a basic MQTT configuration for testing."""
    return MqttConfig(
        host="localhost",
        port=1883,
        username=None,
        password=None,
        tls_enabled=False,
        cert=None,
        key=None,
        ca_cert=None,
        topic_base="clockwork/test-device",
    )


@pytest.fixture
def mock_mqtt_client():
    """Create a mock paho MQTT client."""
    client = Mock(spec=mqtt.Client)
    client.connect = Mock()
    client.disconnect = Mock()
    client.subscribe = Mock(return_value=(mqtt.MQTT_ERR_SUCCESS, 1))
    client.publish = Mock(return_value=mqtt.MQTTMessageInfo(1))
    client.loop_start = Mock()
    client.loop_stop = Mock()
    client.is_connected = Mock(return_value=True)
    return client
