"""Tests for clockwork.clock.config: environment parsing."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from clockwork.clock.config import DEFAULT_SNOOZE_MINUTES, DEFAULT_TIMER_SECONDS, ClockConfig, _strip_or_none
from clockwork.clock.days import MONDAY, SUNDAY
from clockwork.sound_library import SILENT


class TestStripOrNone:
    def test_none_returns_none(self) -> None:
        assert _strip_or_none(None) is None

    def test_blank_returns_none(self) -> None:
        assert _strip_or_none("   ") is None

    def test_strips(self) -> None:
        assert _strip_or_none("  x ") == "x"


class TestFromEnv:
    def test_defaults(self) -> None:
        with patch("clockwork.clock.config.socket.gethostname", return_value="Kitchen Clock"):
            config = ClockConfig.from_env({})

        assert config.hostname == "Kitchen Clock"
        assert config.timer.seconds == DEFAULT_TIMER_SECONDS
        assert config.timer.sound_uri == SILENT
        assert config.timer.vibrate is False
        assert config.use_same_snooze is True
        assert config.snooze_minutes == DEFAULT_SNOOZE_MINUTES
        assert config.first_day_of_week == MONDAY
        assert config.mqtt.host is None
        assert config.mqtt.port == 1883
        assert config.mqtt.topic_base == "clockwork/Kitchen_Clock"
        assert config.command_topic == "clockwork/Kitchen_Clock/command"
        assert config.storage_path.name == "clock.json"

    def test_overrides(self, tmp_path: Path) -> None:
        config = ClockConfig.from_env(
            {
                "CLOCK_HOSTNAME": "bedroom",
                "CLOCK_STORAGE_PATH": str(tmp_path / "state.json"),
                "CLOCK_TIMER_SECONDS": "90",
                "CLOCK_TIMER_VIBRATE": "yes",
                "CLOCK_TIMER_SOUND_URI": "file:///sounds/bell.ogg",
                "CLOCK_TIMER_LABEL": " Tea ",
                "CLOCK_USE_SAME_SNOOZE": "false",
                "CLOCK_SNOOZE_MINUTES": "5",
                "CLOCK_FIRST_DAY_OF_WEEK": "sunday",
                "CLOCK_TOPIC_BASE": "home/clock/",
                "MQTT_HOST": "broker.local",
                "MQTT_PORT": "8883",
                "MQTT_USER": "clock",
                "MQTT_PASS": "secret",
                "MQTT_TLS_ENABLED": "true",
            }
        )

        assert config.storage_path == tmp_path / "state.json"
        assert config.timer.seconds == 90
        assert config.timer.vibrate is True
        assert config.timer.sound_uri == "file:///sounds/bell.ogg"
        assert config.timer.label == "Tea"
        assert config.use_same_snooze is False
        assert config.snooze_minutes == 5
        assert config.first_day_of_week == SUNDAY
        assert config.mqtt.topic_base == "home/clock"
        assert config.mqtt.host == "broker.local"
        assert config.mqtt.port == 8883
        assert config.mqtt.username == "clock"
        assert config.mqtt.password == "secret"
        assert config.mqtt.tls_enabled is True

    def test_invalid_numbers_fall_back(self) -> None:
        config = ClockConfig.from_env(
            {"CLOCK_HOSTNAME": "x", "CLOCK_TIMER_SECONDS": "abc", "CLOCK_SNOOZE_MINUTES": "0", "MQTT_PORT": "?"}
        )
        assert config.timer.seconds == DEFAULT_TIMER_SECONDS
        assert config.snooze_minutes == 1
        assert config.mqtt.port == 1883

    def test_default_alarm_sound_settings(self, tmp_path: Path) -> None:
        config = ClockConfig.from_env(
            {
                "CLOCK_HOSTNAME": "x",
                "CLOCK_SOUNDS_DIR": str(tmp_path),
                "CLOCK_DEFAULT_ALARM_SOUND_URI": "file:///sounds/rooster.wav",
                "CLOCK_DEFAULT_ALARM_SOUND_TITLE": "Rooster",
            }
        )
        assert config.sounds.custom_dir == tmp_path
        assert config.sounds.default_alarm_uri == "file:///sounds/rooster.wav"
        assert config.sounds.default_alarm_title == "Rooster"
