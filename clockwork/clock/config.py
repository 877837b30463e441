"""Configuration helpers for the clockwork scheduling daemon."""

from __future__ import annotations

import os
import socket
from dataclasses import dataclass
from pathlib import Path

from clockwork.sound_library import SILENT, SoundSettings
from clockwork.utils import parse_bool, parse_int, sanitize_topic_segment

from .days import MONDAY, parse_weekday

DEFAULT_TIMER_SECONDS = 300
DEFAULT_SNOOZE_MINUTES = 10
_DEFAULT_STORAGE_PATH = Path.home() / ".local" / "share" / "clockwork" / "clock.json"


def _strip_or_none(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


@dataclass(frozen=True)
class MqttConfig:
    host: str | None
    port: int
    username: str | None
    password: str | None
    tls_enabled: bool
    cert: str | None
    key: str | None
    ca_cert: str | None
    topic_base: str


@dataclass(frozen=True)
class TimerDefaults:
    seconds: int
    vibrate: bool
    sound_uri: str
    sound_title: str
    label: str


@dataclass(frozen=True)
class ClockConfig:
    hostname: str
    storage_path: Path
    timer: TimerDefaults
    use_same_snooze: bool
    snooze_minutes: int
    first_day_of_week: int
    sounds: SoundSettings
    mqtt: MqttConfig

    @property
    def command_topic(self) -> str:
        return f"{self.mqtt.topic_base}/command"

    @staticmethod
    def from_env(env: dict[str, str] | None = None) -> ClockConfig:
        source = env if env is not None else os.environ
        hostname = source.get("CLOCK_HOSTNAME") or socket.gethostname()

        storage_path = _DEFAULT_STORAGE_PATH
        if raw_path := _strip_or_none(source.get("CLOCK_STORAGE_PATH")):
            storage_path = Path(raw_path).expanduser()

        timer = TimerDefaults(
            seconds=max(1, parse_int(source.get("CLOCK_TIMER_SECONDS"), DEFAULT_TIMER_SECONDS)),
            vibrate=parse_bool(source.get("CLOCK_TIMER_VIBRATE"), False),
            sound_uri=_strip_or_none(source.get("CLOCK_TIMER_SOUND_URI")) or SILENT,
            sound_title=_strip_or_none(source.get("CLOCK_TIMER_SOUND_TITLE")) or "Silent",
            label=(source.get("CLOCK_TIMER_LABEL") or "").strip(),
        )

        first_day = parse_weekday(source.get("CLOCK_FIRST_DAY_OF_WEEK"))

        custom_dir = _strip_or_none(source.get("CLOCK_SOUNDS_DIR"))
        sounds = SoundSettings.with_defaults(
            custom_dir=Path(custom_dir).expanduser() if custom_dir else None,
            default_alarm_title=_strip_or_none(source.get("CLOCK_DEFAULT_ALARM_SOUND_TITLE")),
            default_alarm_uri=_strip_or_none(source.get("CLOCK_DEFAULT_ALARM_SOUND_URI")),
        )

        topic_base = source.get("CLOCK_TOPIC_BASE") or f"clockwork/{sanitize_topic_segment(hostname)}"
        mqtt = MqttConfig(
            host=_strip_or_none(source.get("MQTT_HOST")),
            port=parse_int(source.get("MQTT_PORT"), 1883),
            username=_strip_or_none(source.get("MQTT_USER") or source.get("MQTT_USERNAME")),
            password=_strip_or_none(source.get("MQTT_PASS") or source.get("MQTT_PASSWORD")),
            tls_enabled=parse_bool(source.get("MQTT_TLS_ENABLED"), False),
            cert=_strip_or_none(source.get("MQTT_CERT")),
            key=_strip_or_none(source.get("MQTT_KEY")),
            ca_cert=_strip_or_none(source.get("MQTT_CA_CERT")),
            topic_base=topic_base.rstrip("/"),
        )

        return ClockConfig(
            hostname=hostname,
            storage_path=storage_path,
            timer=timer,
            use_same_snooze=parse_bool(source.get("CLOCK_USE_SAME_SNOOZE"), True),
            snooze_minutes=max(1, parse_int(source.get("CLOCK_SNOOZE_MINUTES"), DEFAULT_SNOOZE_MINUTES)),
            first_day_of_week=MONDAY if first_day is None else first_day,
            sounds=sounds,
            mqtt=mqtt,
        )
