"""
Shared utility functions for parsing and data manipulation

Provides common helpers for:
- String parsing: Environment variable conversion (parse_bool, parse_int)
- Topic sanitization: Converting sound URIs and channel ids into MQTT-safe topic segments
- Data coercion: Safe type conversion with fallback defaults

These utilities are used throughout clockwork for configuration parsing and payload handling.
"""

from __future__ import annotations

import re
from typing import Any

_TOPIC_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]+")


def sanitize_topic_segment(value: str) -> str:
    """Collapse characters MQTT treats specially (``/``, ``+``, ``#``) into underscores."""
    cleaned = _TOPIC_UNSAFE.sub("_", value.strip())
    return cleaned.strip("_") or "_"


def parse_bool(value: str | None, default: bool = False) -> bool:
    """Interpret env-style booleans."""
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_int(value: str | None, default: int) -> int:
    """Best-effort int parser with fallback."""
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def coerce_int(value: Any) -> int | None:
    """Convert JSON-ish payload values into ints, returning None when impossible."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None
