"""
Clockwork - alarm and timer scheduling package

Shared helpers live at the top level; the scheduling core and its adapters
live in the ``clock`` subpackage.

Core modules:
- datetime_utils: Local clock, minutes-of-day arithmetic and time parsing
- sound_library: Alarm sound catalog and default sound resolution
- utils: Environment parsing and MQTT topic helpers
- clock: Alarm scheduling, countdown timers, snooze routing and MQTT adapters
"""

__version__ = "0.1.0"
