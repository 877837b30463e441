"""
Alarm and timer scheduling core

This package provides:

- Repeat-day bitmasks and next-trigger resolution for alarms
- AlarmScheduler: exact wake-ups with a paired early-dismissal reminder
- TimerEngine: countdown timers with per-timer notification channels
- SnoozeResolver: routing of the snooze action
- Adapters: JSON storage, asyncio wake service, MQTT notifications and commands
"""
