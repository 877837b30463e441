import json
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from unittest import IsolatedAsyncioTestCase
from unittest.mock import AsyncMock, Mock, call

from clockwork.clock.config import ClockConfig
from clockwork.clock.days import MONDAY, SATURDAY, DayBitmask
from clockwork.clock.models import Alarm
from clockwork.clock.service import ClockService
from clockwork.clock.services import WakePayload
from clockwork.clock.storage import JsonClockStore


def _fixed_clock() -> datetime:
    return datetime(2024, 1, 1, 8, 0, tzinfo=UTC)


class ClockServiceTests(IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        root = Path(self._tmpdir.name)
        self.storage_path = root / "clock.json"
        self.config = ClockConfig.from_env(
            {
                "CLOCK_HOSTNAME": "clock-test",
                "CLOCK_STORAGE_PATH": str(self.storage_path),
                "CLOCK_SOUNDS_DIR": str(root / "sounds"),
                "CLOCK_DEFAULT_ALARM_SOUND_URI": "file:///sounds/default.wav",
                "CLOCK_DEFAULT_ALARM_SOUND_TITLE": "Default",
            }
        )
        self.wake = Mock(spec=["arm_exact_wake", "cancel_wake"])
        self.notifications = Mock(
            spec=["show_notification", "cancel_notification", "create_channel", "delete_channel"]
        )
        self.messenger = Mock(spec=["show_remaining_time", "show_error"])
        self.service = self._build(JsonClockStore(self.storage_path))

    async def asyncTearDown(self) -> None:
        self._tmpdir.cleanup()

    def _build(self, store: JsonClockStore) -> ClockService:
        return ClockService(
            config=self.config,
            storage=store,
            wake_service=self.wake,
            notifications=self.notifications,
            messenger=self.messenger,
            clock=_fixed_clock,
        )

    async def test_create_alarm_persists_and_arms(self) -> None:
        alarm = await self.service.create_alarm(540, DayBitmask.from_weekdays([MONDAY]), label="Standup")

        self.assertEqual(alarm.alarm_id, 1)
        self.assertTrue(alarm.is_enabled)
        self.assertEqual(alarm.sound_uri, "file:///sounds/default.wav")
        self.assertEqual(self.service.storage.get_alarm(1).label, "Standup")
        self.wake.arm_exact_wake.assert_any_call(
            "alarm-1",
            datetime(2024, 1, 1, 9, 0, tzinfo=UTC),
            WakePayload(kind="alarm", target_id=1, fire_at=datetime(2024, 1, 1, 9, 0, tzinfo=UTC)),
        )
        self.messenger.show_remaining_time.assert_called_once_with(60)

    async def test_create_alarm_rejects_bad_minutes(self) -> None:
        with self.assertRaises(ValueError):
            await self.service.create_alarm(1440, DayBitmask.every_day())

    async def test_disabling_alarm_cancels_wakeups(self) -> None:
        alarm = await self.service.create_alarm(540, DayBitmask.every_day())
        alarm.is_enabled = False

        await self.service.update_alarm(alarm)

        self.wake.cancel_wake.assert_has_calls([call("alarm-1"), call("alarm-1-early-dismissal")])
        self.assertFalse(self.service.storage.get_alarm(1).is_enabled)

    async def test_delete_alarm_cancels_both_triggers(self) -> None:
        stored = Alarm(
            alarm_id=7,
            time_in_minutes=420,
            days=DayBitmask.every_day(),
            is_enabled=True,
            vibrate=False,
            sound_title="Beep",
            sound_uri="file:///sounds/beep.wav",
        )
        self.storage_path.write_text(json.dumps({"alarms": [stored.to_json_dict()], "timers": []}))
        service = self._build(JsonClockStore(self.storage_path))

        self.assertTrue(await service.delete_alarm(7))

        self.wake.cancel_wake.assert_has_calls([call("alarm-7"), call("alarm-7-early-dismissal")])
        self.notifications.cancel_notification.assert_has_calls([call(7), call(1_000_007)])
        self.assertIsNone(service.storage.get_alarm(7))

    async def test_delete_missing_alarm(self) -> None:
        self.assertFalse(await self.service.delete_alarm(42))
        self.wake.cancel_wake.assert_not_called()

    async def test_start_reschedules_enabled_alarms(self) -> None:
        store = self.service.storage
        store.insert_alarm(self.service.new_alarm(420, DayBitmask.every_day()))
        enabled = self.service.new_alarm(600, DayBitmask.every_day())
        enabled.is_enabled = True
        store.insert_alarm(enabled)

        self.assertEqual(await self.service.start(), 1)
        armed = {item.args[0] for item in self.wake.arm_exact_wake.call_args_list}
        self.assertEqual(armed, {"alarm-2", "alarm-2-early-dismissal"})

    async def test_on_wake_routes_by_kind(self) -> None:
        self.service.alarms.handle_alarm_fired = AsyncMock()
        self.service.alarms.handle_early_dismissal = AsyncMock()
        self.service.timers.handle_timer_fired = AsyncMock()
        fire_at = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)

        await self.service.on_wake(WakePayload(kind="alarm", target_id=1, fire_at=fire_at))
        await self.service.on_wake(WakePayload(kind="early_dismissal", target_id=2, fire_at=fire_at))
        await self.service.on_wake(WakePayload(kind="timer", target_id=3, fire_at=fire_at))

        self.service.alarms.handle_alarm_fired.assert_awaited_once_with(1, fire_at)
        self.service.alarms.handle_early_dismissal.assert_awaited_once_with(2, fire_at)
        self.service.timers.handle_timer_fired.assert_awaited_once_with(3)

    async def test_alarm_wake_shows_notification(self) -> None:
        alarm = await self.service.create_alarm(540, DayBitmask.from_weekdays([MONDAY]))
        fire_at = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)

        await self.service.on_wake(WakePayload(kind="alarm", target_id=alarm.alarm_id, fire_at=fire_at))

        notification_id, descriptor = self.notifications.show_notification.call_args.args
        self.assertEqual(notification_id, alarm.alarm_id)
        self.assertEqual(descriptor.actions[0].handler, "service")

    async def test_deleted_sound_falls_back_to_default(self) -> None:
        store = self.service.storage
        for uri in ("file:///sounds/gone.wav", "file:///sounds/gone.wav", "file:///sounds/kept.wav"):
            alarm = self.service.new_alarm(420, DayBitmask.every_day())
            alarm.sound_uri = uri
            alarm.sound_title = "Old"
            store.insert_alarm(alarm)

        changed = await self.service.check_alarms_with_deleted_sound("file:///sounds/gone.wav")

        self.assertEqual(changed, 2)
        self.assertEqual(store.get_alarm(1).sound_uri, "file:///sounds/default.wav")
        self.assertEqual(store.get_alarm(2).sound_title, "Default")
        self.assertEqual(store.get_alarm(3).sound_uri, "file:///sounds/kept.wav")

    async def test_sorted_alarms_follow_first_day_order(self) -> None:
        store = self.service.storage
        for minutes, days in (
            (420, DayBitmask.from_weekdays([SATURDAY])),
            (480, DayBitmask.tomorrow()),
            (300, DayBitmask.from_weekdays([MONDAY])),
            (360, DayBitmask.today()),
        ):
            store.insert_alarm(self.service.new_alarm(minutes, days))

        ordered = await self.service.sorted_alarms()

        self.assertEqual([alarm.time_in_minutes for alarm in ordered], [360, 480, 300, 420])
