#!/usr/bin/env python3
"""Clockwork alarm and timer daemon."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal

from clockwork.clock.commands import ClockCommandProcessor
from clockwork.clock.config import ClockConfig
from clockwork.clock.mqtt import ClockMqtt
from clockwork.clock.mqtt_notifier import MqttNotificationService
from clockwork.clock.service import ClockService
from clockwork.clock.storage import JsonClockStore
from clockwork.clock.wake_service import AsyncioWakeService

LOGGER = logging.getLogger("clockwork.daemon")


class ClockDaemon:
    def __init__(self, config: ClockConfig) -> None:
        self.config = config
        self.mqtt = ClockMqtt(config.mqtt, logger=LOGGER)
        self.notifier = MqttNotificationService(self.mqtt, config.mqtt.topic_base)
        self.wake_service = AsyncioWakeService()
        self.service = ClockService(
            config=config,
            storage=JsonClockStore(config.storage_path),
            wake_service=self.wake_service,
            notifications=self.notifier,
            messenger=self.notifier,
        )
        self.wake_service.set_handler(self.service.on_wake)
        self.commands = ClockCommandProcessor(self.service, self.mqtt, config.mqtt.topic_base, logger=LOGGER)

    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        self.wake_service.start()
        self.commands.set_event_loop(loop)
        # Registered before connecting; the client subscribes once the broker acknowledges.
        self.mqtt.subscribe(self.commands.command_topic, self.commands.handle_command_message)
        await asyncio.to_thread(self.mqtt.connect)
        scheduled = await self.service.start()
        LOGGER.info("Clockwork running for %s (%d alarm(s) armed)", self.config.hostname, scheduled)
        await asyncio.Event().wait()

    async def shutdown(self) -> None:
        await self.wake_service.stop()
        await asyncio.to_thread(self.mqtt.disconnect)


async def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    config = ClockConfig.from_env()
    daemon = ClockDaemon(config)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _handle_signal(signum: int) -> None:
        LOGGER.info("Received signal %s, shutting down", signum)
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _handle_signal, sig)

    run_task = asyncio.create_task(daemon.run())
    await stop_event.wait()
    await daemon.shutdown()
    run_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await run_task


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
