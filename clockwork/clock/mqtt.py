"""paho-mqtt connection shared by the notifier and the command processor.

Subscriptions are recorded on the wrapper and (re)issued from the connect
callback, so they can be registered before the broker acknowledges the
connection and survive reconnects.
"""

from __future__ import annotations

import logging
import ssl
import threading
from collections.abc import Callable
from typing import Any

import paho.mqtt.client as mqtt

from .config import MqttConfig

MessageHandler = Callable[[str], None]


class MqttPublishError(RuntimeError):
    """The broker connection refused or dropped an outgoing message."""


class ClockMqtt:
    def __init__(self, config: MqttConfig, logger: logging.Logger | None = None) -> None:
        self.config = config
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._lock = threading.Lock()
        self._subscriptions: dict[str, MessageHandler] = {}

    @property
    def enabled(self) -> bool:
        return bool(self.config.host)

    def connect(self) -> None:
        if not self.enabled:
            self._logger.debug("[mqtt] MQTT host not configured; notifications stay local")
            return
        with self._lock:
            if self._client is not None:
                return
            client = mqtt.Client(
                callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
                client_id=f"clockwork-{self.config.topic_base}",
                clean_session=True,
            )
            if self.config.username:
                client.username_pw_set(self.config.username, self.config.password or "")
            if self.config.tls_enabled:
                client.tls_set(
                    ca_certs=self.config.ca_cert,
                    certfile=self.config.cert,
                    keyfile=self.config.key,
                    tls_version=ssl.PROTOCOL_TLS_CLIENT,
                )
            client.on_connect = self._handle_connect
            client.on_disconnect = self._handle_disconnect
            client.on_message = self._handle_message
            try:
                client.connect(self.config.host, self.config.port, keepalive=30)
            except Exception as exc:
                self._logger.warning("[mqtt] Failed to connect to %s:%s: %s", self.config.host, self.config.port, exc)
                return
            client.loop_start()
            self._client = client

    def disconnect(self) -> None:
        with self._lock:
            client = self._client
            self._client = None
        if client:
            client.loop_stop()
            client.disconnect()

    def is_connected(self) -> bool:
        client = self._client
        return bool(client and client.is_connected())

    def publish(self, topic: str, payload: str, retain: bool = False, qos: int = 0) -> None:
        """Publish ``payload``; raises MqttPublishError when a live client rejects it.

        Without a configured broker messages are dropped quietly.
        """
        client = self._client
        if client is None:
            self._logger.debug("[mqtt] No MQTT client; dropping message for %s", topic)
            return
        try:
            info = client.publish(topic, payload=payload, qos=qos, retain=retain)
        except (ValueError, OSError) as exc:
            raise MqttPublishError(f"Failed to publish to {topic}: {exc}") from exc
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise MqttPublishError(f"Failed to publish to {topic}: {mqtt.error_string(info.rc)}")

    def subscribe(self, topic: str, on_message: MessageHandler) -> None:
        """Route messages on ``topic`` to ``on_message`` for the lifetime of the wrapper."""
        with self._lock:
            self._subscriptions[topic] = on_message
            client = self._client
        if client is not None and client.is_connected():
            self._send_subscribe(client, topic)

    def _send_subscribe(self, client: mqtt.Client, topic: str) -> None:
        result, _mid = client.subscribe(topic)
        if result != mqtt.MQTT_ERR_SUCCESS:
            self._logger.warning("[mqtt] Failed to subscribe to %s (rc=%s)", topic, result)

    def _handle_connect(
        self, client: mqtt.Client, _userdata: Any, _flags: Any, reason_code: Any, _properties: Any = None
    ) -> None:
        if getattr(reason_code, "is_failure", False):
            self._logger.warning("[mqtt] Broker refused connection: %s", reason_code)
            return
        with self._lock:
            topics = list(self._subscriptions)
        self._logger.info("[mqtt] Connected to %s; subscribing to %d topic(s)", self.config.host, len(topics))
        for topic in topics:
            self._send_subscribe(client, topic)

    def _handle_disconnect(
        self, _client: mqtt.Client, _userdata: Any, _flags: Any, reason_code: Any, _properties: Any = None
    ) -> None:
        self._logger.info("[mqtt] Disconnected from broker: %s", reason_code)

    def _handle_message(self, _client: mqtt.Client, _userdata: Any, message: mqtt.MQTTMessage) -> None:
        with self._lock:
            handlers = [
                handler
                for topic, handler in self._subscriptions.items()
                if mqtt.topic_matches_sub(topic, message.topic)
            ]
        if not handlers:
            self._logger.debug("[mqtt] No handler for %s", message.topic)
            return
        payload = message.payload.decode("utf-8", errors="ignore")
        for handler in handlers:
            try:
                handler(payload)
            except Exception as exc:
                self._logger.error("[mqtt] Handler for '%s' failed: %s", message.topic, exc, exc_info=True)
