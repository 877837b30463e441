"""Publish notifications, channels and user-facing messages over MQTT.

Notifications and channels are retained so a display that (re)connects picks
up whatever is currently showing; clearing one publishes an empty retained
payload.
"""

from __future__ import annotations

import json
import logging

from clockwork.datetime_utils import local_now, serialize_dt
from clockwork.utils import sanitize_topic_segment

from .mqtt import ClockMqtt, MqttPublishError
from .notifications import ChannelAttributes, NotificationDescriptor

LOGGER = logging.getLogger(__name__)


def _format_remaining(total_minutes: int) -> str:
    """Format whole minutes into a short message.

    Examples:
        - 0 -> "Less than a minute remaining"
        - 45 -> "45 min remaining"
        - 125 -> "2 hr 5 min remaining"
    """
    if total_minutes <= 0:
        return "Less than a minute remaining"
    days, remainder = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(remainder, 60)
    parts: list[str] = []
    if days:
        parts.append(f"{days} day" if days == 1 else f"{days} days")
    if hours:
        parts.append(f"{hours} hr")
    if minutes:
        parts.append(f"{minutes} min")
    return " ".join(parts) + " remaining"


class MqttNotificationService:
    """NotificationService and UserMessenger over a shared MQTT connection."""

    def __init__(self, mqtt: ClockMqtt, topic_base: str, logger: logging.Logger | None = None) -> None:
        self.mqtt = mqtt
        self.logger = logger or LOGGER
        self._notifications_topic = f"{topic_base}/notifications"
        self._channels_topic = f"{topic_base}/channels"
        self._toast_topic = f"{topic_base}/toast"
        self._channels: dict[str, ChannelAttributes] = {}

    def channels(self) -> dict[str, ChannelAttributes]:
        return dict(self._channels)

    def show_notification(self, notification_id: int, descriptor: NotificationDescriptor) -> None:
        if descriptor.channel_id not in self._channels:
            self.logger.debug(
                "[notify] Notification %s uses unknown channel %s", notification_id, descriptor.channel_id
            )
        payload = {"id": notification_id, "posted_at": serialize_dt(local_now()), **descriptor.to_dict()}
        self.mqtt.publish(f"{self._notifications_topic}/{notification_id}", json.dumps(payload), retain=True)

    def cancel_notification(self, notification_id: int) -> None:
        self.mqtt.publish(f"{self._notifications_topic}/{notification_id}", "", retain=True)

    def create_channel(self, channel_id: str, attributes: ChannelAttributes) -> None:
        self._channels[channel_id] = attributes
        payload = {"channel_id": channel_id, **attributes.to_dict()}
        self.mqtt.publish(self._channel_topic(channel_id), json.dumps(payload), retain=True)

    def delete_channel(self, channel_id: str) -> None:
        self._channels.pop(channel_id, None)
        self.mqtt.publish(self._channel_topic(channel_id), "", retain=True)

    def show_remaining_time(self, total_minutes: int) -> None:
        payload = {"kind": "time_remaining", "minutes": total_minutes, "text": _format_remaining(total_minutes)}
        self._publish_toast(payload)

    def show_error(self, error: Exception) -> None:
        payload = {"kind": "error", "text": str(error) or error.__class__.__name__}
        self._publish_toast(payload)

    def _publish_toast(self, payload: dict[str, object]) -> None:
        """Publish a toast; a failure here is logged, never raised."""
        try:
            self.mqtt.publish(self._toast_topic, json.dumps(payload))
        except MqttPublishError as exc:
            self.logger.warning("[notify] Failed to publish %s toast: %s", payload["kind"], exc)

    def _channel_topic(self, channel_id: str) -> str:
        return f"{self._channels_topic}/{sanitize_topic_segment(channel_id)}"
