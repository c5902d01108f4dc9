"""Telemetry publisher responsible for MQTT comms."""

from __future__ import annotations

import json
import logging
import threading
from typing import List, Optional, Sequence

from .channel import HandoffChannel
from .config import AppConfig
from .discovery import DiscoveryDescriptor, build_descriptors, state_topic
from .errors import BrokerError, SerializationError
from .measurements.models import BrokerMessage, Snapshot, required_kinds
from .mqtt_client import BrokerSession

LOGGER = logging.getLogger(__name__)


def encode_snapshot(snapshot: Snapshot, config: AppConfig) -> List[BrokerMessage]:
    """One bare numeric message per measurement kind, each on its own state topic."""

    messages = []
    for kind, value in snapshot.values().items():
        try:
            payload = json.dumps(round(value, 2), allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"cannot encode {kind.value}={value!r}: {exc}") from exc
        messages.append(BrokerMessage(topic=state_topic(config.discovery, kind), payload=payload))
    return messages


class TelemetryPublisher:
    def __init__(
        self,
        config: AppConfig,
        session: BrokerSession,
        channel: HandoffChannel,
        stop_event: Optional[threading.Event] = None,
        descriptors: Optional[Sequence[DiscoveryDescriptor]] = None,
    ):
        self.config = config
        self.session = session
        self.channel = channel
        self.stop_event = stop_event or threading.Event()
        if descriptors is None:
            descriptors = build_descriptors(config.discovery, required_kinds(config.measurements.jitter_enabled))
        self.descriptors = list(descriptors)
        self.published_snapshots = 0

    def run(self) -> None:
        """Announce sensors, then publish snapshots until the channel is drained."""
        try:
            self.publish_discovery()
            while True:
                snapshot = self.channel.get()
                if snapshot is None:
                    break
                self.publish_snapshot(snapshot)
        finally:
            self.channel.close()
            LOGGER.info("Publisher stopped after %d snapshot(s)", self.published_snapshots)

    def publish_discovery(self) -> int:
        """Announce every sensor; returns how many descriptors were accepted."""
        if not self.session.connected:
            LOGGER.info("Broker has not acknowledged the connection yet, discovery messages will be queued")
        announced = 0
        for descriptor in self.descriptors:
            if self.stop_event.is_set():
                break
            if self._publish_descriptor(descriptor):
                announced += 1
        if announced < len(self.descriptors):
            LOGGER.warning("Announced %d of %d sensors", announced, len(self.descriptors))
        return announced

    def _publish_descriptor(self, descriptor: DiscoveryDescriptor) -> bool:
        payload = json.dumps(descriptor.to_payload())
        attempts = self.config.discovery.publish_attempts
        for attempt in range(1, attempts + 1):
            try:
                self.session.publish(descriptor.config_topic, payload, retain=True)
            except BrokerError as exc:
                if attempt < attempts:
                    LOGGER.warning(
                        "Retrying discovery publish for '%s' (attempt %d/%d): %s",
                        descriptor.kind.value,
                        attempt,
                        attempts,
                        exc,
                    )
                    if self.stop_event.wait(self.config.discovery.retry_delay_seconds):
                        return False
                    continue
                LOGGER.error(
                    "Failed to publish discovery message for '%s' after %d attempts: %s",
                    descriptor.kind.value,
                    attempts,
                    exc,
                )
                return False
            LOGGER.info("Published discovery message for '%s'", descriptor.kind.value)
            return True
        return False

    def publish_snapshot(self, snapshot: Snapshot) -> int:
        """Publish every message of a snapshot; returns how many were accepted."""
        try:
            messages = encode_snapshot(snapshot, self.config)
        except SerializationError as exc:
            LOGGER.error("Skipping snapshot taken at %s: %s", snapshot.timestamp.isoformat(), exc)
            return 0

        sent = 0
        for message in messages:
            try:
                self.session.publish(message.topic, message.payload, retain=message.retain, qos=message.qos)
            except BrokerError as exc:
                LOGGER.error("Failed to publish %s=%s: %s", message.topic, message.payload, exc)
                continue
            sent += 1
        self.published_snapshots += 1
        LOGGER.info(
            "Published snapshot taken at %s (%d/%d messages)",
            snapshot.timestamp.isoformat(),
            sent,
            len(messages),
        )
        return sent
