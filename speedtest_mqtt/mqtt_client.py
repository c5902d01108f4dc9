"""MQTT session shared by the publisher and the connection pump."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import paho.mqtt.client as mqtt

from .config import BrokerConfig
from .errors import BrokerError

LOGGER = logging.getLogger(__name__)

QOS_AT_LEAST_ONCE = 1


def _default_client_factory(config: BrokerConfig) -> mqtt.Client:
    return mqtt.Client(
        callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        client_id=config.client_id,
        clean_session=True,
        protocol=mqtt.MQTTv311,
    )


class BrokerSession:
    """Thin wrapper over a paho client.

    The client is driven by explicit ``poll`` calls rather than paho's own
    network thread, so a dead connection surfaces as a ``BrokerError`` on the
    caller that polls.
    """

    def __init__(
        self,
        config: BrokerConfig,
        client_factory: Optional[Callable[[BrokerConfig], Any]] = None,
        poll_timeout: float = 1.0,
    ):
        self.config = config
        self.poll_timeout = poll_timeout
        self.connected = False
        self._client = (client_factory or _default_client_factory)(config)
        self._client.max_queued_messages_set(config.max_queued_messages)
        if config.has_credentials:
            self._client.username_pw_set(config.username, config.password)
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_publish = self._on_publish
        self._client.on_log = self._on_log

    def connect(self) -> None:
        LOGGER.info(
            "Connecting to MQTT broker %s:%d as %s (%s)",
            self.config.host,
            self.config.port,
            self.config.client_id,
            "authenticated" if self.config.has_credentials else "anonymous",
        )
        try:
            self._client.connect(self.config.host, self.config.port, keepalive=self.config.keepalive)
        except (OSError, ValueError) as exc:
            raise BrokerError("connect", exc) from exc

    def disconnect(self) -> None:
        try:
            self._client.disconnect()
        except OSError as exc:
            LOGGER.warning("MQTT disconnect error: %s", exc)
        self.connected = False

    def publish(self, topic: str, payload: str, retain: bool = False, qos: int = QOS_AT_LEAST_ONCE) -> None:
        try:
            info = self._client.publish(topic, payload, qos=qos, retain=retain)
        except (OSError, ValueError) as exc:
            raise BrokerError("publish", exc) from exc
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise BrokerError("publish", mqtt.error_string(info.rc))
        LOGGER.debug("Queued publish mid=%s on %s (retain=%s)", info.mid, topic, retain)

    def poll(self) -> None:
        """Run one iteration of the network loop."""
        try:
            rc = self._client.loop(timeout=self.poll_timeout)
        except OSError as exc:
            raise BrokerError("poll", exc) from exc
        if rc != mqtt.MQTT_ERR_SUCCESS:
            raise BrokerError("poll", mqtt.error_string(rc))

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            self.connected = False
            LOGGER.error("MQTT broker refused connection: %s", reason_code)
        else:
            self.connected = True
            LOGGER.debug("MQTT connection acknowledged: %s", reason_code)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        self.connected = False
        LOGGER.debug("MQTT disconnect event: %s", reason_code)

    def _on_publish(self, client, userdata, mid, reason_code, properties=None):
        LOGGER.debug("MQTT publish acknowledged mid=%s: %s", mid, reason_code)

    def _on_log(self, client, userdata, level, buf):
        LOGGER.debug("paho: %s", buf)
