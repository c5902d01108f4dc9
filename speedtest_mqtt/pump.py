"""Keeps the broker session alive by draining its network events."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from .errors import BrokerError
from .mqtt_client import BrokerSession

LOGGER = logging.getLogger(__name__)


class ConnectionPump:
    """Polls the broker session until stopped.

    A poll failure means the session is gone and nothing downstream can make
    progress, so it marks the pump as failed and fires ``on_fatal``.
    """

    def __init__(
        self,
        session: BrokerSession,
        stop_event: threading.Event,
        on_fatal: Optional[Callable[[BrokerError], None]] = None,
    ):
        self.session = session
        self.stop_event = stop_event
        self.on_fatal = on_fatal
        self.failure: Optional[BrokerError] = None

    @property
    def failed(self) -> bool:
        return self.failure is not None

    def run(self) -> None:
        while not self.stop_event.is_set():
            try:
                self.session.poll()
            except BrokerError as exc:
                self.failure = exc
                LOGGER.critical("MQTT connection lost, shutting down: %s", exc)
                if self.on_fatal is not None:
                    self.on_fatal(exc)
                return
        LOGGER.debug("Connection pump stopped")
