"""Application bootstrap helpers."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional

from .channel import HandoffChannel
from .config import AppConfig, load_config
from .errors import BrokerError
from .logging_setup import configure_logging
from .measurements.engine import SpeedtestEngine
from .measurements.manager import MeasurementManager
from .measurements.runner import ProbeRunner
from .mqtt_client import BrokerSession
from .publisher import TelemetryPublisher
from .pump import ConnectionPump
from .scheduler import SchedulerService

LOGGER = logging.getLogger(__name__)

JOIN_TIMEOUT_SECONDS = 5.0


class ApplicationContext:
    """Holds shared singletons for the service."""

    def __init__(
        self,
        config: AppConfig,
        session: Optional[BrokerSession] = None,
        engine=None,
    ):
        self.config = config
        configure_logging(config)
        self.stop_event = threading.Event()
        self.channel: HandoffChannel = HandoffChannel(config.scheduler.channel_capacity)
        self.session = session or BrokerSession(config.broker)
        self.engine = engine or SpeedtestEngine(secure=config.measurements.secure)
        self.runner = ProbeRunner(
            self.engine,
            jitter_samples=config.measurements.jitter_samples,
            jitter_delay=config.measurements.jitter_delay_seconds,
        )
        self.measurements = MeasurementManager(config, self.runner)
        self.scheduler = SchedulerService(config, self.measurements, self.channel, self.stop_event)
        self.publisher = TelemetryPublisher(config, self.session, self.channel, self.stop_event)
        self.pump = ConnectionPump(self.session, self.stop_event, on_fatal=lambda exc: self.shutdown())
        self._threads: List[threading.Thread] = []
        self._crashed = False

    def shutdown(self) -> None:
        if not self.stop_event.is_set():
            LOGGER.info("Shutting down")
        self.stop_event.set()
        self.channel.close()

    def _spawn(self, name: str, target: Callable[[], None]) -> None:
        def guarded() -> None:
            try:
                target()
            except Exception:  # pylint: disable=broad-except
                self._crashed = True
                LOGGER.exception("%s thread crashed", name)
            finally:
                # Every component is essential; when one ends, the others follow.
                self.shutdown()

        thread = threading.Thread(target=guarded, name=name, daemon=True)
        thread.start()
        self._threads.append(thread)

    def start(self) -> None:
        self.session.connect()
        self._spawn("mqtt-pump", self.pump.run)
        self._spawn("publisher", self.publisher.run)
        self._spawn("scheduler", self.scheduler.run)

    def run(self) -> int:
        """Run until shutdown; returns the process exit code."""
        try:
            self.start()
        except BrokerError as exc:
            LOGGER.critical("Could not connect to MQTT broker: %s", exc)
            self.shutdown()
            return 1

        self.stop_event.wait()
        for thread in self._threads:
            thread.join(JOIN_TIMEOUT_SECONDS)
            if thread.is_alive():
                LOGGER.warning("%s thread did not stop within %.0f seconds", thread.name, JOIN_TIMEOUT_SECONDS)
        self.session.disconnect()
        return 1 if self.pump.failed or self._crashed else 0


def bootstrap(config_path: Optional[str] = None, log_level: Optional[str] = None) -> ApplicationContext:
    """Load configuration and wire dependencies."""

    config_file = Path(config_path).resolve() if config_path else None
    config = load_config(str(config_file)) if config_file else load_config()
    if log_level:
        config.logging.level = log_level
    return ApplicationContext(config)
