"""Background measurement scheduler."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from .channel import HandoffChannel
from .config import AppConfig
from .errors import ChannelClosed, CycleError
from .measurements.manager import MeasurementManager

LOGGER = logging.getLogger(__name__)


class SchedulerService:
    """Runs a measurement cycle, hands the snapshot off, sleeps, repeats.

    The sleep always starts after the hand-off returns, so a publisher that
    falls behind delays the next cycle instead of losing snapshots.
    """

    def __init__(
        self,
        config: AppConfig,
        measurement_manager: MeasurementManager,
        channel: HandoffChannel,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        self.config = config
        self.measurements = measurement_manager
        self.channel = channel
        self.stop_event = stop_event or threading.Event()
        self.cycles_run = 0
        self.cycles_failed = 0

    @property
    def interval(self) -> float:
        return self.config.scheduler.interval_seconds

    def run(self) -> None:
        LOGGER.info("Scheduler started with interval %s seconds", self.interval)
        while not self.stop_event.is_set():
            if not self.run_once():
                break
            if self.stop_event.wait(self.interval):
                break
        LOGGER.info("Scheduler stopped after %d cycle(s), %d failed", self.cycles_run, self.cycles_failed)

    def run_once(self) -> bool:
        """Run one cycle; returns False when there is no consumer left."""
        self.cycles_run += 1
        try:
            snapshot = self.measurements.run_cycle()
        except CycleError as exc:
            self.cycles_failed += 1
            LOGGER.error("Measurement cycle %d failed: %s", self.cycles_run, exc)
            return True

        try:
            self.channel.put(snapshot)
        except ChannelClosed:
            LOGGER.warning("Publisher is gone, dropping snapshot and stopping the scheduler")
            return False
        return True
