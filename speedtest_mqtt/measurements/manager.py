"""Measurement cycle orchestration."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from ..config import AppConfig
from ..errors import CycleJoinFailure, CycleProbeFailed, ProbeError
from .models import ProbeKind, ProbeResult, Snapshot, required_kinds
from .runner import ProbeRunner

LOGGER = logging.getLogger(__name__)


class MeasurementManager:
    """Runs every required probe of a cycle concurrently and aggregates them."""

    def __init__(
        self,
        config: AppConfig,
        runner: ProbeRunner,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config
        self.runner = runner
        self.kinds = required_kinds(config.measurements.jitter_enabled)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def run_cycle(self) -> Snapshot:
        """Return a snapshot, or raise a CycleError if any probe did not succeed."""

        # Leaving the with-block joins every worker, so no probe outlives its cycle.
        with ThreadPoolExecutor(max_workers=len(self.kinds), thread_name_prefix="probe") as executor:
            futures = {kind: executor.submit(self.runner.run, kind) for kind in self.kinds}
            results = self._collect(futures.items())

        snapshot = Snapshot.from_results(results, timestamp=self._clock())
        LOGGER.info(
            "Cycle complete: down %.2f Mbps / up %.2f Mbps / ping %.2f ms%s",
            snapshot.download,
            snapshot.upload,
            snapshot.ping,
            f" / jitter {snapshot.jitter:.2f} ms" if snapshot.jitter is not None else "",
        )
        return snapshot

    @staticmethod
    def _collect(futures: Iterable) -> List[ProbeResult]:
        return [MeasurementManager._join(kind, future) for kind, future in futures]

    @staticmethod
    def _join(kind: ProbeKind, future: Future) -> ProbeResult:
        try:
            return ProbeResult(kind, future.result())
        except ProbeError as exc:
            raise CycleProbeFailed(kind, exc.cause) from exc
        except Exception as exc:  # pylint: disable=broad-except; cancelled or crashed worker
            raise CycleJoinFailure(kind, exc) from exc
