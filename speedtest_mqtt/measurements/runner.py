"""Single probe execution on top of the measurement engine."""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Protocol, Sequence

from ..errors import EngineError, ProbeError
from .models import ProbeKind

LOGGER = logging.getLogger(__name__)


class Engine(Protocol):
    def measure(self, kind: ProbeKind) -> float:
        ...


def compute_jitter(samples: Sequence[float]) -> float:
    """Mean absolute deviation of the samples from their mean."""
    if not samples:
        raise ValueError("jitter needs at least one sample")
    mean = sum(samples) / len(samples)
    return sum(abs(sample - mean) for sample in samples) / len(samples)


class ProbeRunner:
    def __init__(
        self,
        engine: Engine,
        jitter_samples: int = 10,
        jitter_delay: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.engine = engine
        self.jitter_samples = jitter_samples
        self.jitter_delay = jitter_delay
        self._sleep = sleep

    def run(self, kind: ProbeKind) -> float:
        LOGGER.debug("Running %s probe", kind.value)
        try:
            if kind is ProbeKind.JITTER:
                value = self._run_jitter()
            else:
                value = self.engine.measure(kind)
        except EngineError as exc:
            raise ProbeError(kind, exc) from exc
        LOGGER.debug("%s probe finished: %.2f %s", kind.value, value, kind.unit)
        return value

    def _run_jitter(self) -> float:
        # Samples are spaced in time, so they run one after another.
        samples: List[float] = []
        for index in range(self.jitter_samples):
            samples.append(self.engine.measure(ProbeKind.LATENCY))
            if index < self.jitter_samples - 1:
                self._sleep(self.jitter_delay)
        return compute_jitter(samples)
