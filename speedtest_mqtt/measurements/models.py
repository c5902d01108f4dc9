"""Shared dataclasses for measurements."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional


class ProbeKind(enum.Enum):
    DOWNLOAD = "download"
    UPLOAD = "upload"
    LATENCY = "ping"
    JITTER = "jitter"

    @property
    def unit(self) -> str:
        if self in (ProbeKind.DOWNLOAD, ProbeKind.UPLOAD):
            return "Mbit/s"
        return "ms"


BASE_KINDS = (ProbeKind.DOWNLOAD, ProbeKind.UPLOAD, ProbeKind.LATENCY)


def required_kinds(jitter_enabled: bool) -> tuple:
    """Probe kinds a cycle must complete before a snapshot exists."""
    if jitter_enabled:
        return BASE_KINDS + (ProbeKind.JITTER,)
    return BASE_KINDS


@dataclass(frozen=True)
class ProbeResult:
    kind: ProbeKind
    value: float


@dataclass(frozen=True)
class Snapshot:
    download: float
    upload: float
    ping: float
    jitter: Optional[float] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_results(cls, probe_results: Iterable[ProbeResult], timestamp: Optional[datetime] = None) -> "Snapshot":
        results = {result.kind: result.value for result in probe_results}
        return cls(
            download=results[ProbeKind.DOWNLOAD],
            upload=results[ProbeKind.UPLOAD],
            ping=results[ProbeKind.LATENCY],
            jitter=results.get(ProbeKind.JITTER),
            timestamp=timestamp or datetime.now(timezone.utc),
        )

    def values(self) -> Dict[ProbeKind, float]:
        data = {
            ProbeKind.DOWNLOAD: self.download,
            ProbeKind.UPLOAD: self.upload,
            ProbeKind.LATENCY: self.ping,
        }
        if self.jitter is not None:
            data[ProbeKind.JITTER] = self.jitter
        return data


@dataclass(frozen=True)
class BrokerMessage:
    topic: str
    payload: str
    retain: bool = False
    qos: int = 1
