"""Test doubles for the measurement engine and the broker session."""

from __future__ import annotations

import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from speedtest_mqtt.errors import BrokerError, EngineError
from speedtest_mqtt.measurements.models import ProbeKind


class FakeEngine:
    """Returns canned values per kind; a value that is an exception is raised."""

    def __init__(self, values: Optional[Dict[ProbeKind, object]] = None):
        self.values = values or {
            ProbeKind.DOWNLOAD: 50.0,
            ProbeKind.UPLOAD: 10.0,
            ProbeKind.LATENCY: 12.5,
        }
        self.calls: List[ProbeKind] = []
        self._lock = threading.Lock()

    def measure(self, kind: ProbeKind) -> float:
        with self._lock:
            self.calls.append(kind)
        value = self.values[kind]
        if callable(value):
            value = value()
        if isinstance(value, BaseException):
            raise value
        return value


class FakeSession:
    """Stands in for BrokerSession; records every publish."""

    def __init__(self, fail: Optional[Callable[[str, int], bool]] = None, poll_failures_after: Optional[int] = None):
        self.fail = fail
        self.poll_failures_after = poll_failures_after
        self.published: List[Tuple[str, str, bool]] = []
        self.qos: List[int] = []
        self.attempts: Dict[str, int] = {}
        self.polls = 0
        self.connected = False
        self._lock = threading.Lock()

    def connect(self) -> None:
        self.connected = True

    def disconnect(self) -> None:
        self.connected = False

    def publish(self, topic: str, payload: str, retain: bool = False, qos: int = 1) -> None:
        with self._lock:
            attempt = self.attempts.get(topic, 0) + 1
            self.attempts[topic] = attempt
            if self.fail is not None and self.fail(topic, attempt):
                raise BrokerError("publish", "simulated failure")
            self.published.append((topic, payload, retain))
            self.qos.append(qos)

    def poll(self) -> None:
        self.polls += 1
        if self.poll_failures_after is not None and self.polls > self.poll_failures_after:
            raise BrokerError("poll", "connection lost")
        time.sleep(0.01)

    def topics(self) -> List[str]:
        return [topic for topic, _, _ in self.published]


def engine_failure(stage: str = "upload transfer") -> EngineError:
    return EngineError(stage, OSError("network unreachable"))
