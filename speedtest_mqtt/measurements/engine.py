"""Adapter over the speedtest-cli library.

Every engine stage is exposed separately so failures can be attributed to
the stage that produced them (configuration fetch, server discovery,
latency probing, transfer).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import speedtest

from ..errors import EngineError
from .models import ProbeKind

LOGGER = logging.getLogger(__name__)

ENGINE_ERRORS = (speedtest.SpeedtestException, OSError)


def bits_to_mbps(value: float) -> float:
    return value / 1_000_000


@dataclass(frozen=True)
class Measurement:
    bits_per_second: float

    @property
    def mbps(self) -> float:
        return bits_to_mbps(self.bits_per_second)


class SpeedtestEngine:
    def __init__(
        self,
        secure: bool = True,
        timeout: int = 10,
        client_factory: Optional[Callable[..., Any]] = None,
    ):
        self.secure = secure
        self.timeout = timeout
        self._client_factory = client_factory or speedtest.Speedtest

    def get_configuration(self) -> Any:
        """Create a client; speedtest-cli fetches its configuration on init."""
        try:
            return self._client_factory(secure=self.secure, timeout=self.timeout)
        except ENGINE_ERRORS as exc:
            raise EngineError("configuration fetch", exc) from exc

    def discover_servers(self, client: Any) -> Dict:
        try:
            return client.get_servers()
        except ENGINE_ERRORS as exc:
            raise EngineError("server discovery", exc) from exc

    def select_best_server(self, client: Any) -> Dict:
        """Pick the lowest latency server among the closest candidates."""
        try:
            return client.get_best_server()
        except ENGINE_ERRORS as exc:
            raise EngineError("latency probing", exc) from exc

    def run_download(self, client: Any) -> Measurement:
        try:
            return Measurement(float(client.download()))
        except ENGINE_ERRORS as exc:
            raise EngineError("download transfer", exc) from exc

    def run_upload(self, client: Any) -> Measurement:
        try:
            return Measurement(float(client.upload()))
        except ENGINE_ERRORS as exc:
            raise EngineError("upload transfer", exc) from exc

    def _prepare(self) -> tuple:
        client = self.get_configuration()
        self.discover_servers(client)
        best = self.select_best_server(client)
        LOGGER.debug(
            "Selected server %s (%s) at %.2f ms",
            best.get("sponsor"),
            best.get("host"),
            best.get("latency", 0.0),
        )
        return client, best

    def measure(self, kind: ProbeKind) -> float:
        """Run one engine measurement; Mbps for throughput, ms for latency."""
        if kind is ProbeKind.JITTER:
            raise ValueError("jitter is derived from latency samples, not measured directly")
        client, best = self._prepare()
        if kind is ProbeKind.DOWNLOAD:
            return self.run_download(client).mbps
        if kind is ProbeKind.UPLOAD:
            return self.run_upload(client).mbps
        return float(best["latency"])
