"""Exception hierarchy shared by the measurement and publishing pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .measurements.models import ProbeKind


class SpeedtestMqttError(Exception):
    """Base class for every error raised by this package."""


class EngineError(SpeedtestMqttError):
    """The measurement engine failed at a given stage."""

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(f"{stage} failed: {cause}")
        self.stage = stage
        self.cause = cause


class ProbeError(SpeedtestMqttError):
    def __init__(self, kind: "ProbeKind", cause: BaseException):
        super().__init__(f"{kind.value} probe failed: {cause}")
        self.kind = kind
        self.cause = cause


class CycleError(SpeedtestMqttError):
    """A measurement cycle produced no snapshot."""

    def __init__(self, kind: "ProbeKind", cause: Optional[BaseException]):
        super().__init__(self.describe(kind, cause))
        self.kind = kind
        self.cause = cause

    @staticmethod
    def describe(kind: "ProbeKind", cause: Optional[BaseException]) -> str:
        return f"{kind.value}: {cause}"


class CycleJoinFailure(CycleError):
    """A probe's worker was cancelled or crashed before reporting a result."""

    @staticmethod
    def describe(kind: "ProbeKind", cause: Optional[BaseException]) -> str:
        return f"{kind.value} probe did not complete: {cause!r}"


class CycleProbeFailed(CycleError):
    @staticmethod
    def describe(kind: "ProbeKind", cause: Optional[BaseException]) -> str:
        return f"{kind.value} probe reported an error: {cause}"


class BrokerError(SpeedtestMqttError):
    def __init__(self, operation: str, cause: object):
        super().__init__(f"MQTT {operation} failed: {cause}")
        self.operation = operation
        self.cause = cause


class SerializationError(SpeedtestMqttError):
    pass


class ChannelClosed(SpeedtestMqttError):
    """Raised when pushing into a hand-off channel whose receiver is gone."""
