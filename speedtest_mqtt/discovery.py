"""Home Assistant MQTT discovery descriptors and topic naming."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from .config import DiscoveryConfig
from .measurements.models import ProbeKind

DEVICE_CLASSES = {
    ProbeKind.DOWNLOAD: "data_rate",
    ProbeKind.UPLOAD: "data_rate",
    ProbeKind.LATENCY: "duration",
    ProbeKind.JITTER: "duration",
}


def state_topic(config: DiscoveryConfig, kind: ProbeKind) -> str:
    return f"{config.namespace}/sensor/{config.device_id}/{kind.value}"


def config_topic(config: DiscoveryConfig, kind: ProbeKind) -> str:
    return f"{state_topic(config, kind)}/config"


@dataclass(frozen=True)
class DiscoveryDescriptor:
    kind: ProbeKind
    name: str
    unit: str
    device_class: str
    config_topic: str
    state_topic: str
    unique_id: str
    device_name: str
    device_identifier: str

    def to_payload(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "state_topic": self.state_topic,
            "unit_of_measurement": self.unit,
            "device_class": self.device_class,
            "state_class": "measurement",
            "unique_id": self.unique_id,
            "device": {
                "name": self.device_name,
                "identifiers": [self.device_identifier],
            },
        }


def build_descriptors(config: DiscoveryConfig, kinds: Iterable[ProbeKind]) -> List[DiscoveryDescriptor]:
    return [
        DiscoveryDescriptor(
            kind=kind,
            name=f"{config.device_name} {kind.value}",
            unit=kind.unit,
            device_class=DEVICE_CLASSES[kind],
            config_topic=config_topic(config, kind),
            state_topic=state_topic(config, kind),
            unique_id=f"{config.device_id}_{kind.value}",
            device_name=config.device_name,
            device_identifier=f"{config.device_id}_device",
        )
        for kind in kinds
    ]
