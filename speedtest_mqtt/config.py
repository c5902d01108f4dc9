"""Configuration loading helpers for the speedtest MQTT publisher."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

LOGGER = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class SchedulerConfig:
    interval_seconds: float = 60
    channel_capacity: int = 1


@dataclass
class BrokerConfig:
    client_id: str = "speedtest"
    host: str = "localhost"
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    keepalive: int = 5
    max_queued_messages: int = 10

    @property
    def has_credentials(self) -> bool:
        return bool(self.username) and self.password is not None


@dataclass
class DiscoveryConfig:
    namespace: str = "homeassistant"
    device_id: str = "speedtest"
    device_name: str = "Speedtest"
    publish_attempts: int = 3
    retry_delay_seconds: float = 1.0


@dataclass
class MeasurementsConfig:
    jitter_enabled: bool = False
    jitter_samples: int = 10
    jitter_delay_seconds: float = 0.1
    secure: bool = True


@dataclass
class LoggingConfig:
    level: str = "INFO"
    logs_dir: Optional[Path] = None


@dataclass
class AppConfig:
    scheduler: SchedulerConfig
    broker: BrokerConfig
    discovery: DiscoveryConfig
    measurements: MeasurementsConfig
    logging: LoggingConfig

    def validate(self) -> None:
        if self.scheduler.interval_seconds <= 0:
            raise ValueError("scheduler.interval_seconds must be positive")
        if self.scheduler.channel_capacity < 1:
            raise ValueError("scheduler.channel_capacity must be at least 1")
        if not 0 < self.broker.port < 65536:
            raise ValueError(f"broker.port out of range: {self.broker.port}")
        if self.measurements.jitter_samples < 1:
            raise ValueError("measurements.jitter_samples must be at least 1")
        if self.discovery.publish_attempts < 1:
            raise ValueError("discovery.publish_attempts must be at least 1")


# Environment variable -> (section, field, parser)
ENV_OVERRIDES = {
    "CHECK_INTERVAL": ("scheduler", "interval_seconds", float),
    "CHANNEL_CAPACITY": ("scheduler", "channel_capacity", int),
    "MQTT_ID": ("broker", "client_id", str),
    "MQTT_HOST": ("broker", "host", str),
    "MQTT_PORT": ("broker", "port", int),
    "MQTT_USERNAME": ("broker", "username", str),
    "MQTT_PASSWORD": ("broker", "password", str),
    "MQTT_KEEPALIVE": ("broker", "keepalive", int),
    "MQTT_NAMESPACE": ("discovery", "namespace", str),
    "DEVICE_ID": ("discovery", "device_id", str),
    "DEVICE_NAME": ("discovery", "device_name", str),
    "ENABLE_JITTER": ("measurements", "jitter_enabled", "bool"),
    "JITTER_SAMPLES": ("measurements", "jitter_samples", int),
    "JITTER_DELAY": ("measurements", "jitter_delay_seconds", float),
    "SPEEDTEST_SECURE": ("measurements", "secure", "bool"),
    "LOG_LEVEL": ("logging", "level", str),
    "LOGS_DIR": ("logging", "logs_dir", Path),
}


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def _apply_env(sections: Dict[str, Dict[str, Any]], environ: Mapping[str, str]) -> None:
    for name, (section, key, parser) in ENV_OVERRIDES.items():
        raw = environ.get(name)
        if raw is None or raw == "":
            continue
        try:
            value = _parse_bool(raw) if parser == "bool" else parser(raw)
        except ValueError:
            LOGGER.warning("Ignoring invalid value for %s: %r", name, raw)
            continue
        sections.setdefault(section, {})[key] = value


def _read_yaml(path: str) -> Dict[str, Any]:
    source_path = Path(path)
    if not source_path.exists():
        raise FileNotFoundError(f"Missing configuration file at {source_path}")

    with source_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {source_path} must contain a mapping")
    return data


def load_config(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Build the application configuration.

    Values come from the optional YAML file first; environment variables
    override them. The result is validated before it is returned.
    """

    data = _read_yaml(path) if path else {}
    sections = {name: dict(data.get(name) or {}) for name in ("scheduler", "broker", "discovery", "measurements", "logging")}
    _apply_env(sections, os.environ if environ is None else environ)

    logging_data = sections["logging"]
    if logging_data.get("logs_dir") is not None:
        logging_data["logs_dir"] = Path(logging_data["logs_dir"])

    config = AppConfig(
        scheduler=SchedulerConfig(**sections["scheduler"]),
        broker=BrokerConfig(**sections["broker"]),
        discovery=DiscoveryConfig(**sections["discovery"]),
        measurements=MeasurementsConfig(**sections["measurements"]),
        logging=LoggingConfig(**logging_data),
    )
    config.validate()
    return config
