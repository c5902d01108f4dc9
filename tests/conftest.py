from __future__ import annotations

import pytest

from fakes import FakeEngine, FakeSession
from speedtest_mqtt.config import AppConfig, load_config


@pytest.fixture
def config() -> AppConfig:
    cfg = load_config(environ={})
    cfg.discovery.retry_delay_seconds = 0
    cfg.measurements.jitter_delay_seconds = 0
    return cfg


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()
