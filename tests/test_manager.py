import threading
from datetime import datetime, timezone

import pytest

from fakes import FakeEngine, engine_failure
from speedtest_mqtt.errors import CycleError, CycleJoinFailure, CycleProbeFailed
from speedtest_mqtt.measurements.manager import MeasurementManager
from speedtest_mqtt.measurements.models import ProbeKind
from speedtest_mqtt.measurements.runner import ProbeRunner

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_manager(config, engine):
    runner = ProbeRunner(engine, jitter_samples=3, jitter_delay=0, sleep=lambda _: None)
    return MeasurementManager(config, runner, clock=lambda: FIXED_NOW)


def test_cycle_aggregates_all_probes(config, engine):
    snapshot = make_manager(config, engine).run_cycle()

    assert snapshot.download == 50.0
    assert snapshot.upload == 10.0
    assert snapshot.ping == 12.5
    assert snapshot.jitter is None
    assert snapshot.timestamp == FIXED_NOW
    assert sorted(kind.value for kind in engine.calls) == ["download", "ping", "upload"]


def test_cycle_includes_jitter_when_enabled(config, engine):
    config.measurements.jitter_enabled = True

    snapshot = make_manager(config, engine).run_cycle()

    assert snapshot.jitter == 0.0
    assert ProbeKind.JITTER in snapshot.values()


def test_any_failed_probe_fails_the_cycle(config, engine):
    engine.values[ProbeKind.UPLOAD] = engine_failure()

    with pytest.raises(CycleProbeFailed) as excinfo:
        make_manager(config, engine).run_cycle()

    assert excinfo.value.kind is ProbeKind.UPLOAD
    assert isinstance(excinfo.value, CycleError)


def test_crashed_worker_is_a_join_failure(config, engine):
    engine.values[ProbeKind.DOWNLOAD] = RuntimeError("worker blew up")

    with pytest.raises(CycleJoinFailure) as excinfo:
        make_manager(config, engine).run_cycle()

    assert excinfo.value.kind is ProbeKind.DOWNLOAD


def test_probes_run_concurrently(config):
    # Each probe waits for the other two; sequential execution would break the barrier.
    barrier = threading.Barrier(3, timeout=5)

    def rendezvous(value):
        def measure():
            barrier.wait()
            return value

        return measure

    engine = FakeEngine(
        {
            ProbeKind.DOWNLOAD: rendezvous(100.0),
            ProbeKind.UPLOAD: rendezvous(20.0),
            ProbeKind.LATENCY: rendezvous(8.0),
        }
    )

    snapshot = make_manager(config, engine).run_cycle()

    assert (snapshot.download, snapshot.upload, snapshot.ping) == (100.0, 20.0, 8.0)
