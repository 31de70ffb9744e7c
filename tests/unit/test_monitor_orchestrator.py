"""Tests for the checksum monitor orchestrator and runtime."""

# Coverage: monitor orchestrator, checksum pipeline

from pathlib import Path

import pytest

from filesentry.app.config.loader import WatchedFileConfig
from filesentry.app.domain.cachestore.gateway import InMemoryCacheStoreGateway
from filesentry.app.domain.checksum.codec import ABSENT
from filesentry.app.domain.checksum.errors import InvalidAlgorithm
from filesentry.app.domain.monitor import orchestrator as orchestrator_module
from filesentry.app.domain.monitor.orchestrator import (
    ChecksumMonitorOrchestrator,
    MonitorProfile,
    build_monitor_profiles,
)
from filesentry.app.domain.monitor.runtime import run_monitor_once
from filesentry.app.domain.resources.file_resource import FileResource
from filesentry.app.infra.metrics import InMemoryMetricsClient
from tests.helpers.events import RecordingEventEmitter
from tests.helpers.logging import RecordingLogger, assert_extra_contains, find_log

pytestmark = [pytest.mark.monitor]


def _orchestrator(profiles, emitter=None, metrics=None):
    return ChecksumMonitorOrchestrator(
        profiles=profiles,
        cache_gateway=InMemoryCacheStoreGateway(),
        emitter=emitter or RecordingEventEmitter(),
        metrics=metrics or InMemoryMetricsClient(),
    )


def test_build_monitor_profiles_applies_defaults(tmp_path):
    profiles = build_monitor_profiles(
        [
            WatchedFileConfig(path=str(tmp_path / "a.txt"), algorithm="mtime"),
            WatchedFileConfig(path=str(tmp_path / "b.txt"), links="follow", source=True),
            str(tmp_path / "c.txt"),
        ],
        default_algorithm="md5lite",
        default_links="ignore",
    )

    assert profiles == [
        MonitorProfile(path=tmp_path / "a.txt", algorithm="mtime", links="ignore"),
        MonitorProfile(
            path=tmp_path / "b.txt", algorithm="md5lite", links="follow", source=True
        ),
        MonitorProfile(path=tmp_path / "c.txt", algorithm="md5lite", links="ignore"),
    ]


def test_run_once_reports_changes_between_cycles(tmp_path):
    first = tmp_path / "a.txt"
    second = tmp_path / "b.txt"
    first.write_text("one", encoding="utf-8")
    second.write_text("two", encoding="utf-8")
    emitter = RecordingEventEmitter()
    metrics = InMemoryMetricsClient()
    orchestrator = _orchestrator(
        build_monitor_profiles([first, second]), emitter=emitter, metrics=metrics
    )

    initial = orchestrator.run_once()
    assert [outcome.first_sight for outcome in initial] == [True, True]
    assert not any(outcome.changed for outcome in initial)

    second.write_text("changed", encoding="utf-8")
    follow_up = orchestrator.run_once()

    assert [outcome.changed for outcome in follow_up] == [False, True]
    assert follow_up[1].path == str(second)
    assert emitter.topics == ["file_changed"]
    assert metrics.counters["checksum.changed"] == 1
    assert metrics.counters["checksum.observed"] == 4
    assert metrics.gauges["checksum.watched"] == 2


def test_run_once_tolerates_missing_files(tmp_path):
    orchestrator = _orchestrator(build_monitor_profiles([tmp_path / "missing.txt"]))

    outcomes = orchestrator.run_once()

    assert len(outcomes) == 1
    assert outcomes[0].fingerprint == ABSENT
    assert outcomes[0].changed is False


def test_run_once_logs_stat_failures_and_continues(tmp_path, monkeypatch):
    broken = tmp_path / "broken.txt"
    healthy = tmp_path / "healthy.txt"
    broken.write_text("x", encoding="utf-8")
    healthy.write_text("y", encoding="utf-8")
    original_stat = FileResource.stat

    def flaky_stat(self):
        if self.path == str(broken):
            raise PermissionError(13, "Permission denied")
        return original_stat(self)

    monkeypatch.setattr(FileResource, "stat", flaky_stat)
    log = RecordingLogger()
    monkeypatch.setattr(orchestrator_module, "logger", log)

    outcomes = _orchestrator(build_monitor_profiles([broken, healthy])).run_once()

    assert [outcome.path for outcome in outcomes] == [str(healthy)]
    record = find_log(log.records, level="exception", message="monitor_observation_failed")
    assert_extra_contains(record, path=str(broken), algorithm="md5")


def test_invalid_algorithm_fails_the_run(tmp_path):
    orchestrator = _orchestrator(
        [MonitorProfile(path=tmp_path / "a.txt", algorithm="sha1")]
    )

    with pytest.raises(InvalidAlgorithm):
        orchestrator.run_once()


def test_dropped_tracking_is_restored_next_cycle(tmp_path):
    target = tmp_path / "a.txt"
    target.write_text("one", encoding="utf-8")
    orchestrator = _orchestrator(build_monitor_profiles([target]))
    state = orchestrator.state_for(orchestrator.profiles[0])
    state.resource.drop_state("checksum")

    outcomes = orchestrator.run_once()

    assert outcomes[0].first_sight is True
    assert state.resource.tracks("checksum") is True


def test_run_monitor_once_uses_supplied_collaborators(tmp_path):
    target = tmp_path / "a.txt"
    target.write_text("one", encoding="utf-8")
    gateway = InMemoryCacheStoreGateway()
    gateway.put(str(target), "checksums", {"md5": "{md5}stale"})
    emitter = RecordingEventEmitter()

    outcomes = run_monitor_once(
        [Path(target)],
        cache_gateway=gateway,
        emitter=emitter,
        metrics=InMemoryMetricsClient(),
    )

    assert outcomes[0].changed is True
    assert outcomes[0].previous == "{md5}stale"
    assert emitter.events[0][1]["description"].startswith("checksum changed '{md5}stale'")
