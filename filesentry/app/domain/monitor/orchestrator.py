"""Orchestrates checksum observation cycles across watched files."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List

from ..cachestore.gateway import CacheStoreGateway
from ..checksum.codec import DEFAULT_ALGORITHM
from ..checksum.pipeline import ChecksumState, ObservationOutcome
from ..resources.file_resource import FileResource, LinkPolicy
from ...config.loader import WatchedFileConfig
from ...infra.events import EventEmitter
from ...infra.logging import get_logger
from ...infra.metrics import MetricsClient

__all__ = [
    "ChecksumMonitorOrchestrator",
    "MonitorProfile",
    "build_monitor_profiles",
]

logger = get_logger(__name__)


@dataclass(frozen=True)
class MonitorProfile:
    """How a single watched path should be fingerprinted."""

    path: Path
    algorithm: str
    links: str = LinkPolicy.MANAGE.value
    source: bool = False


def build_monitor_profiles(
    watched: Iterable[WatchedFileConfig | str | Path],
    *,
    default_algorithm: str = DEFAULT_ALGORITHM.value,
    default_links: str = LinkPolicy.MANAGE.value,
) -> list[MonitorProfile]:
    """Fill per-file gaps from the configured defaults."""

    profiles: list[MonitorProfile] = []
    for item in watched:
        if isinstance(item, WatchedFileConfig):
            profiles.append(
                MonitorProfile(
                    path=Path(item.path).expanduser(),
                    algorithm=item.algorithm or default_algorithm,
                    links=item.links or default_links,
                    source=item.source,
                )
            )
        else:
            profiles.append(
                MonitorProfile(
                    path=Path(item).expanduser(),
                    algorithm=default_algorithm,
                    links=default_links,
                )
            )
    return profiles


@dataclass
class ChecksumMonitorOrchestrator:
    """Keeps one checksum state per watched path and observes them in turn."""

    profiles: list[MonitorProfile]
    cache_gateway: CacheStoreGateway
    emitter: EventEmitter
    metrics: MetricsClient
    _states: Dict[str, ChecksumState] = field(default_factory=dict, init=False, repr=False)

    def state_for(self, profile: MonitorProfile) -> ChecksumState:
        key = str(profile.path)
        state = self._states.get(key)
        if state is None:
            resource = FileResource(
                profile.path,
                links=profile.links,
                cache_store=self.cache_gateway,
                source=profile.source,
            )
            state = ChecksumState(
                resource,
                profile.algorithm,
                emitter=self.emitter,
                metrics=self.metrics,
            )
            self._states[key] = state
        return state

    def run_once(self) -> List[ObservationOutcome]:
        outcomes: List[ObservationOutcome] = []
        self.metrics.gauge("checksum.watched", len(self.profiles))
        for profile in self.profiles:
            state = self.state_for(profile)
            state.resource.restore_states()
            try:
                outcome = state.observe()
            except OSError:
                logger.exception(
                    "monitor_observation_failed",
                    extra={"path": str(profile.path), "algorithm": profile.algorithm},
                )
                continue
            logger.info(
                "monitor_observation",
                extra={
                    "path": outcome.path,
                    "changed": outcome.changed,
                    "checksum": outcome.fingerprint,
                },
            )
            outcomes.append(outcome)
        return outcomes
