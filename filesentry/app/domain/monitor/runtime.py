"""Runtime helpers for checksum monitoring passes."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List

from .orchestrator import ChecksumMonitorOrchestrator, build_monitor_profiles
from ..cachestore.gateway import CacheStoreGateway, InMemoryCacheStoreGateway
from ..checksum.codec import DEFAULT_ALGORITHM
from ..checksum.pipeline import ObservationOutcome
from ..resources.file_resource import LinkPolicy
from ...config.loader import WatchedFileConfig
from ...infra.events import EventEmitter, get_event_emitter
from ...infra.metrics import MetricsClient, get_metrics_client

__all__ = ["run_monitor_once"]


def run_monitor_once(
    watched: Iterable[WatchedFileConfig | str | Path],
    *,
    cache_gateway: CacheStoreGateway | None = None,
    emitter: EventEmitter | None = None,
    metrics: MetricsClient | None = None,
    default_algorithm: str = DEFAULT_ALGORITHM.value,
    default_links: str = LinkPolicy.MANAGE.value,
) -> List[ObservationOutcome]:
    """Execute a single observation pass over all watched paths."""

    orchestrator = ChecksumMonitorOrchestrator(
        profiles=build_monitor_profiles(
            watched,
            default_algorithm=default_algorithm,
            default_links=default_links,
        ),
        cache_gateway=cache_gateway or InMemoryCacheStoreGateway(),
        emitter=emitter or get_event_emitter(),
        metrics=metrics or get_metrics_client(),
    )
    return orchestrator.run_once()
