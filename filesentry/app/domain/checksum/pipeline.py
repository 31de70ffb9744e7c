"""Checksum retrieval pipeline for a single monitored resource.

The state never modifies the filesystem. It records the current fingerprint in
the resource cache and reports a `file_changed` event when a later observation
diverges from what was recorded. The first fingerprint seen for an algorithm
is stored silently.

Stages of `retrieve`:

1. stat the path; a missing object is observed as `ABSENT` and nothing is
   compared;
2. symlinks that are not followed are observed as the cached value, so they
   can never produce an event;
3. compute the fingerprint with the effective algorithm;
4. on first sight, commit the value to the cache without an event.
"""

from __future__ import annotations

import stat
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Protocol

from .cache import CacheOwner, FingerprintCache
from .codec import (
    ABSENT,
    DEFAULT_ALGORITHM,
    NO_CHECKSUM,
    Algorithm,
    Fingerprint,
    format_fingerprint,
    is_sentinel,
    is_tagged,
    parse_algorithm,
    parse_fingerprint,
    resolve_for_directory,
    split_tagged,
)
from .computer import compute_fingerprint
from .errors import (
    AccessDenied,
    ContentUnreadable,
    InconsistentState,
    InvalidFingerprint,
)
from .evaluator import evaluate_sync, is_in_sync
from ...infra.events import FILE_CHANGED, EventEmitter, get_event_emitter
from ...infra.logging import get_logger
from ...infra.metrics import MetricsClient, get_metrics_client

__all__ = [
    "CHECKSUM_STATE_NAME",
    "ChecksumResource",
    "ChecksumState",
    "ObservationOutcome",
    "ObservationState",
]

logger = get_logger(__name__)

CHECKSUM_STATE_NAME = "checksum"


class ChecksumResource(CacheOwner, Protocol):  # pragma: no cover
    """What the pipeline needs from the resource that owns the state."""

    def stat(self) -> Any: ...

    @property
    def follows_links(self) -> bool: ...

    def is_directory(self) -> bool: ...

    def has_active_source_copy(self) -> bool: ...

    def drop_state(self, name: str) -> None: ...

    def tracks(self, name: str) -> bool: ...


@dataclass(frozen=True)
class ObservationState:
    """Values carried between pipeline stages for one resource."""

    observed: Optional[str] = None
    # Algorithm the observation was taken with.
    algorithm: Optional[Algorithm] = None
    desired: Optional[Algorithm] = None
    # Set when the desired checksum was explicitly removed with `nosum`.
    cleared: bool = False
    previous: Optional[str] = None
    freshly_cached: bool = False


@dataclass(frozen=True)
class ObservationOutcome:
    """Result of one observation cycle: either no change or a change event."""

    path: str
    changed: bool
    fingerprint: Optional[str] = None
    previous: Optional[str] = None
    event: Optional[str] = None
    description: Optional[str] = None
    first_sight: bool = False


class ChecksumState:
    """Tracks the checksum of one resource and reports divergence."""

    name = CHECKSUM_STATE_NAME
    event = FILE_CHANGED

    def __init__(
        self,
        resource: ChecksumResource,
        desired: str | Algorithm | None = None,
        *,
        emitter: Optional[EventEmitter] = None,
        metrics: Optional[MetricsClient] = None,
    ) -> None:
        self.resource = resource
        self.cache = FingerprintCache(resource)
        self.state = ObservationState()
        self.emitter = emitter or get_event_emitter()
        self.metrics = metrics or get_metrics_client()
        if desired is not None:
            self.assign(desired)

    @property
    def observed(self) -> Optional[str]:
        return self.state.observed

    @property
    def desired(self) -> Optional[Algorithm]:
        return self.state.desired

    def checktype(self) -> Algorithm:
        return self.state.desired or DEFAULT_ALGORITHM

    def current_sum(self) -> str:
        return self.cache.get_tagged(self.checktype()) or NO_CHECKSUM

    def assign(self, value: str | Algorithm) -> Optional[Algorithm]:
        """Set the desired algorithm from a bare token or `{algorithm}value`.

        A tagged value is stored in the cache as a known fingerprint, without
        reading the file.
        """

        if value == NO_CHECKSUM:
            self.state = replace(self.state, desired=None, cleared=True)
            return None

        parts = None if isinstance(value, Algorithm) else split_tagged(str(value))
        if parts is not None:
            algorithm = parse_algorithm(parts[0])
            tagged = self.cache.set(algorithm, format_fingerprint(algorithm, parts[1]))
            logger.debug(
                "checksum_injected",
                extra={"path": self.resource.path, "checksum": tagged},
            )
        else:
            algorithm = parse_algorithm(value)
            if self.resource.is_directory():
                algorithm = resolve_for_directory(algorithm)
        self.state = replace(self.state, desired=algorithm, cleared=False)
        return algorithm

    def retrieve(self, use_cache: bool = False) -> Optional[str]:
        """Observe the resource and return the fingerprint, `ABSENT` or a sentinel."""

        if not self.resource.tracks(self.name):
            self.state = replace(
                self.state,
                observed=NO_CHECKSUM,
                algorithm=None,
                previous=None,
                freshly_cached=False,
            )
            return NO_CHECKSUM

        algorithm = self.checktype()
        # Copying collaborators pass use_cache so the file isn't read twice.
        if use_cache and not self._needs_retrieval(algorithm):
            return self.state.observed

        stat_result = self.resource.stat()
        if stat_result is None:
            self.state = replace(
                self.state,
                observed=ABSENT,
                algorithm=algorithm,
                previous=None,
                freshly_cached=False,
            )
            self.metrics.increment("checksum.absent")
            if not self.resource.has_active_source_copy():
                logger.warning(
                    "checksum_target_missing",
                    extra={"path": self.resource.path},
                )
            return ABSENT

        if stat.S_ISLNK(stat_result.st_mode) and not self.resource.follows_links:
            logger.debug("checksum_symlink_skipped", extra={"path": self.resource.path})
            self.metrics.increment("checksum.symlink_skipped")
            self.state = replace(
                self.state,
                observed=self.current_sum(),
                algorithm=algorithm,
                previous=None,
                freshly_cached=False,
            )
            return self.state.observed

        try:
            fingerprint = compute_fingerprint(algorithm, stat_result, self.resource.path)
        except (AccessDenied, ContentUnreadable) as exc:
            self._drop_tracking(exc)
            return self.state.observed

        self.state = replace(
            self.state,
            observed=fingerprint.tagged,
            algorithm=algorithm,
            previous=None,
            freshly_cached=False,
        )
        # First sight: record without producing an event.
        if algorithm not in self.cache:
            self.update_sum()
        return self.state.observed

    def insync(self, desired: str | Algorithm | None = None) -> bool:
        if desired is not None:
            self.assign(desired)
        algorithm = self.checktype()
        self.state = replace(self.state, desired=algorithm)
        if not self.resource.tracks(self.name):
            return True
        if self._needs_retrieval(algorithm):
            self.retrieve()
            if not self.resource.tracks(self.name):
                return True
        return is_in_sync(self.cache, algorithm, self.state.observed)

    def sync(self) -> Optional[str]:
        """Record the current observation and return an event if it changed."""

        if self.state.observed is None:
            raise InconsistentState(
                f"Checksum state for {self.resource.path} is somehow unset"
            )
        if not self.resource.tracks(self.name):
            return None

        if self._needs_retrieval(self.checktype()):
            self.retrieve()
            if not self.resource.tracks(self.name):
                return None

        if self.state.observed == ABSENT:
            self.retrieve()
            if self.insync():
                logger.debug("checksum_already_in_sync", extra={"path": self.resource.path})
                return None
            if self.state.observed == ABSENT:
                return None

        if self.update_sum():
            return self.event
        return None

    def reconcile(self, value: Fingerprint | str) -> Optional[str]:
        """Force the observation to `value` and report whether it changed.

        A value tagged with an algorithm other than the desired one raises
        `InvalidFingerprint`.
        """

        if self.state.desired is not None:
            self.assign(self.state.desired)
        algorithm = self.checktype()
        if isinstance(value, Fingerprint):
            fingerprint = value
        elif is_tagged(value):
            fingerprint = parse_fingerprint(value)
        else:
            fingerprint = Fingerprint(algorithm, value)
        if fingerprint.algorithm is not algorithm:
            raise InvalidFingerprint(
                f"Cannot reconcile {fingerprint.tagged!r} with a "
                f"{algorithm.value} checksum for {self.resource.path}"
            )
        self.state = replace(
            self.state, observed=fingerprint.tagged, algorithm=algorithm
        )
        if not self.update_sum():
            return None
        self._publish(self.event)
        return self.event

    def update_sum(self) -> bool:
        """Store the observation in the cache; return True if it replaced a sum."""

        observed = self.state.observed
        if observed is None or is_sentinel(observed):
            raise InconsistentState(f"{self.resource.path} has invalid checksum")

        algorithm = self.checktype()
        if algorithm in self.cache and self.state.desired is None:
            raise InconsistentState(
                f"Desired checksum is not initialized for {self.resource.path}, "
                "even though a checksum was found"
            )

        decision = evaluate_sync(self.cache, algorithm, observed)
        if decision.created:
            logger.debug(
                "checksum_created",
                extra={"path": self.resource.path, "checksum": observed},
            )
            self.metrics.increment("checksum.first_sight")
        elif decision.in_sync:
            logger.info("checksum_sums_already_equal", extra={"path": self.resource.path})
            return False
        else:
            logger.debug(
                "checksum_replaced",
                extra={
                    "path": self.resource.path,
                    "previous": decision.previous,
                    "checksum": observed,
                },
            )

        self.state = replace(
            self.state, previous=decision.previous, freshly_cached=decision.created
        )
        return decision.changed

    def observe(self) -> ObservationOutcome:
        """Run retrieve, comparison and sync once, emitting any change event."""

        self.metrics.increment("checksum.observed")
        path = self.resource.path
        if not self.resource.tracks(self.name):
            return ObservationOutcome(path=path, changed=False)

        observed = self.retrieve()
        if not self.resource.tracks(self.name) or observed == ABSENT:
            return ObservationOutcome(path=path, changed=False, fingerprint=observed)

        if self.insync():
            return ObservationOutcome(
                path=path,
                changed=False,
                fingerprint=observed,
                first_sight=self.state.freshly_cached,
            )

        event = self.sync()
        if event is None:
            return ObservationOutcome(path=path, changed=False, fingerprint=observed)

        description = self._publish(event)
        return ObservationOutcome(
            path=path,
            changed=True,
            fingerprint=self.state.observed,
            previous=self.state.previous,
            event=event,
            description=description,
        )

    def change_description(self) -> str:
        observed = self.state.observed
        if observed is None:
            raise InconsistentState(
                f"Cannot describe checksum change for {self.resource.path}: nothing observed"
            )
        if observed == ABSENT:
            return f"defined '{self.name}' as '{self.current_sum()}'"
        if self.state.cleared:
            return f"undefined {self.name} from '{observed}'"
        previous = self.state.previous or self.current_sum()
        return f"{self.name} changed '{previous}' to '{observed}'"

    def _publish(self, event: str) -> str:
        description = self.change_description()
        payload: Dict[str, Any] = {
            "path": self.resource.path,
            "algorithm": self.checktype().value,
            "previous": self.state.previous,
            "current": self.state.observed,
            "description": description,
        }
        self.metrics.increment("checksum.changed")
        logger.info("checksum_changed", extra=payload)
        self.emitter.emit(event, payload)
        return description

    def _needs_retrieval(self, algorithm: Algorithm) -> bool:
        # Observations are only comparable with cache entries of their own algorithm.
        return self.state.observed is None or self.state.algorithm is not algorithm

    def _drop_tracking(self, exc: Exception) -> None:
        message = (
            "checksum_permission_denied"
            if isinstance(exc, AccessDenied)
            else "checksum_content_unreadable"
        )
        logger.info(message, extra={"path": self.resource.path, "detail": str(exc)})
        self.metrics.increment("checksum.access_denied")
        self.resource.drop_state(self.name)
        self.state = replace(
            self.state,
            observed=NO_CHECKSUM,
            algorithm=None,
            previous=None,
            freshly_cached=False,
        )
