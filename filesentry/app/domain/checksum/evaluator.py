"""Decide whether an observed fingerprint diverges from the cached one."""

from __future__ import annotations

from dataclasses import dataclass

from .cache import FingerprintCache
from .codec import Algorithm, is_sentinel
from .errors import InconsistentState

__all__ = ["SyncDecision", "evaluate_sync", "is_in_sync"]


@dataclass(frozen=True)
class SyncDecision:
    """Outcome of comparing an observation with the cache.

    `created` marks first sight: the entry was stored without comparison.
    `previous` carries the replaced cache value when `changed` is true.
    """

    in_sync: bool
    created: bool = False
    previous: str | None = None

    @property
    def changed(self) -> bool:
        return not self.in_sync


def _require_fingerprint(observed: str) -> None:
    if observed is None or is_sentinel(observed):
        raise InconsistentState(f"Cannot evaluate checksum state {observed!r}")


def is_in_sync(cache: FingerprintCache, algorithm: Algorithm, observed: str) -> bool:
    """Read-only comparison; an algorithm with no cache entry is in sync."""

    cached = cache.get_tagged(algorithm)
    if cached is None:
        return True
    return observed == cached


def evaluate_sync(
    cache: FingerprintCache, algorithm: Algorithm, observed: str
) -> SyncDecision:
    """Compare `observed` against the cache and record it."""

    _require_fingerprint(observed)
    cached = cache.get_tagged(algorithm)
    if cached is None:
        cache.set(algorithm, observed)
        return SyncDecision(in_sync=True, created=True)
    if observed == cached:
        return SyncDecision(in_sync=True)
    cache.set(algorithm, observed)
    return SyncDecision(in_sync=False, previous=cached)
