"""Per-resource cache of the last recorded fingerprint for each algorithm."""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

from .codec import (
    Algorithm,
    Fingerprint,
    format_fingerprint,
    is_tagged,
    parse_algorithm,
    parse_fingerprint,
)
from .errors import InvalidFingerprint
from ...infra.logging import get_logger

__all__ = ["CHECKSUMS_CACHE_KEY", "CacheOwner", "FingerprintCache"]

logger = get_logger(__name__)

CHECKSUMS_CACHE_KEY = "checksums"


class CacheOwner(Protocol):  # pragma: no cover - structural typing hook
    """Opaque key-value cache exposed by the owning resource."""

    path: str

    def cached(self, key: str) -> Any: ...

    def cache(self, key: str, value: Any) -> None: ...


class FingerprintCache:
    """Algorithm -> tagged fingerprint mapping stored under `"checksums"`."""

    def __init__(self, owner: CacheOwner) -> None:
        self._owner = owner

    def _mapping(self) -> Dict[str, str]:
        state = self._owner.cached(CHECKSUMS_CACHE_KEY)
        if state is None:
            logger.debug("checksum_cache_initialized", extra={"path": self._owner.path})
            state = {}
            self._owner.cache(CHECKSUMS_CACHE_KEY, state)
        return state

    def get_tagged(self, algorithm: Algorithm) -> Optional[str]:
        stored = self._mapping().get(algorithm.value)
        if stored is None:
            return None
        if not is_tagged(stored):
            return format_fingerprint(algorithm, stored)
        return stored

    def get(self, algorithm: Algorithm) -> Optional[Fingerprint]:
        tagged = self.get_tagged(algorithm)
        if tagged is None:
            return None
        return parse_fingerprint(tagged)

    def set(self, algorithm: Algorithm, value: Fingerprint | str) -> str:
        """Store `value` in tagged form and persist the mapping; return the tag.

        A value tagged with a different algorithm raises `InvalidFingerprint`.
        """

        if isinstance(value, Fingerprint):
            fingerprint = value
        elif is_tagged(value):
            fingerprint = parse_fingerprint(value)
        else:
            fingerprint = Fingerprint(algorithm, value)
        if fingerprint.algorithm is not algorithm:
            raise InvalidFingerprint(
                f"Cannot store {fingerprint.tagged!r} as a {algorithm.value} checksum"
            )
        tagged = fingerprint.tagged
        mapping = dict(self._mapping())
        mapping[algorithm.value] = tagged
        self._owner.cache(CHECKSUMS_CACHE_KEY, mapping)
        return tagged

    def entries(self) -> Dict[Algorithm, Fingerprint]:
        result: Dict[Algorithm, Fingerprint] = {}
        for token in self._mapping():
            algorithm = parse_algorithm(token)
            fingerprint = self.get(algorithm)
            if fingerprint is not None:
                result[algorithm] = fingerprint
        return result

    def __contains__(self, algorithm: Algorithm) -> bool:
        return algorithm.value in self._mapping()
