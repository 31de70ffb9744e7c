"""Tagged `{algorithm}value` fingerprint encoding.

Stored checksums carry their algorithm inline so a cached value can be parsed
back without any side information, e.g. `{md5}5d41402abc4b2a76b9719d911017c592`
or `{mtime}2024-01-01T00:00:00Z`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Mapping, Tuple

from .errors import InvalidAlgorithm, InvalidFingerprint

__all__ = [
    "ABSENT",
    "ALGORITHM_ALIASES",
    "Algorithm",
    "CONTENT_ALGORITHMS",
    "DEFAULT_ALGORITHM",
    "Fingerprint",
    "NO_CHECKSUM",
    "format_fingerprint",
    "is_sentinel",
    "is_tagged",
    "parse_algorithm",
    "parse_fingerprint",
    "resolve_for_directory",
    "split_tagged",
    "valid_algorithms",
]


class Algorithm(str, Enum):
    """Closed set of fingerprint strategies, valued by their tag token."""

    CONTENT_HASH = "md5"
    CONTENT_HASH_PARTIAL = "md5lite"
    MTIME_TIMESTAMP = "timestamp"
    MTIME = "mtime"
    CHANGE_TIME = "time"

    def __str__(self) -> str:
        return self.value


DEFAULT_ALGORITHM = Algorithm.CONTENT_HASH

ALGORITHM_ALIASES: Mapping[str, Algorithm] = {
    "content-hash": Algorithm.CONTENT_HASH,
    "content-hash-partial": Algorithm.CONTENT_HASH_PARTIAL,
    "mtime-timestamp": Algorithm.MTIME_TIMESTAMP,
    "ctime": Algorithm.CHANGE_TIME,
    "change-time": Algorithm.CHANGE_TIME,
}

CONTENT_ALGORITHMS: FrozenSet[Algorithm] = frozenset(
    {Algorithm.CONTENT_HASH, Algorithm.CONTENT_HASH_PARTIAL}
)

# Sentinels never start with "{" so they can't equal a tagged fingerprint.
ABSENT = "absent"
NO_CHECKSUM = "nosum"

_TAGGED_RE = re.compile(r"^\{([\w-]+)\}(.+)$", re.DOTALL)


@dataclass(frozen=True)
class Fingerprint:
    """An `(algorithm, value)` pair summarizing an object at a point in time."""

    algorithm: Algorithm
    value: str

    @property
    def tagged(self) -> str:
        return format_fingerprint(self.algorithm, self.value)

    def __str__(self) -> str:
        return self.tagged


def valid_algorithms() -> FrozenSet[Algorithm]:
    return frozenset(Algorithm)


def parse_algorithm(token: str | Algorithm) -> Algorithm:
    """Validate a bare algorithm token or alias and return its enum member."""

    if isinstance(token, Algorithm):
        return token
    normalized = str(token).strip().lower()
    try:
        return Algorithm(normalized)
    except ValueError:
        pass
    alias = ALGORITHM_ALIASES.get(normalized)
    if alias is None:
        raise InvalidAlgorithm(token)
    return alias


def is_tagged(raw: object) -> bool:
    return isinstance(raw, str) and _TAGGED_RE.match(raw) is not None


def is_sentinel(raw: object) -> bool:
    return raw in (ABSENT, NO_CHECKSUM)


def split_tagged(raw: str) -> Tuple[str, str] | None:
    """Return `(token, value)` for a tagged string, or `None` if untagged."""

    match = _TAGGED_RE.match(raw)
    if match is None:
        return None
    return match.group(1), match.group(2)


def parse_fingerprint(raw: str) -> Fingerprint:
    """Decode `{algorithm}value`; unknown algorithms raise `InvalidAlgorithm`."""

    parts = split_tagged(raw)
    if parts is None:
        raise InvalidFingerprint(f"Checksum {raw!r} is not in {{algorithm}}value form")
    token, value = parts
    return Fingerprint(parse_algorithm(token), value)


def format_fingerprint(algorithm: str | Algorithm, value: object) -> str:
    """Render `{algorithm}value`, replacing any tag already present on `value`."""

    resolved = parse_algorithm(algorithm)
    text = str(value)
    parts = split_tagged(text)
    if parts is not None:
        text = parts[1]
    return f"{{{resolved.value}}}{text}"


def resolve_for_directory(algorithm: Algorithm) -> Algorithm:
    """Directories have no byte content; hash algorithms fall back to ctime."""

    if algorithm in CONTENT_ALGORITHMS:
        return Algorithm.CHANGE_TIME
    return algorithm
