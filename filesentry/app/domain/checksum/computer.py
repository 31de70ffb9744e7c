"""Compute fingerprints from file metadata and content."""

from __future__ import annotations

import hashlib
import os
import stat
from datetime import datetime, timezone
from typing import Callable, Dict

from .codec import Algorithm, Fingerprint
from .errors import AccessDenied, ContentUnreadable, InconsistentState
from ...infra.logging import get_logger

__all__ = [
    "EMPTY_FILE_VALUE",
    "PARTIAL_BYTES",
    "TIMESTAMP_FORMAT",
    "compute_fingerprint",
    "format_timestamp",
]

logger = get_logger(__name__)

PARTIAL_BYTES = 512
READ_CHUNK_SIZE = 1024 * 1024
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
# Existing caches hold "0" for empty files rather than the digest of b"".
EMPTY_FILE_VALUE = "0"

_Handler = Callable[[os.stat_result, str], str]


def format_timestamp(epoch_seconds: float) -> str:
    """Render an epoch timestamp as a UTC, whole-second ISO string."""

    moment = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
    return moment.strftime(TIMESTAMP_FORMAT)


def _mtime(stat_result: os.stat_result, path: str) -> str:
    return format_timestamp(stat_result.st_mtime)


def _ctime(stat_result: os.stat_result, path: str) -> str:
    return format_timestamp(stat_result.st_ctime)


def _digest(path: str, limit: int | None) -> str:
    hasher = hashlib.md5()
    consumed = 0
    try:
        with open(path, "rb") as handle:
            if limit is None:
                for chunk in iter(lambda: handle.read(READ_CHUNK_SIZE), b""):
                    hasher.update(chunk)
                    consumed += len(chunk)
            else:
                chunk = handle.read(limit)
                hasher.update(chunk)
                consumed = len(chunk)
    except PermissionError as exc:
        raise AccessDenied(path) from exc
    except OSError as exc:
        raise ContentUnreadable(path, exc) from exc

    if consumed == 0:
        logger.debug("checksum_empty_file", extra={"path": path})
        return EMPTY_FILE_VALUE
    return hasher.hexdigest()


def _content_hash(limit: int | None) -> _Handler:
    def handler(stat_result: os.stat_result, path: str) -> str:
        if not stat.S_ISREG(stat_result.st_mode):
            logger.debug(
                "checksum_content_unavailable_using_mtime",
                extra={"path": path, "mode": stat.filemode(stat_result.st_mode)},
            )
            return _mtime(stat_result, path)
        return _digest(path, limit)

    return handler


_HANDLERS: Dict[Algorithm, _Handler] = {
    Algorithm.CONTENT_HASH: _content_hash(None),
    Algorithm.CONTENT_HASH_PARTIAL: _content_hash(PARTIAL_BYTES),
    Algorithm.MTIME_TIMESTAMP: _mtime,
    Algorithm.MTIME: _mtime,
    Algorithm.CHANGE_TIME: _ctime,
}

_missing = set(Algorithm) - set(_HANDLERS)
if _missing:  # pragma: no cover - guards new enum members
    raise InconsistentState(f"No fingerprint handler for {sorted(_missing)}")


def compute_fingerprint(
    algorithm: Algorithm, stat_result: os.stat_result, path: str | os.PathLike[str]
) -> Fingerprint:
    """Return the current fingerprint of `path` for `algorithm`.

    Raises `AccessDenied` or `ContentUnreadable` when content hashing cannot
    read the file; no substitute value is produced in that case.
    """

    handler = _HANDLERS[algorithm]
    return Fingerprint(algorithm, handler(stat_result, os.fspath(path)))
