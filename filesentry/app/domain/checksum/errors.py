"""Exceptions raised by the checksum domain."""

from __future__ import annotations

__all__ = [
    "AccessDenied",
    "ChecksumError",
    "ContentUnreadable",
    "InconsistentState",
    "InvalidAlgorithm",
    "InvalidFingerprint",
]


class ChecksumError(Exception):
    """Base class for checksum monitoring failures."""


class InvalidAlgorithm(ChecksumError, ValueError):
    """An unrecognized checksum algorithm token was requested."""

    def __init__(self, token: object) -> None:
        super().__init__(f"Invalid checksum algorithm {token!r}")
        self.token = token


class InvalidFingerprint(ChecksumError, ValueError):
    """A value is not in `{algorithm}value` form or carries the wrong tag."""


class AccessDenied(ChecksumError, PermissionError):
    """File content could not be read because of permissions."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Cannot checksum {path}: permission denied")
        self.path = path


class ContentUnreadable(ChecksumError, OSError):
    """File content could not be read for a reason other than permissions."""

    def __init__(self, path: str, detail: object) -> None:
        super().__init__(f"Cannot checksum {path}: {detail}")
        self.path = path
        self.detail = detail


class InconsistentState(ChecksumError, RuntimeError):
    """Internal invariant violation in the retrieval pipeline."""
