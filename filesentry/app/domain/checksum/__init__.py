"""Checksum change-detection domain package."""

from .cache import CHECKSUMS_CACHE_KEY, FingerprintCache
from .codec import (
    ABSENT,
    NO_CHECKSUM,
    Algorithm,
    Fingerprint,
    format_fingerprint,
    parse_algorithm,
    parse_fingerprint,
    valid_algorithms,
)
from .computer import compute_fingerprint
from .errors import (
    AccessDenied,
    ChecksumError,
    ContentUnreadable,
    InconsistentState,
    InvalidAlgorithm,
    InvalidFingerprint,
)
from .evaluator import SyncDecision, evaluate_sync, is_in_sync
from .pipeline import ChecksumState, ObservationOutcome, ObservationState

__all__ = [
    "ABSENT",
    "AccessDenied",
    "Algorithm",
    "CHECKSUMS_CACHE_KEY",
    "ChecksumError",
    "ChecksumState",
    "ContentUnreadable",
    "Fingerprint",
    "FingerprintCache",
    "InconsistentState",
    "InvalidAlgorithm",
    "InvalidFingerprint",
    "NO_CHECKSUM",
    "ObservationOutcome",
    "ObservationState",
    "SyncDecision",
    "compute_fingerprint",
    "evaluate_sync",
    "format_fingerprint",
    "is_in_sync",
    "parse_algorithm",
    "parse_fingerprint",
    "valid_algorithms",
]
