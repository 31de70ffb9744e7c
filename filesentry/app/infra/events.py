"""Change-event publishing helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Protocol

from .logging import get_logger

__all__ = [
    "EventEmitter",
    "FILE_CHANGED",
    "LoggingEventEmitter",
    "get_event_emitter",
]

logger = get_logger(__name__)

FILE_CHANGED = "file_changed"


class EventEmitter(Protocol):  # pragma: no cover - interface only
    """Abstract change-event publisher."""

    def emit(self, topic: str, payload: Dict[str, Any]) -> None:
        """Publish an event to subscribers."""


@dataclass
class LoggingEventEmitter(EventEmitter):
    """Default emitter that logs payloads when no subscriber bus is wired."""

    topic_prefix: str = "filesentry"

    def emit(self, topic: str, payload: Dict[str, Any]) -> None:
        logger.info(
            "change_event",
            extra={
                "topic": f"{self.topic_prefix}.{topic}",
                "payload": payload,
            },
        )


_singleton: LoggingEventEmitter | None = None


def get_event_emitter() -> EventEmitter:
    """Return the process-wide change-event emitter."""

    global _singleton
    if _singleton is None:
        _singleton = LoggingEventEmitter()
    return _singleton
