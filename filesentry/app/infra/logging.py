"""Shared logging helpers.

Modules grab a namespaced logger with `get_logger(__name__)` and log snake_case
event names with structured context in `extra`. Handler setup happens once in
`configure_logging`, called by entry points.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

__all__ = ["DEFAULT_FORMAT", "configure_logging", "get_logger", "resolve_level"]

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s %(message)s"


def resolve_level(level: int | str | None) -> int:
    """Translate config values such as `"debug"` into logging levels."""

    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def configure_logging(
    level: int | str | None = logging.INFO,
    fmt: str = DEFAULT_FORMAT,
    stream: TextIO | None = None,
) -> None:
    """Install a single stream handler on the root logger."""

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter(fmt))
        root.addHandler(handler)
    root.setLevel(resolve_level(level))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
