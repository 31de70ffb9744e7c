"""Database connection helpers."""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from ...config import load_settings

__all__ = ["get_engine"]

_engines: dict[str, Engine] = {}


def get_engine(url: str | None = None) -> Engine:
    """Return a cached engine for `url`, defaulting to the configured cache store."""

    resolved = url or load_settings().cache_store_url
    engine = _engines.get(resolved)
    if engine is None:
        engine = create_engine(resolved, echo=False, future=True)
        _engines[resolved] = engine
    return engine
