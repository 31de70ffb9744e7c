"""Resource cache store gateway implementations.

Each monitored resource owns an opaque key-value cache. The checksum state
keeps its fingerprints under the `"checksums"` key, so the persisted layout is
`resource_key -> cache_key -> value`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol, Tuple

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    MetaData,
    String,
    Table,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Engine

from ...infra.db import get_engine
from ...infra.logging import get_logger

__all__ = [
    "CacheStoreGateway",
    "InMemoryCacheStoreGateway",
    "RESOURCE_CACHE_TABLE",
    "SqlCacheStoreGateway",
    "build_cache_store_gateway",
    "build_resource_cache_table",
]

logger = get_logger(__name__)

RESOURCE_CACHE_TABLE = "resource_cache"


def utcnow() -> datetime:
    """Return timezone-aware UTC timestamp."""

    return datetime.now(timezone.utc)


class CacheStoreGateway(Protocol):  # pragma: no cover
    """Persistence the owning resource relies on for its opaque cache."""

    def get(self, resource_key: str, cache_key: str) -> Any: ...

    def put(self, resource_key: str, cache_key: str, value: Any) -> None: ...

    def delete(self, resource_key: str) -> None: ...


class InMemoryCacheStoreGateway(CacheStoreGateway):
    """Process-local cache store used for development and tests."""

    def __init__(self) -> None:
        self._values: Dict[Tuple[str, str], Any] = {}

    def get(self, resource_key: str, cache_key: str) -> Any:
        return self._values.get((resource_key, cache_key))

    def put(self, resource_key: str, cache_key: str, value: Any) -> None:
        self._values[(resource_key, cache_key)] = value

    def delete(self, resource_key: str) -> None:
        for key in [key for key in self._values if key[0] == resource_key]:
            del self._values[key]


def build_resource_cache_table(metadata: MetaData) -> Table:
    return Table(
        RESOURCE_CACHE_TABLE,
        metadata,
        Column("resource_key", String(1024), primary_key=True),
        Column("cache_key", String(128), primary_key=True),
        Column("value", JSON(), nullable=True),
        Column("updated_at", DateTime(timezone=True), nullable=False),
    )


class SqlCacheStoreGateway(CacheStoreGateway):
    """SQLAlchemy-backed cache store so fingerprints survive restarts."""

    def __init__(
        self,
        engine: Optional[Engine] = None,
        *,
        table: Optional[Table] = None,
    ) -> None:
        self._engine = engine or get_engine()
        if table is not None:
            self._table = table
            self._metadata = table.metadata
        else:
            self._metadata = MetaData()
            self._table = build_resource_cache_table(self._metadata)

    def ensure_schema(self) -> None:
        self._metadata.create_all(self._engine, tables=[self._table])

    def get(self, resource_key: str, cache_key: str) -> Any:
        stmt = select(self._table.c.value).where(
            self._table.c.resource_key == resource_key,
            self._table.c.cache_key == cache_key,
        )
        with self._engine.begin() as conn:
            row = conn.execute(stmt).first()
        if row is None:
            return None
        return row[0]

    def put(self, resource_key: str, cache_key: str, value: Any) -> None:
        timestamp = utcnow()
        update_stmt = (
            update(self._table)
            .where(
                self._table.c.resource_key == resource_key,
                self._table.c.cache_key == cache_key,
            )
            .values(value=value, updated_at=timestamp)
        )
        with self._engine.begin() as conn:
            result = conn.execute(update_stmt)
            if result.rowcount == 0:
                conn.execute(
                    insert(self._table).values(
                        resource_key=resource_key,
                        cache_key=cache_key,
                        value=value,
                        updated_at=timestamp,
                    )
                )
        logger.debug(
            "resource_cache_stored",
            extra={"resource_key": resource_key, "cache_key": cache_key},
        )

    def delete(self, resource_key: str) -> None:
        stmt = delete(self._table).where(self._table.c.resource_key == resource_key)
        with self._engine.begin() as conn:
            conn.execute(stmt)


def build_cache_store_gateway(
    url: str | None = None,
    *,
    prefer_sql: bool = True,
    fallback_to_memory: bool = False,
) -> CacheStoreGateway:
    """Factory that returns the desired cache store implementation."""

    if prefer_sql:
        try:
            gateway = SqlCacheStoreGateway(get_engine(url))
            gateway.ensure_schema()
            return gateway
        except Exception:
            if not fallback_to_memory:
                raise
            logger.warning(
                "sql_cache_store_unavailable_falling_back",
                exc_info=True,
            )
    return InMemoryCacheStoreGateway()
