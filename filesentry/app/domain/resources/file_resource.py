"""File resource representation that owns monitored states and their cache."""

from __future__ import annotations

import os
from enum import Enum
from typing import Any, Optional, Set

from ..cachestore.gateway import CacheStoreGateway, InMemoryCacheStoreGateway
from ...infra.logging import get_logger

__all__ = ["FileResource", "LinkPolicy"]

logger = get_logger(__name__)


class LinkPolicy(str, Enum):
    """How symbolic links are treated; only `follow` dereferences them."""

    FOLLOW = "follow"
    MANAGE = "manage"
    IGNORE = "ignore"

    def __str__(self) -> str:
        return self.value


class FileResource:
    """A monitored filesystem path plus its opaque per-resource cache."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        links: LinkPolicy | str = LinkPolicy.MANAGE,
        cache_store: Optional[CacheStoreGateway] = None,
        source: bool = False,
    ) -> None:
        self.path = os.fspath(path)
        self.links = LinkPolicy(links)
        self._cache_store = cache_store or InMemoryCacheStoreGateway()
        self._source_copy_active = source
        self._dropped_states: Set[str] = set()

    @property
    def follows_links(self) -> bool:
        return self.links is LinkPolicy.FOLLOW

    def stat(self) -> Optional[os.stat_result]:
        """Return metadata for the path, or `None` when it does not exist."""

        try:
            if self.follows_links:
                return os.stat(self.path)
            return os.lstat(self.path)
        except (FileNotFoundError, NotADirectoryError):
            return None

    def is_directory(self) -> bool:
        return os.path.isdir(self.path)

    def cached(self, key: str) -> Any:
        return self._cache_store.get(self.path, key)

    def cache(self, key: str, value: Any) -> None:
        self._cache_store.put(self.path, key, value)

    def has_active_source_copy(self) -> bool:
        return self._source_copy_active

    def drop_state(self, name: str) -> None:
        """Stop tracking `name` until `restore_states` is called."""

        if name not in self._dropped_states:
            logger.info("resource_state_dropped", extra={"path": self.path, "state": name})
        self._dropped_states.add(name)

    def tracks(self, name: str) -> bool:
        return name not in self._dropped_states

    def restore_states(self) -> None:
        self._dropped_states.clear()

    def __repr__(self) -> str:
        return f"FileResource(path={self.path!r}, links={self.links.value!r})"
