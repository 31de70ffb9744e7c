"""Configuration loader with checksum monitoring profile support."""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Sequence

import yaml

DEFAULT_ENVIRONMENT = "dev"
DEFAULT_CACHE_STORE_URL = "sqlite+pysqlite:///filesentry-cache.db"
DEFAULT_CHECKSUM_ALGORITHM = "md5"
DEFAULT_LINK_POLICY = "manage"
DEFAULT_EVENT_TOPIC_PREFIX = "filesentry"
DEFAULT_WATCHED_FILES: Sequence[dict[str, Any]] = ()
DEFAULT_PROFILE_DICT: dict[str, Any] = {
    "environment": DEFAULT_ENVIRONMENT,
    "cache_store": {"url": DEFAULT_CACHE_STORE_URL},
    "checksum": {
        "default_algorithm": DEFAULT_CHECKSUM_ALGORITHM,
        "links": DEFAULT_LINK_POLICY,
        "watched": list(DEFAULT_WATCHED_FILES),
    },
    "events": {"topic_prefix": DEFAULT_EVENT_TOPIC_PREFIX},
    "logging": {"level": "info"},
}
CONFIG_PROFILE_ENV = "FILESENTRY_CONFIG_PROFILE"
CONFIG_DIR_ENV = "FILESENTRY_CONFIG_DIR"
CACHE_URL_ENV = "FILESENTRY_CACHE_URL"
DEFAULT_PROFILE = "dev"
DEFAULT_CONFIG_ROOT = Path(__file__).resolve().parents[3] / "config" / "profiles"
CONFIG_EXTENSIONS = (".yaml", ".yml")


@dataclass
class WatchedFileConfig:
    path: str
    algorithm: str | None = None
    links: str | None = None
    source: bool = False


@dataclass
class ChecksumConfig:
    default_algorithm: str = DEFAULT_CHECKSUM_ALGORITHM
    links: str = DEFAULT_LINK_POLICY
    watched: List[WatchedFileConfig] = field(default_factory=list)


@dataclass
class EventsConfig:
    topic_prefix: str = DEFAULT_EVENT_TOPIC_PREFIX


@dataclass
class Settings:
    environment: str = DEFAULT_ENVIRONMENT
    cache_store_url: str = DEFAULT_CACHE_STORE_URL
    checksum: ChecksumConfig = field(default_factory=ChecksumConfig)
    events: EventsConfig = field(default_factory=EventsConfig)
    logging: dict[str, Any] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict)


def load_settings(
    profile: str | None = None, config_dir: str | Path | None = None
) -> Settings:
    """Load settings from the requested profile or fall back to defaults."""

    profile_name = profile or os.getenv(CONFIG_PROFILE_ENV, DEFAULT_PROFILE)
    config_root = Path(
        config_dir or os.getenv(CONFIG_DIR_ENV, DEFAULT_CONFIG_ROOT)
    ).expanduser()
    config_data = _load_profile_dict(profile_name, config_root)
    if not config_data:
        config_data = copy.deepcopy(DEFAULT_PROFILE_DICT)

    environment = config_data.get("environment", DEFAULT_ENVIRONMENT)

    cache_cfg = config_data.get("cache_store") or {}
    cache_store_url = os.getenv(
        CACHE_URL_ENV, cache_cfg.get("url", DEFAULT_CACHE_STORE_URL)
    )

    events_cfg = config_data.get("events") or {}

    return Settings(
        environment=environment,
        cache_store_url=cache_store_url,
        checksum=_build_checksum_config(config_data.get("checksum")),
        events=EventsConfig(
            topic_prefix=str(
                events_cfg.get("topic_prefix", DEFAULT_EVENT_TOPIC_PREFIX)
            )
        ),
        logging=dict(config_data.get("logging") or {}),
        raw=config_data,
    )


def _load_profile_dict(profile_name: str, config_root: Path) -> dict[str, Any]:
    """Load the YAML profile if available, otherwise return an empty dict."""

    if not config_root.exists():
        return {}

    for extension in CONFIG_EXTENSIONS:
        candidate = config_root / f"{profile_name}{extension}"
        if not candidate.exists():
            continue
        try:
            with candidate.open("r", encoding="utf-8") as handle:
                loaded = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise RuntimeError(
                f"Failed to parse config profile {candidate}: {exc}"
            ) from exc
        if not isinstance(loaded, dict):
            raise RuntimeError(
                f"Config profile {candidate} must be a mapping at the root"
            )
        return loaded

    return {}


def _build_checksum_config(checksum_cfg: dict[str, Any] | None) -> ChecksumConfig:
    checksum_cfg = checksum_cfg or {}
    watched: List[WatchedFileConfig] = []
    for entry in checksum_cfg.get("watched") or []:
        if isinstance(entry, str):
            entry = {"path": entry}
        path = entry.get("path")
        if not path:
            continue
        algorithm = entry.get("algorithm")
        links = entry.get("links")
        watched.append(
            WatchedFileConfig(
                path=str(path),
                algorithm=str(algorithm) if algorithm else None,
                links=str(links) if links else None,
                source=bool(entry.get("source", False)),
            )
        )

    return ChecksumConfig(
        default_algorithm=str(
            checksum_cfg.get("default_algorithm", DEFAULT_CHECKSUM_ALGORITHM)
        ),
        links=str(checksum_cfg.get("links", DEFAULT_LINK_POLICY)),
        watched=watched,
    )
