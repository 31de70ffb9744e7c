"""Tests for config loader behavior."""

# Coverage: configuration

from __future__ import annotations

import pytest

from filesentry.app.config import load_settings
from filesentry.app.config.loader import DEFAULT_CACHE_STORE_URL

pytestmark = [pytest.mark.config]


@pytest.fixture(autouse=True)
def _clear_cache_url(monkeypatch):
    monkeypatch.delenv("FILESENTRY_CACHE_URL", raising=False)


def test_load_settings_falls_back_to_defaults(monkeypatch, tmp_path):
    """Missing profiles should default to the built-in dev configuration."""

    monkeypatch.setenv("FILESENTRY_CONFIG_PROFILE", "missing")
    monkeypatch.setenv("FILESENTRY_CONFIG_DIR", str(tmp_path))
    settings = load_settings()

    assert settings.environment == "dev"
    assert settings.cache_store_url == DEFAULT_CACHE_STORE_URL
    assert settings.checksum.default_algorithm == "md5"
    assert settings.checksum.links == "manage"
    assert settings.checksum.watched == []
    assert settings.events.topic_prefix == "filesentry"


def test_load_settings_reads_yaml_profile(monkeypatch, tmp_path):
    """Config loader should parse YAML profiles and expose checksum settings."""

    profiles_dir = tmp_path / "profiles"
    profiles_dir.mkdir()
    (profiles_dir / "prod.yml").write_text(
        """
environment: prod

cache_store:
  url: "sqlite+pysqlite:////var/lib/filesentry/cache.db"

checksum:
  default_algorithm: mtime
  links: follow
  watched:
    - /etc/hosts
    - path: /etc/passwd
      algorithm: md5lite
    - path: /srv/app/config.yaml
      links: ignore
      source: true
    - algorithm: md5

events:
  topic_prefix: audit

logging:
  level: debug
""",
        encoding="utf-8",
    )

    settings = load_settings("prod", profiles_dir)

    assert settings.environment == "prod"
    assert settings.cache_store_url.endswith("/var/lib/filesentry/cache.db")
    assert settings.checksum.default_algorithm == "mtime"
    assert settings.checksum.links == "follow"
    assert [item.path for item in settings.checksum.watched] == [
        "/etc/hosts",
        "/etc/passwd",
        "/srv/app/config.yaml",
    ]
    assert settings.checksum.watched[0].algorithm is None
    assert settings.checksum.watched[1].algorithm == "md5lite"
    assert settings.checksum.watched[2].links == "ignore"
    assert settings.checksum.watched[2].source is True
    assert settings.events.topic_prefix == "audit"
    assert settings.logging == {"level": "debug"}


def test_cache_url_env_overrides_profile(monkeypatch, tmp_path):
    monkeypatch.setenv("FILESENTRY_CACHE_URL", "sqlite+pysqlite:///override.db")

    settings = load_settings("missing", tmp_path)

    assert settings.cache_store_url == "sqlite+pysqlite:///override.db"


def test_invalid_yaml_raises(tmp_path):
    (tmp_path / "dev.yaml").write_text("checksum: [unclosed", encoding="utf-8")

    with pytest.raises(RuntimeError, match="Failed to parse"):
        load_settings("dev", tmp_path)


def test_non_mapping_profile_raises(tmp_path):
    (tmp_path / "dev.yaml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(RuntimeError, match="must be a mapping"):
        load_settings("dev", tmp_path)
