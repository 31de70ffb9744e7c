"""Tests for the file resource that owns checksum state."""

# Coverage: file resource

import os
import stat

import pytest

from filesentry.app.domain.cachestore.gateway import InMemoryCacheStoreGateway
from filesentry.app.domain.resources.file_resource import FileResource, LinkPolicy

pytestmark = [pytest.mark.checksum]


def test_stat_returns_none_for_missing_paths(tmp_path):
    assert FileResource(tmp_path / "missing.txt").stat() is None
    assert FileResource(tmp_path / "missing" / "nested.txt").stat() is None


def test_stat_respects_link_policy(tmp_path):
    real = tmp_path / "real.txt"
    real.write_bytes(b"hello")
    link = tmp_path / "link.txt"
    os.symlink(real, link)

    managed = FileResource(link, links=LinkPolicy.MANAGE).stat()
    followed = FileResource(link, links="follow").stat()

    assert stat.S_ISLNK(managed.st_mode)
    assert stat.S_ISREG(followed.st_mode)


def test_dangling_symlink_is_missing_only_when_followed(tmp_path):
    link = tmp_path / "dangling"
    os.symlink(tmp_path / "nowhere", link)

    assert FileResource(link, links="follow").stat() is None
    assert FileResource(link, links="ignore").stat() is not None


def test_unknown_link_policy_is_rejected(tmp_path):
    with pytest.raises(ValueError):
        FileResource(tmp_path / "a.txt", links="sometimes")


def test_cache_is_keyed_by_path(tmp_path):
    gateway = InMemoryCacheStoreGateway()
    first = FileResource(tmp_path / "a.txt", cache_store=gateway)
    second = FileResource(tmp_path / "b.txt", cache_store=gateway)

    first.cache("checksums", {"md5": "{md5}abc"})

    assert first.cached("checksums") == {"md5": "{md5}abc"}
    assert second.cached("checksums") is None
    assert gateway.get(str(tmp_path / "a.txt"), "checksums") == {"md5": "{md5}abc"}


def test_dropped_states_are_restored(tmp_path):
    resource = FileResource(tmp_path / "a.txt")

    resource.drop_state("checksum")
    assert resource.tracks("checksum") is False
    assert resource.tracks("content") is True

    resource.restore_states()
    assert resource.tracks("checksum") is True


def test_source_copy_flag_and_directory_check(tmp_path):
    resource = FileResource(tmp_path, source=True)

    assert resource.is_directory() is True
    assert resource.has_active_source_copy() is True
    assert FileResource(tmp_path / "copy.txt").has_active_source_copy() is False
