# -*- coding: utf-8 -*-
"""
元数据存储测试
"""

from datetime import datetime, timezone

import pytest

from mcpm.downloader.base import VersionData
from mcpm.exceptions import (
    MetadataError,
    PluginAlreadyLockedError,
    PluginNotFoundError,
    PluginNotLockedError,
)
from mcpm.metadata.models import VersionDetail, normalize_version
from mcpm.metadata.store import MetadataStore
from mcpm.repository.models import RepositoryConfig

FIXED_NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path) -> MetadataStore:
    return MetadataStore(tmp_path / "metadata", clock=lambda: FIXED_NOW)


@pytest.fixture
def candidate() -> RepositoryConfig:
    return RepositoryConfig(type="github", id="owner/Essentials")


def _create(store, candidate, version="v1.2.3", latest="v1.3.0"):
    return store.create_record(
        "Essentials",
        candidate,
        VersionData(download_id="d1", version=version),
        VersionData(download_id="d2", version=latest),
    )


class TestVersionDetail:
    """测试版本规范化"""

    def test_leading_v_and_case_ignored(self):
        assert VersionDetail.from_raw("v1.2.3").normalized == VersionDetail.from_raw("1.2.3").normalized
        assert VersionDetail.from_raw("V1.0-RC").normalized == "1.0-rc"

    def test_raw_preserved(self):
        detail = VersionDetail.from_raw("v1.2.3")
        assert detail.raw == "v1.2.3"
        assert detail.equals_normalized(VersionDetail.from_raw("1.2.3"))
        assert detail != VersionDetail.from_raw("1.2.3")

    def test_version_pattern(self):
        assert normalize_version("Essentials-2.20.1-b5", r"\d+\.\d+\.\d+") == "2.20.1"
        assert normalize_version("nightly", r"\d+\.\d+") == "nightly"


class TestRecordLifecycle:
    """测试记录的创建、更新和持久化"""

    def test_create_record(self, store, candidate):
        record = _create(store, candidate)
        assert record.version.current.raw == "v1.2.3"
        assert record.version.current.normalized == "1.2.3"
        assert record.version.latest.raw == "v1.3.0"
        assert record.repository.type == "github"
        assert record.repository.id == "owner/Essentials"
        assert record.download.download_id == "d1"
        assert not record.settings.lock
        assert len(record.history) == 1
        assert record.history[0].action == "install"
        assert record.history[0].version == "1.2.3"
        assert not store.exists("Essentials")

    def test_save_and_load(self, store, candidate):
        record = _create(store, candidate)
        store.save(record)
        assert (store.metadata_dir / "Essentials.yaml").exists()
        assert store.load("Essentials") == record
        assert store.list_names() == ["Essentials"]

    def test_update_appends_history(self, store, candidate):
        record = _create(store, candidate)
        updated = store.update_record(
            record,
            VersionData(download_id="d3", version="1.3.0"),
            VersionData(download_id="d3", version="1.3.0"),
        )
        assert [h.action for h in updated.history] == ["install", "update"]
        assert updated.history[0] == record.history[0]
        assert updated.version.current.raw == "1.3.0"
        assert updated.download.download_id == "d3"
        assert len(record.history) == 1

    def test_load_missing(self, store):
        with pytest.raises(PluginNotFoundError):
            store.load("Missing")
        assert store.find("Missing") is None

    def test_corrupt_record(self, store):
        store.metadata_dir.mkdir(parents=True)
        (store.metadata_dir / "Broken.yaml").write_text("name: [unclosed", encoding="utf-8")
        with pytest.raises(MetadataError):
            store.find("Broken")

    def test_delete(self, store, candidate):
        store.save(_create(store, candidate))
        assert store.delete("Essentials")
        assert not store.delete("Essentials")


class TestLocking:
    """测试锁定和解锁"""

    def test_lock_twice(self, store, candidate):
        """测试重复锁定报错且记录不变"""
        store.save(_create(store, candidate))
        store.lock("Essentials")
        before = store.load("Essentials")

        with pytest.raises(PluginAlreadyLockedError):
            store.lock("Essentials")
        assert store.load("Essentials") == before

    def test_unlock_never_locked(self, store, candidate):
        """测试解锁未锁定的插件报错且记录不变"""
        record = _create(store, candidate)
        store.save(record)

        with pytest.raises(PluginNotLockedError):
            store.unlock("Essentials")
        assert store.load("Essentials") == record

    def test_lock_then_unlock(self, store, candidate):
        record = _create(store, candidate)
        store.save(record)
        assert store.lock("Essentials").is_locked
        unlocked = store.unlock("Essentials")
        assert not unlocked.is_locked
        assert unlocked.history == record.history

    def test_lock_missing_record(self, store):
        with pytest.raises(PluginNotFoundError):
            store.lock("Missing")
