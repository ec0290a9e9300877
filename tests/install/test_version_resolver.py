# -*- coding: utf-8 -*-
"""
版本解析器测试
"""

import pytest

from mcpm.downloader.base import VersionData
from mcpm.install.resolver import VersionResolver
from mcpm.metadata.store import MetadataStore
from mcpm.repository.models import RepositoryConfig


@pytest.fixture
def store(tmp_path) -> MetadataStore:
    return MetadataStore(tmp_path / "metadata")


@pytest.fixture
def resolver(store) -> VersionResolver:
    return VersionResolver(store)


def _install_record(store, name, version):
    record = store.create_record(
        name,
        RepositoryConfig(type="fake", id=f"owner/{name}"),
        VersionData(download_id="x", version=version),
        VersionData(download_id="x", version=version),
    )
    store.save(record)


class TestVersionResolver:
    """测试各类声明的解析"""

    def test_fixed_verbatim(self, resolver):
        assert resolver.resolve("A", "1.2.3", {}) == "1.2.3"

    def test_tag_and_pattern_verbatim(self, resolver):
        assert resolver.resolve("A", "tag:beta", {}) == "tag:beta"
        assert resolver.resolve("A", "pattern:1\\..*", {}) == "pattern:1\\..*"

    def test_sync_uses_resolved_target(self, resolver):
        assert resolver.resolve("A", "sync:B", {"B": "1.0"}) == "1.0"

    def test_sync_unresolved_target_falls_back(self, resolver):
        assert resolver.resolve("A", "sync:B", {}) == "sync:B"

    def test_latest_without_record(self, resolver):
        assert resolver.resolve("A", "latest", {}) == "latest"

    def test_latest_with_record(self, resolver, store):
        _install_record(store, "A", "v2.0")
        assert resolver.resolve("A", "LATEST", {}) == "v2.0"

    def test_resolve_all_follows_chain(self, resolver):
        manifest = {"C": "3.1", "B": "sync:C", "A": "sync:B"}
        resolved = resolver.resolve_all(["C", "B", "A"], manifest)
        assert resolved == {"C": "3.1", "B": "3.1", "A": "3.1"}
