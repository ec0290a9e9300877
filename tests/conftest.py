# -*- coding: utf-8 -*-
"""
全局测试配置
提供项目目录、仓库文件、插件归档和模拟下载器等共享fixture
"""

import json
import zipfile
from pathlib import Path
from typing import Dict, List, Optional

import pytest
import yaml

from mcpm.application import MpmApplication
from mcpm.downloader.base import CatalogDownloader, DownloaderRegistry, VersionData


def make_jar(
    path: Path,
    name: str,
    version: str = "1.0.0",
    depend: Optional[List[str]] = None,
    softdepend: Optional[List[str]] = None,
    loadbefore: Optional[List[str]] = None,
) -> Path:
    """创建带 plugin.yml 的插件归档"""
    descriptor = {"name": name, "version": version, "main": f"com.example.{name}"}
    if depend:
        descriptor["depend"] = depend
    if softdepend:
        descriptor["softdepend"] = softdepend
    if loadbefore:
        descriptor["loadbefore"] = loadbefore

    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("plugin.yml", yaml.safe_dump(descriptor))
    return path


def write_repository_file(
    directory: Path,
    name: str,
    repository_type: str = "fake",
    repository_id: Optional[str] = None,
    dependencies: Optional[List[str]] = None,
    **candidate,
) -> Path:
    """在本地仓库目录写入 <name>.json"""
    directory.mkdir(parents=True, exist_ok=True)
    data = {
        "id": name,
        "website": f"https://example.com/{name}",
        "repositories": [
            {"type": repository_type, "id": repository_id or f"owner/{name}", **candidate}
        ],
        "dependencies": dependencies or [],
    }
    path = directory / f"{name}.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class FakeDownloader(CatalogDownloader):
    """
    测试用模拟下载器

    versions 的最后一个元素为最新版本；下载的文件是带描述文件的归档。
    """

    repository_type = "fake"

    def __init__(self, download_dir: Path, versions: Optional[Dict[str, List[str]]] = None):
        self.download_dir = download_dir
        self.versions: Dict[str, List[str]] = versions or {}
        self.fail_on: Dict[str, str] = {}
        self.calls: List[tuple] = []

    def get_repository_type(self, url: str) -> Optional[str]:
        return "fake" if url.startswith("fake://") else None

    def _versions_of(self, repository_id: str) -> List[str]:
        if repository_id not in self.versions:
            raise LookupError(f"unknown repository {repository_id}")
        return self.versions[repository_id]

    def get_latest_version(self, repository_id: str) -> VersionData:
        self.calls.append(("latest", repository_id))
        if self.fail_on.get(repository_id) == "latest":
            raise ConnectionError("catalog unreachable")
        version = self._versions_of(repository_id)[-1]
        return VersionData(download_id=f"{repository_id}@{version}", version=version)

    def get_version_by_name(self, repository_id: str, version: str) -> VersionData:
        self.calls.append(("version", repository_id, version))
        if version not in self._versions_of(repository_id):
            raise LookupError(f"version {version} not found")
        return VersionData(download_id=f"{repository_id}@{version}", version=version)

    def get_all_versions(self, repository_id: str) -> List[VersionData]:
        self.calls.append(("all", repository_id))
        return [
            VersionData(download_id=f"{repository_id}@{version}", version=version)
            for version in self._versions_of(repository_id)
        ]

    def download_by_version(self, repository_id, version, file_name_pattern=None) -> Path:
        self.calls.append(("download", repository_id, version.version))
        if self.fail_on.get(repository_id) == "download":
            raise ConnectionError("download interrupted")
        name = repository_id.split("/")[-1]
        target = self.download_dir / f"{name}-{version.version}.tmp"
        return make_jar(target, name, version.version)

    def download_count(self) -> int:
        return sum(1 for call in self.calls if call[0] == "download")


class ProjectFactory:
    """在临时目录中搭建项目"""

    def __init__(self, root: Path, downloader: FakeDownloader):
        self.root = root
        self.downloader = downloader
        self.repository_dir = root / "repository"
        self.plugins_dir = root / "plugins"
        self.metadata_dir = root / "metadata"

    def write_project(self, plugins: Dict[str, str], **extra) -> Path:
        data = {"name": "test-server", "version": "1.0.0", "plugins": plugins, **extra}
        path = self.root / "mpm.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    def add_catalog_plugin(self, name: str, versions: List[str], **kwargs) -> None:
        """同时写入仓库文件和模拟下载器的版本列表"""
        write_repository_file(self.repository_dir, name, **kwargs)
        repository_id = kwargs.get("repository_id") or f"owner/{name}"
        self.downloader.versions[repository_id] = list(versions)

    def app(self) -> MpmApplication:
        registry = DownloaderRegistry()
        registry.register("fake", self.downloader)
        return MpmApplication.create(self.root, downloaders=registry)

    def plugin_files(self) -> List[str]:
        if not self.plugins_dir.is_dir():
            return []
        return sorted(p.name for p in self.plugins_dir.iterdir() if not p.name.startswith("."))


@pytest.fixture
def fake_downloader(tmp_path) -> FakeDownloader:
    download_dir = tmp_path / "downloads"
    download_dir.mkdir()
    return FakeDownloader(download_dir)


@pytest.fixture
def project(tmp_path, fake_downloader) -> ProjectFactory:
    root = tmp_path / "server"
    root.mkdir()
    return ProjectFactory(root, fake_downloader)


@pytest.fixture
def jar_factory():
    return make_jar


@pytest.fixture
def repository_file_factory():
    return write_repository_file
