# -*- coding: utf-8 -*-
"""
元数据存储

每个受管理插件在 metadata/<name>.yaml 中保存一条记录。
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional

import yaml
from pydantic import ValidationError

from ..downloader.base import VersionData
from ..exceptions import (
    MetadataError,
    PluginAlreadyLockedError,
    PluginNotFoundError,
    PluginNotLockedError,
)
from ..repository.models import RepositoryConfig
from .models import (
    DownloadInfo,
    InstallHistory,
    ManagedPluginRecord,
    RepositoryBinding,
    VersionDetail,
    VersionInfo,
    utc_now,
)

METADATA_SUFFIX = ".yaml"


class MetadataStore:
    """
    插件元数据存储

    负责记录的读写、创建、更新以及锁定状态的切换。
    """

    def __init__(self, metadata_dir: Path, clock: Callable = utc_now):
        """
        初始化元数据存储

        Args:
            metadata_dir: 元数据目录
            clock: 返回当前 UTC 时间的函数
        """
        self.metadata_dir = Path(metadata_dir)
        self._clock = clock
        self.logger = logging.getLogger(__name__)

    def _path_for(self, plugin_name: str) -> Path:
        return self.metadata_dir / f"{plugin_name}{METADATA_SUFFIX}"

    def exists(self, plugin_name: str) -> bool:
        return self._path_for(plugin_name).exists()

    def find(self, plugin_name: str) -> Optional[ManagedPluginRecord]:
        """读取记录，不存在时返回 None"""
        path = self._path_for(plugin_name)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            return ManagedPluginRecord.model_validate(data)
        except (yaml.YAMLError, ValidationError, OSError) as e:
            raise MetadataError(f"读取插件元数据失败 {path}: {e}", plugin_name) from e

    def load(self, plugin_name: str) -> ManagedPluginRecord:
        """
        读取记录

        Raises:
            PluginNotFoundError: 记录不存在
            MetadataError: 记录无法解析
        """
        record = self.find(plugin_name)
        if record is None:
            raise PluginNotFoundError(plugin_name, f"插件未被管理: {plugin_name}")
        return record

    def save(self, record: ManagedPluginRecord) -> None:
        path = self._path_for(record.name)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = record.model_dump(mode="json")

        try:
            with open(path, "w", encoding="utf-8") as f:
                yaml.dump(
                    data, f, default_flow_style=False, allow_unicode=True, sort_keys=False
                )
        except OSError as e:
            raise MetadataError(f"保存插件元数据失败 {path}: {e}", record.name) from e

        self.logger.debug(f"元数据已保存: {record.name}")

    def delete(self, plugin_name: str) -> bool:
        """删除记录，返回记录是否存在"""
        path = self._path_for(plugin_name)
        if not path.exists():
            return False
        path.unlink()
        self.logger.info(f"元数据已删除: {plugin_name}")
        return True

    def list_names(self) -> List[str]:
        if not self.metadata_dir.is_dir():
            return []
        return sorted(p.stem for p in self.metadata_dir.glob(f"*{METADATA_SUFFIX}"))

    def create_record(
        self,
        plugin_name: str,
        repository: RepositoryConfig,
        version: VersionData,
        latest: VersionData,
        action: str = "install",
    ) -> ManagedPluginRecord:
        """
        为首次安装的插件创建记录，历史中只有一条

        记录只在内存中创建，由调用方在文件就位后保存。
        """
        now = self._clock()
        current = VersionDetail.from_raw(version.version, repository.version_pattern)
        return ManagedPluginRecord(
            name=plugin_name,
            repository=RepositoryBinding(type=repository.type, id=repository.repository_id),
            version=VersionInfo(
                current=current,
                latest=VersionDetail.from_raw(latest.version, repository.version_pattern),
                last_checked=now,
            ),
            download=DownloadInfo(download_id=version.download_id, url=version.url),
            history=[
                InstallHistory(version=current.normalized, installed_at=now, action=action)
            ],
            version_pattern=repository.version_pattern,
            file_name_pattern=repository.file_name_pattern,
            file_name_template=repository.file_name_template,
        )

    def update_record(
        self,
        record: ManagedPluginRecord,
        version: VersionData,
        latest: VersionData,
        action: str = "update",
    ) -> ManagedPluginRecord:
        """返回更新了版本信息并追加一条历史的新记录"""
        now = self._clock()
        current = VersionDetail.from_raw(version.version, record.version_pattern)
        return record.model_copy(
            update={
                "version": VersionInfo(
                    current=current,
                    latest=VersionDetail.from_raw(latest.version, record.version_pattern),
                    last_checked=now,
                ),
                "download": record.download.model_copy(
                    update={"download_id": version.download_id, "url": version.url}
                ),
                "history": [
                    *record.history,
                    InstallHistory(version=current.normalized, installed_at=now, action=action),
                ],
            }
        )

    def refresh_latest(self, record: ManagedPluginRecord, latest: VersionData) -> ManagedPluginRecord:
        """只刷新最新版本和检查时间"""
        return record.model_copy(
            update={
                "version": record.version.model_copy(
                    update={
                        "latest": VersionDetail.from_raw(latest.version, record.version_pattern),
                        "last_checked": self._clock(),
                    }
                )
            }
        )

    def lock(self, plugin_name: str) -> ManagedPluginRecord:
        """
        锁定插件

        Raises:
            PluginNotFoundError: 记录不存在
            PluginAlreadyLockedError: 插件已锁定
        """
        record = self.load(plugin_name)
        if record.is_locked:
            raise PluginAlreadyLockedError(plugin_name)
        locked = record.with_lock(True)
        self.save(locked)
        self.logger.info(f"插件已锁定: {plugin_name}")
        return locked

    def unlock(self, plugin_name: str) -> ManagedPluginRecord:
        """
        解锁插件

        Raises:
            PluginNotFoundError: 记录不存在
            PluginNotLockedError: 插件未锁定
        """
        record = self.load(plugin_name)
        if not record.is_locked:
            raise PluginNotLockedError(plugin_name)
        unlocked = record.with_lock(False)
        self.save(unlocked)
        self.logger.info(f"插件已解锁: {plugin_name}")
        return unlocked
