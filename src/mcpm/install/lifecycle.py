# -*- coding: utf-8 -*-
"""
插件生命周期管理

添加、移除、卸载、锁定、过期检查、更新等单插件操作。
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..core.config.config_manager import ProjectConfigManager
from ..core.config.project_config import UNMANAGED
from ..dependency.analyzer import DependencyAnalyzer
from ..downloader.base import DownloaderRegistry, VersionData
from ..exceptions import (
    DownloadError,
    HasDependentsError,
    PluginAlreadyExistsError,
    PluginNotFoundError,
    RemoveError,
    RepositoryNotFoundError,
    UpdateError,
    VersionResolutionError,
)
from ..manifest.declared import DeclaredManifest
from ..manifest.specifier import LATEST_KEYWORD, Latest, Sync
from ..metadata.models import ManagedPluginRecord, normalize_version
from ..metadata.store import MetadataStore
from ..repository.manager import RepositoryManager
from .orchestrator import BulkInstaller
from .resolver import VersionResolver
from .results import AddResult, OutdatedInfo, UpdateResult


class PluginLifecycleManager:
    """单插件操作，全部基于项目文档、元数据存储和仓库源"""

    def __init__(
        self,
        config_manager: ProjectConfigManager,
        metadata_store: MetadataStore,
        repository_manager: RepositoryManager,
        downloaders: DownloaderRegistry,
        analyzer: DependencyAnalyzer,
        resolver: VersionResolver,
        installer: BulkInstaller,
        plugins_dir: Path,
    ):
        self.config_manager = config_manager
        self.metadata_store = metadata_store
        self.repository_manager = repository_manager
        self.downloaders = downloaders
        self.analyzer = analyzer
        self.resolver = resolver
        self.installer = installer
        self.plugins_dir = Path(plugins_dir)
        self._logger = logging.getLogger(__name__)

    def _load_manifest(self) -> DeclaredManifest:
        return DeclaredManifest(self.config_manager.load().plugins)

    def _require_declared(self, manifest: DeclaredManifest, plugin_name: str) -> None:
        if plugin_name not in manifest:
            raise PluginNotFoundError(plugin_name, f"插件未在清单中声明: {plugin_name}")

    # region 清单修改

    def add_plugin(
        self,
        plugin_name: str,
        specifier_text: str = LATEST_KEYWORD,
        with_dependencies: bool = False,
    ) -> AddResult:
        """
        将插件加入清单，不下载文件

        Args:
            plugin_name: 插件名称
            specifier_text: 版本声明
            with_dependencies: 是否同时添加仓库文件中列出的依赖

        Raises:
            PluginAlreadyExistsError: 插件已被管理
            RepositoryNotFoundError: 没有仓库文件
            SyncValidationError: sync 声明无效
        """
        manifest = self._load_manifest()
        declared = manifest.get(plugin_name)
        if declared is not None and declared != UNMANAGED:
            raise PluginAlreadyExistsError(plugin_name)

        repository_file = self.repository_manager.get_repository_file(plugin_name)
        if repository_file is None:
            raise RepositoryNotFoundError(plugin_name)

        manifest = manifest.with_plugin(plugin_name, specifier_text)
        result = AddResult(added_plugins=[plugin_name])

        if with_dependencies:
            for dependency in repository_file.dependencies:
                if dependency in manifest:
                    result.skipped_plugins.append(dependency)
                    continue
                if self.repository_manager.get_repository_file(dependency) is None:
                    result.not_found_plugins.append(dependency)
                    continue
                manifest = manifest.with_plugin(dependency, LATEST_KEYWORD)
                result.added_plugins.append(dependency)

        manifest.validate_sync()
        self.config_manager.save_plugins(manifest.as_dict())
        self._logger.info(f"已添加插件: {result.added_plugins}")
        return result

    def remove_plugin(self, plugin_name: str) -> bool:
        """
        从管理中移除插件，保留插件文件

        Returns:
            是否删除了元数据记录

        Raises:
            PluginNotFoundError: 插件未在清单中声明
            HasDependentsError: 其他插件 sync 到该插件
        """
        manifest = self._load_manifest()
        self._require_declared(manifest, plugin_name)

        dependents = manifest.sync_dependents(plugin_name)
        if dependents:
            raise HasDependentsError(plugin_name, dependents)

        self.config_manager.save_plugins(manifest.without_plugin(plugin_name).as_dict())
        return self.metadata_store.delete(plugin_name)

    def uninstall_plugin(self, plugin_name: str, force: bool = False) -> Optional[Path]:
        """
        卸载插件：移出清单、删除元数据和插件文件

        Args:
            plugin_name: 插件名称
            force: 忽略其他插件对它的依赖

        Returns:
            被删除的插件文件，没有文件时返回 None

        Raises:
            PluginNotFoundError: 插件未在清单中声明
            HasDependentsError: 仍有插件依赖它且未指定 force
            RemoveError: 文件删除失败
        """
        manifest = self._load_manifest()
        self._require_declared(manifest, plugin_name)

        if not force:
            dependents = manifest.sync_dependents(plugin_name)
            dependents += [
                name
                for name in self.analyzer.get_reverse_dependencies(plugin_name)
                if name not in dependents
            ]
            if dependents:
                raise HasDependentsError(plugin_name, dependents)

        # unmanaged 插件的文件从不改动
        plugin_file = None if manifest.is_unmanaged(plugin_name) else self._locate_file(plugin_name)
        if plugin_file is not None:
            try:
                plugin_file.unlink()
            except OSError as e:
                raise RemoveError(plugin_name, f"删除文件失败: {e}") from e
            self._logger.info(f"已删除插件文件: {plugin_file.name}")

        self.metadata_store.delete(plugin_name)
        self.config_manager.save_plugins(manifest.without_plugin(plugin_name).as_dict())
        self.analyzer.invalidate()
        return plugin_file

    def _locate_file(self, plugin_name: str) -> Optional[Path]:
        record = self.metadata_store.find(plugin_name)
        if record is not None and record.download.file_name:
            path = self.plugins_dir / record.download.file_name
            if path.exists():
                return path

        data = self.analyzer.get_installed_plugins().get(plugin_name)
        if data is not None and data.file is not None and data.file.exists():
            return data.file
        return None

    def remove_unmanaged(self) -> List[str]:
        """删除插件目录中未在清单中声明的插件，返回被删除的插件名"""
        manifest = self._load_manifest()
        removed = []
        for name, data in self.analyzer.get_installed_plugins().items():
            if name in manifest or data.file is None:
                continue
            try:
                data.file.unlink()
            except OSError as e:
                raise RemoveError(name, f"删除文件失败: {e}") from e
            self._logger.info(f"已删除未管理的插件: {name} ({data.file.name})")
            removed.append(name)

        if removed:
            self.analyzer.invalidate()
        return removed

    # endregion

    # region 锁定

    def lock(self, plugin_name: str) -> ManagedPluginRecord:
        return self.metadata_store.lock(plugin_name)

    def unlock(self, plugin_name: str) -> ManagedPluginRecord:
        return self.metadata_store.unlock(plugin_name)

    # endregion

    # region 版本查询与更新

    def resolve_version(self, plugin_name: str) -> str:
        """
        只使用已保存的元数据解析插件的具体版本，不访问网络

        Raises:
            PluginNotFoundError: 插件未在清单中声明
            VersionResolutionError: 插件为 unmanaged
            SyncValidationError: sync 声明无效
            CircularDependencyError: sync 链形成循环
        """
        manifest = self._load_manifest()
        self._require_declared(manifest, plugin_name)
        if manifest.is_unmanaged(plugin_name):
            raise VersionResolutionError(plugin_name, "插件未被管理")

        order = manifest.topological_order()
        order = order[: order.index(plugin_name) + 1]
        managed = [name for name in order if not manifest.is_unmanaged(name)]
        resolved = self.resolver.resolve_all(managed, manifest.as_dict())
        return resolved[plugin_name]

    def check_outdated(self, plugin_name: str) -> OutdatedInfo:
        """
        比较当前版本与目录中的最新版本，并刷新记录中的 latest

        Raises:
            PluginNotFoundError: 没有元数据记录
            UnsupportedRepositoryError: 目录类型没有下载器
            DownloadError: 获取最新版本失败
        """
        record = self.metadata_store.load(plugin_name)
        downloader = self.downloaders.get(record.repository.type)
        try:
            latest = downloader.get_latest_version(record.repository.id)
        except Exception as e:
            raise DownloadError(f"获取 {plugin_name} 最新版本失败: {e}", plugin_name) from e

        record = self.metadata_store.refresh_latest(record, latest)
        self.metadata_store.save(record)

        latest_normalized = normalize_version(latest.version, record.version_pattern)
        return OutdatedInfo(
            plugin_name=plugin_name,
            current_version=record.version.current.raw,
            latest_version=latest.version,
            needs_update=latest_normalized != record.version.current.normalized,
        )

    def check_all_outdated(self) -> List[OutdatedInfo]:
        """检查清单中所有已安装的受管理插件，单个插件失败只记录日志"""
        manifest = self._load_manifest()
        infos = []
        for name in manifest.managed_names():
            if not self.metadata_store.exists(name):
                continue
            try:
                infos.append(self.check_outdated(name))
            except Exception as e:
                self._logger.warning(f"检查 {name} 是否过期失败: {e}")
        return infos

    def update_plugins(self) -> List[UpdateResult]:
        """
        更新所有过期插件

        锁定的插件和版本固定的插件不会更新；sync 插件跟随目标插件的新版本一起更新。
        失败记录在结果中，不抛出异常。

        Raises:
            SyncValidationError: sync 声明无效
            CircularDependencyError: sync 链形成循环
        """
        manifest = self._load_manifest()
        manifest.validate_sync()
        results = []
        updated: List[Tuple[str, str]] = []

        for info in self.check_all_outdated():
            if not info.needs_update:
                continue

            spec = manifest.specifier(info.plugin_name)
            if isinstance(spec, Sync):
                # 由目标插件的更新带动
                continue

            record = self.metadata_store.find(info.plugin_name)
            if record is not None and record.is_locked:
                results.append(
                    UpdateResult(
                        plugin_name=info.plugin_name,
                        old_version=info.current_version,
                        new_version=info.latest_version,
                        success=False,
                        error_message="插件已锁定",
                    )
                )
                continue

            if not isinstance(spec, Latest):
                results.append(
                    UpdateResult(
                        plugin_name=info.plugin_name,
                        old_version=info.current_version,
                        new_version=info.latest_version,
                        success=False,
                        error_message=f"版本已固定为 {manifest.get(info.plugin_name)}",
                    )
                )
                continue

            result, new_version = self._apply_update(
                info.plugin_name, LATEST_KEYWORD, info.current_version, info.latest_version
            )
            results.append(result)
            if new_version is not None:
                updated.append((info.plugin_name, new_version))

        results.extend(self._update_sync_dependents(manifest, updated))
        return results

    def _apply_update(
        self, plugin_name: str, target_version: str, old_version: str, expected_version: str
    ) -> Tuple[UpdateResult, Optional[str]]:
        """安装新版本，返回结果和实际安装的版本（安装失败时为 None）"""
        try:
            outcome = self.installer.install_plugin(plugin_name, target_version)
        except Exception as e:
            error = UpdateError(plugin_name, str(e))
            self._logger.error(str(error))
            return (
                UpdateResult(
                    plugin_name=plugin_name,
                    old_version=old_version,
                    new_version=expected_version,
                    success=False,
                    error_message=error.reason,
                ),
                None,
            )

        new_version = outcome.installed.current_version
        error_message = outcome.remove_error.reason if outcome.remove_error else None
        return (
            UpdateResult(
                plugin_name=plugin_name,
                old_version=old_version,
                new_version=new_version,
                success=error_message is None,
                error_message=error_message,
            ),
            new_version,
        )

    def _update_sync_dependents(
        self, manifest: DeclaredManifest, updated: List[Tuple[str, str]]
    ) -> List[UpdateResult]:
        """沿 sync 链把新版本传递给依赖插件，未安装的插件留给 install 处理"""
        results = []
        pending = list(updated)
        while pending:
            target, version = pending.pop(0)
            for dependent in manifest.sync_dependents(target):
                record = self.metadata_store.find(dependent)
                if record is None:
                    continue
                current = record.version.current
                if normalize_version(version, record.version_pattern) == current.normalized:
                    pending.append((dependent, current.raw))
                    continue
                if record.is_locked:
                    results.append(
                        UpdateResult(
                            plugin_name=dependent,
                            old_version=current.raw,
                            new_version=version,
                            success=False,
                            error_message="插件已锁定",
                        )
                    )
                    continue

                self._logger.info(f"{dependent} 跟随 {target} 更新到 {version}")
                result, new_version = self._apply_update(dependent, version, current.raw, version)
                results.append(result)
                if new_version is not None:
                    pending.append((dependent, new_version))
        return results

    def list_versions(self, plugin_name: str) -> List[VersionData]:
        """
        列出目录中插件的全部可用版本

        Raises:
            RepositoryNotFoundError: 没有仓库文件或候选源
            UnsupportedRepositoryError: 候选源类型没有下载器
            DownloadError: 下载器不支持列出版本或查询失败
        """
        repository_file = self.repository_manager.get_repository_file(plugin_name)
        if repository_file is None or repository_file.primary is None:
            raise RepositoryNotFoundError(plugin_name)

        candidate = repository_file.primary
        downloader = self.downloaders.get(candidate.type)
        try:
            return downloader.get_all_versions(candidate.repository_id)
        except NotImplementedError as e:
            raise DownloadError(f"仓库类型 {candidate.type} 不支持列出版本", plugin_name) from e
        except Exception as e:
            raise DownloadError(f"获取 {plugin_name} 的版本列表失败: {e}", plugin_name) from e

    def list_plugins(self) -> List[Dict[str, Any]]:
        """清单中每个插件的声明和已安装版本"""
        manifest = self._load_manifest()
        rows = []
        for name, text in manifest.items():
            record = None if text == UNMANAGED else self.metadata_store.find(name)
            rows.append(
                {
                    "name": name,
                    "specifier": text,
                    "current": record.version.current.raw if record else None,
                    "locked": record.is_locked if record else False,
                }
            )
        return rows

    # endregion
