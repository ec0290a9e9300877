# -*- coding: utf-8 -*-
"""
批量安装/更新编排器

读取声明式清单，校验 sync 声明，按拓扑顺序逐个判断并安装插件。
单个插件失败只记录在结果中，不影响其余插件。
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Dict, Optional, Tuple

from ..core.config.config_manager import ProjectConfigManager
from ..downloader.base import CatalogDownloader, DownloaderRegistry, VersionData
from ..exceptions import InstallError, RemoveError, RepositoryNotFoundError
from ..manifest.declared import DeclaredManifest
from ..manifest.specifier import LATEST_KEYWORD, Latest, VersionSpecifierParser
from ..metadata.models import ManagedPluginRecord, normalize_version
from ..metadata.store import MetadataStore
from ..repository.manager import RepositoryManager
from ..repository.models import RepositoryConfig
from .resolver import VersionResolver
from .results import BulkInstallResult, InstallOutcome, PluginInstallInfo, PluginRemovalInfo

DEFAULT_FILE_NAME_TEMPLATE = "<pluginInfo.name>-<mpmInfo.version.current.normalized>.jar"


def render_file_name(template: str, plugin_name: str, normalized_version: str) -> str:
    """
    根据模板生成安装后的文件名

    支持 <pluginInfo.name> / <name> 和 <mpmInfo.version.current.normalized> / <version>。
    """
    replacements = {
        "<pluginInfo.name>": plugin_name,
        "<name>": plugin_name,
        "<mpmInfo.version.current.normalized>": normalized_version,
        "<version>": normalized_version,
    }
    file_name = template
    for placeholder, value in replacements.items():
        file_name = file_name.replace(placeholder, value)
    return file_name


class BulkInstaller:
    """
    批量安装编排器

    插件严格按顺序处理：sync 依赖者解析时，其目标本次的结果已经确定。
    """

    def __init__(
        self,
        config_manager: ProjectConfigManager,
        metadata_store: MetadataStore,
        repository_manager: RepositoryManager,
        downloaders: DownloaderRegistry,
        resolver: VersionResolver,
        plugins_dir: Path,
    ):
        self.config_manager = config_manager
        self.metadata_store = metadata_store
        self.repository_manager = repository_manager
        self.downloaders = downloaders
        self.resolver = resolver
        self.plugins_dir = Path(plugins_dir)
        self.logger = logging.getLogger(__name__)

    def load_manifest(self) -> DeclaredManifest:
        return DeclaredManifest(self.config_manager.load().plugins)

    def install_all(self) -> BulkInstallResult:
        """
        按清单安装或更新所有插件

        Returns:
            批量安装结果

        Raises:
            SyncValidationError: sync 目标不存在或未被管理，此时不做任何修改
            CircularDependencyError: sync 链形成循环，此时不做任何修改
        """
        manifest = self.load_manifest()
        order = manifest.topological_order()

        self.logger.info(f"开始批量安装: {len(order)} 个插件")
        result = BulkInstallResult()
        resolved: Dict[str, str] = {}

        for plugin_name in order:
            if manifest.is_unmanaged(plugin_name):
                self.logger.debug(f"跳过未管理的插件: {plugin_name}")
                result.skipped.append(plugin_name)
                continue

            try:
                self._process_plugin(plugin_name, manifest.get(plugin_name), resolved, result)
            except Exception as e:
                self.logger.error(f"插件 {plugin_name} 安装失败: {e}")
                result.failed[plugin_name] = str(e)

        self.logger.info(
            f"批量安装完成: 安装 {len(result.installed)}，移除 {len(result.removed)}，"
            f"失败 {len(result.failed)}，跳过 {len(result.skipped)}"
        )
        return result

    def _process_plugin(
        self,
        plugin_name: str,
        specifier_text: str,
        resolved: Dict[str, str],
        result: BulkInstallResult,
    ) -> None:
        spec = VersionSpecifierParser.parse(specifier_text)
        target = self.resolver.resolve(plugin_name, specifier_text, resolved)
        record = self.metadata_store.find(plugin_name)
        prefetched_latest: Optional[VersionData] = None

        if isinstance(spec, Latest):
            target = LATEST_KEYWORD

        if record is None:
            needs_install = True
        elif isinstance(spec, Latest):
            if record.is_locked:
                needs_install = False
            else:
                # latest 每次都重新检查，只有最新版本变化时才替换文件
                candidate, downloader = self._select_candidate(plugin_name)
                prefetched_latest = self._fetch_latest(plugin_name, candidate, downloader)
                latest_normalized = normalize_version(
                    prefetched_latest.version, record.version_pattern
                )
                needs_install = latest_normalized != record.version.current.normalized
        else:
            needs_install = (
                normalize_version(target, record.version_pattern)
                != record.version.current.normalized
            )

        if not needs_install:
            self.logger.debug(f"插件已是目标版本，跳过: {plugin_name}")
            resolved[plugin_name] = record.version.current.raw
            result.skipped.append(plugin_name)
            return

        outcome = self.install_plugin(plugin_name, target, latest=prefetched_latest)
        resolved[plugin_name] = outcome.installed.current_version
        result.installed.append(outcome.installed)
        if outcome.removed is not None:
            result.removed.append(outcome.removed)
        if outcome.remove_error is not None:
            result.failed[plugin_name] = str(outcome.remove_error)

    # region 单插件事务

    def _select_candidate(self, plugin_name: str) -> Tuple[RepositoryConfig, CatalogDownloader]:
        repository_file = self.repository_manager.get_repository_file(plugin_name)
        if repository_file is None:
            raise RepositoryNotFoundError(plugin_name)
        candidate = repository_file.primary
        if candidate is None:
            raise RepositoryNotFoundError(plugin_name, f"插件 {plugin_name} 的仓库文件没有候选源")
        return candidate, self.downloaders.get(candidate.type)

    def _fetch_latest(
        self, plugin_name: str, candidate: RepositoryConfig, downloader: CatalogDownloader
    ) -> VersionData:
        try:
            return downloader.get_latest_version(candidate.repository_id)
        except Exception as e:
            raise InstallError(plugin_name, f"获取最新版本失败: {e}") from e

    def install_plugin(
        self,
        plugin_name: str,
        target_version: str,
        latest: Optional[VersionData] = None,
    ) -> InstallOutcome:
        """
        安装单个插件

        新文件就位后才删除旧文件，元数据在文件移动成功后才保存。
        旧文件删除失败不回滚新文件，错误记录在结果的 remove_error 中。

        Args:
            plugin_name: 插件名称
            target_version: 具体版本或 "latest"
            latest: 已获取的最新版本信息

        Raises:
            RepositoryNotFoundError: 没有仓库文件或候选源
            UnsupportedRepositoryError: 候选源类型没有下载器
            InstallError: 版本查询、下载或文件移动失败
        """
        candidate, downloader = self._select_candidate(plugin_name)

        if latest is None:
            latest = self._fetch_latest(plugin_name, candidate, downloader)
        if target_version.lower() == LATEST_KEYWORD:
            version_data = latest
        else:
            try:
                version_data = downloader.get_version_by_name(candidate.repository_id, target_version)
            except Exception as e:
                raise InstallError(plugin_name, f"获取版本 {target_version} 失败: {e}") from e

        existing = self.metadata_store.find(plugin_name)
        if existing is None:
            record = self.metadata_store.create_record(
                plugin_name, candidate, version_data, latest, action="install"
            )
        else:
            record = self.metadata_store.update_record(
                existing, version_data, latest, action="update"
            )

        try:
            downloaded = downloader.download_by_version(
                candidate.repository_id, version_data, record.file_name_pattern
            )
        except Exception as e:
            raise InstallError(plugin_name, f"下载失败: {e}") from e
        if downloaded is None or not Path(downloaded).is_file():
            raise InstallError(plugin_name, "下载器没有返回文件")

        template = record.file_name_template or DEFAULT_FILE_NAME_TEMPLATE
        file_name = render_file_name(template, plugin_name, record.version.current.normalized)
        self._place_file(plugin_name, Path(downloaded), file_name)

        removed, remove_error = None, None
        try:
            removed = self._remove_old_file(existing, file_name)
        except RemoveError as e:
            self.logger.error(str(e))
            remove_error = e

        record = record.model_copy(
            update={"download": record.download.model_copy(update={"file_name": file_name})}
        )
        self.metadata_store.save(record)
        self.logger.info(f"插件已安装: {plugin_name} {record.version.current.raw} -> {file_name}")

        return InstallOutcome(
            installed=PluginInstallInfo(
                name=plugin_name,
                current_version=record.version.current.raw,
                latest_version=record.version.latest.raw,
                old_version=existing.version.current.raw if existing else None,
            ),
            removed=removed,
            remove_error=remove_error,
        )

    def _place_file(self, plugin_name: str, downloaded: Path, file_name: str) -> Path:
        destination = self.plugins_dir / file_name
        partial = self.plugins_dir / f".{file_name}.part"
        try:
            self.plugins_dir.mkdir(parents=True, exist_ok=True)
            shutil.move(str(downloaded), str(partial))
            os.replace(partial, destination)
        except OSError as e:
            if partial.exists():
                partial.unlink()
            raise InstallError(plugin_name, f"移动文件失败: {e}") from e
        return destination

    def _remove_old_file(
        self, existing: Optional[ManagedPluginRecord], new_file_name: str
    ) -> Optional[PluginRemovalInfo]:
        if existing is None or not existing.download.file_name:
            return None
        old_file_name = existing.download.file_name
        if old_file_name == new_file_name:
            return None

        old_file = self.plugins_dir / old_file_name
        if not old_file.exists():
            return None

        try:
            old_file.unlink()
        except OSError as e:
            raise RemoveError(existing.name, f"旧文件删除失败 {old_file_name}: {e}") from e

        self.logger.info(f"已删除旧文件: {old_file_name}")
        return PluginRemovalInfo(name=existing.name, version=existing.version.current.normalized)

    # endregion
