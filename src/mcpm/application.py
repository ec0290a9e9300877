# -*- coding: utf-8 -*-
"""
应用入口

从项目根目录显式构造所有组件，不使用全局单例。
"""

import logging
from pathlib import Path
from typing import List, Optional

from .core.config.config_manager import ProjectConfigManager
from .core.config.project_config import ProjectConfig
from .core.paths import PluginDirectory
from .dependency.analyzer import DependencyAnalyzer, DependencyTree
from .downloader.base import DownloaderRegistry
from .install.lifecycle import PluginLifecycleManager
from .install.orchestrator import BulkInstaller
from .install.resolver import VersionResolver
from .install.results import BulkInstallResult
from .metadata.models import ManagedPluginRecord
from .metadata.store import MetadataStore
from .repository.manager import RepositoryManager
from .repository.sources import RepositorySource, create_source

logger = logging.getLogger(__name__)


class MpmApplication:
    """组合后的插件管理器"""

    def __init__(
        self,
        config_manager: ProjectConfigManager,
        directory: PluginDirectory,
        metadata_store: MetadataStore,
        repository_manager: RepositoryManager,
        downloaders: DownloaderRegistry,
        analyzer: DependencyAnalyzer,
        resolver: VersionResolver,
        installer: BulkInstaller,
        lifecycle: PluginLifecycleManager,
    ):
        self.config_manager = config_manager
        self.directory = directory
        self.metadata_store = metadata_store
        self.repository_manager = repository_manager
        self.downloaders = downloaders
        self.analyzer = analyzer
        self.resolver = resolver
        self.installer = installer
        self.lifecycle = lifecycle

    @classmethod
    def create(
        cls,
        root: Path,
        downloaders: Optional[DownloaderRegistry] = None,
        sources: Optional[List[RepositorySource]] = None,
    ) -> "MpmApplication":
        """
        从项目根目录构造应用

        项目文档不存在时使用默认配置，便于执行 init。

        Args:
            root: 项目根目录
            downloaders: 已注册的下载器，默认按项目文档中的类路径导入
            sources: 仓库源，默认按项目文档构造
        """
        root = Path(root)
        config_manager = ProjectConfigManager.for_root(root)
        config = config_manager.load() if config_manager.exists() else ProjectConfig()
        directory = PluginDirectory.from_settings(root, config.settings)

        if downloaders is None:
            downloaders = DownloaderRegistry()
            downloaders.register_from_config(config.downloaders)
        if sources is None:
            sources = [create_source(source, root) for source in config.repositories]

        metadata_store = MetadataStore(directory.metadata_dir)
        repository_manager = RepositoryManager(sources, cache_ttl=config.settings.repository_cache_ttl)
        analyzer = DependencyAnalyzer(
            directory.plugins_dir, cache_ttl=config.settings.dependency_cache_ttl
        )
        resolver = VersionResolver(metadata_store)
        installer = BulkInstaller(
            config_manager,
            metadata_store,
            repository_manager,
            downloaders,
            resolver,
            directory.plugins_dir,
        )
        lifecycle = PluginLifecycleManager(
            config_manager,
            metadata_store,
            repository_manager,
            downloaders,
            analyzer,
            resolver,
            installer,
            directory.plugins_dir,
        )
        logger.debug(f"已加载项目: {root}")
        return cls(
            config_manager,
            directory,
            metadata_store,
            repository_manager,
            downloaders,
            analyzer,
            resolver,
            installer,
            lifecycle,
        )

    def close(self) -> None:
        """关闭仓库源的网络连接"""
        self.repository_manager.close()

    def __enter__(self) -> "MpmApplication":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def install_all(self) -> BulkInstallResult:
        return self.installer.install_all()

    def resolve_version(self, plugin_name: str) -> str:
        return self.lifecycle.resolve_version(plugin_name)

    def build_dependency_tree(
        self, plugin_name: str, include_soft_dependencies: bool = False
    ) -> DependencyTree:
        return self.analyzer.build_dependency_tree(plugin_name, include_soft_dependencies)

    def lock(self, plugin_name: str) -> ManagedPluginRecord:
        return self.lifecycle.lock(plugin_name)

    def unlock(self, plugin_name: str) -> ManagedPluginRecord:
        return self.lifecycle.unlock(plugin_name)
