# -*- coding: utf-8 -*-
"""
目录下载器契约

每种插件目录（GitHub、Modrinth、SpigotMC 等）由一个下载器适配，
编排器只依赖这里定义的抽象接口。
"""

import importlib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Type

from ..exceptions import ProjectConfigError, UnsupportedRepositoryError


@dataclass(frozen=True)
class VersionData:
    """目录返回的一个版本"""

    download_id: str
    version: str
    url: Optional[str] = None


class CatalogDownloader(ABC):
    """
    目录下载器基类

    失败必须以异常形式报告，不能返回空文件。
    """

    repository_type: str = ""

    def get_repository_type(self, url: str) -> Optional[str]:
        """根据 URL 判断是否属于本目录，默认不识别任何 URL"""
        return None

    @abstractmethod
    def get_latest_version(self, repository_id: str) -> VersionData:
        pass

    @abstractmethod
    def get_version_by_name(self, repository_id: str, version: str) -> VersionData:
        pass

    def get_all_versions(self, repository_id: str) -> List[VersionData]:
        """列出目录中的全部版本，不支持的目录类型抛出 NotImplementedError"""
        raise NotImplementedError(f"{type(self).__name__} 不支持列出全部版本")

    @abstractmethod
    def download_by_version(
        self,
        repository_id: str,
        version: VersionData,
        file_name_pattern: Optional[str] = None,
    ) -> Path:
        """
        下载指定版本到临时文件

        Args:
            repository_id: 目录内的插件 ID
            version: 要下载的版本
            file_name_pattern: 从发布文件中选择目标文件的正则

        Returns:
            下载得到的临时文件路径，由调用方移动到插件目录
        """
        pass


class DownloaderRegistry:
    """按目录类型查找下载器，类型不区分大小写"""

    def __init__(self):
        self._downloaders: Dict[str, CatalogDownloader] = {}
        self.logger = logging.getLogger(__name__)

    def register(self, repository_type: str, downloader: CatalogDownloader) -> None:
        key = repository_type.lower()
        if key in self._downloaders:
            self.logger.warning(f"覆盖已注册的下载器: {key}")
        self._downloaders[key] = downloader
        self.logger.debug(f"注册下载器: {key} -> {type(downloader).__name__}")

    def get(self, repository_type: str) -> CatalogDownloader:
        """
        获取下载器

        Raises:
            UnsupportedRepositoryError: 类型未注册
        """
        downloader = self._downloaders.get(repository_type.lower())
        if downloader is None:
            raise UnsupportedRepositoryError(repository_type)
        return downloader

    def supported_types(self) -> List[str]:
        return sorted(self._downloaders)

    def detect_repository_type(self, url: str) -> Optional[str]:
        """依次询问每个下载器，返回第一个识别该 URL 的目录类型"""
        for downloader in self._downloaders.values():
            detected = downloader.get_repository_type(url)
            if detected:
                return detected
        return None

    def register_from_config(self, downloaders: Dict[str, str]) -> None:
        """
        从配置注册下载器

        Args:
            downloaders: {目录类型: "module.path.ClassName"}

        Raises:
            ProjectConfigError: 类无法导入或不是下载器
        """
        for repository_type, class_path in downloaders.items():
            downloader_class = self._import_downloader_class(class_path)
            self.register(repository_type, downloader_class())

    def _import_downloader_class(self, class_path: str) -> Type[CatalogDownloader]:
        parts = class_path.split(".")
        class_name = parts[-1]
        module_name = ".".join(parts[:-1])
        if not module_name:
            raise ProjectConfigError(f"下载器类路径无效: {class_path}")

        try:
            module = importlib.import_module(module_name)
            downloader_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ProjectConfigError(f"无法导入下载器 {class_path}: {e}") from e

        if not (isinstance(downloader_class, type) and issubclass(downloader_class, CatalogDownloader)):
            raise ProjectConfigError(f"{class_path} 不是 CatalogDownloader 的子类")
        return downloader_class
