# -*- coding: utf-8 -*-
"""
仓库管理器

按优先级组合多个仓库源。
"""

import logging
import time
from typing import Callable, List, Optional

from .models import RepositoryFile
from .sources import RepositorySource


class RepositoryManager:
    """
    多仓库源管理

    单个源出错只视为该源没有结果，不影响整体查找。
    """

    def __init__(
        self,
        sources: List[RepositorySource],
        cache_ttl: float = 180.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        初始化仓库管理器

        Args:
            sources: 按优先级排列的仓库源
            cache_ttl: 可用插件列表的缓存时间（秒）
            clock: 单调时钟
        """
        self.sources = list(sources)
        self.cache_ttl = cache_ttl
        self._clock = clock
        self.logger = logging.getLogger(__name__)

        self._plugins_cache: Optional[List[str]] = None
        self._cached_at: Optional[float] = None

    def get_available_sources(self) -> List[RepositorySource]:
        available = []
        for source in self.sources:
            try:
                if source.is_available():
                    available.append(source)
            except Exception as e:
                self.logger.warning(f"检查仓库源可用性失败 {source.identifier}: {e}")
        return available

    def get_available_plugins(self) -> List[str]:
        """所有可用源的插件 ID 并集，按名称排序"""
        if self._plugins_cache is not None and self._cached_at is not None:
            if self._clock() - self._cached_at < self.cache_ttl:
                self.logger.debug("使用缓存的可用插件列表")
                return list(self._plugins_cache)

        names = set()
        for source in self.get_available_sources():
            try:
                names.update(source.list_plugin_ids())
            except Exception as e:
                self.logger.warning(f"获取插件列表失败 {source.identifier}: {e}")

        self._plugins_cache = sorted(names)
        self._cached_at = self._clock()
        return list(self._plugins_cache)

    def get_repository_file(self, plugin_name: str) -> Optional[RepositoryFile]:
        """
        按优先级返回第一个命中的仓库文件，不合并多个源

        直接查询每个源，不可达的源由异常处理跳过。
        """
        for source in self.sources:
            try:
                repository_file = source.fetch_manifest(plugin_name)
            except Exception as e:
                self.logger.warning(f"从仓库源 {source.identifier} 获取 {plugin_name} 失败: {e}")
                continue

            if repository_file is not None:
                self.logger.debug(f"在仓库源 {source.identifier} 中找到 {plugin_name}")
                return repository_file

        return None

    def invalidate_cache(self) -> None:
        self._plugins_cache = None
        self._cached_at = None

    def close(self) -> None:
        for source in self.sources:
            source.close()
