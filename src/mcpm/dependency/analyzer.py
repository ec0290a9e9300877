# -*- coding: utf-8 -*-
"""
依赖分析器

根据插件目录中已安装插件自身的描述文件分析依赖关系：
依赖树、缺失依赖、反向依赖和加载顺序。
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set

import networkx as nx

from ..exceptions import (
    CircularDependencyError,
    MissingDependencyError,
    PluginNotFoundError,
)
from .descriptor import InstalledPluginData, read_plugin_descriptor


@dataclass
class DependencyInfo:
    """插件声明的依赖"""

    plugin_name: str
    version: str
    depend: List[str] = field(default_factory=list)
    soft_depend: List[str] = field(default_factory=list)
    load_before: List[str] = field(default_factory=list)


@dataclass
class DependencyNode:
    """依赖树节点，children 只反映该插件自身声明的一层依赖"""

    plugin_name: str
    is_installed: bool
    is_required: bool
    children: List["DependencyNode"] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "name": self.plugin_name,
            "installed": self.is_installed,
            "required": self.is_required,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass
class DependencyTree:
    root: DependencyNode
    missing_required: List[str] = field(default_factory=list)
    missing_soft: List[str] = field(default_factory=list)


@dataclass
class _PluginDataCache:
    data: Dict[str, InstalledPluginData] = field(default_factory=dict)
    last_refreshed_at: Optional[float] = None


class DependencyAnalyzer:
    """
    依赖分析器

    已安装插件信息带有短时缓存，过期后重新扫描整个插件目录。
    """

    def __init__(
        self,
        plugins_dir: Path,
        reader: Callable[[Path], Optional[InstalledPluginData]] = read_plugin_descriptor,
        cache_ttl: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        初始化依赖分析器

        Args:
            plugins_dir: 插件目录
            reader: 描述文件读取函数
            cache_ttl: 缓存有效期（秒）
            clock: 单调时钟
        """
        self.plugins_dir = Path(plugins_dir)
        self.cache_ttl = cache_ttl
        self._reader = reader
        self._clock = clock
        self._cache = _PluginDataCache()
        self.logger = logging.getLogger(__name__)

    # region 缓存

    def invalidate(self) -> None:
        self._cache = _PluginDataCache()

    def _scan(self) -> Dict[str, InstalledPluginData]:
        plugins: Dict[str, InstalledPluginData] = {}
        if not self.plugins_dir.is_dir():
            return plugins

        for jar_path in sorted(self.plugins_dir.glob("*.jar")):
            try:
                data = self._reader(jar_path)
            except Exception as e:
                self.logger.warning(f"无法读取插件描述文件 {jar_path.name}: {e}")
                continue
            if data is None:
                self.logger.debug(f"未找到描述文件: {jar_path.name}")
                continue
            plugins[data.name] = data

        return plugins

    def get_installed_plugins(self) -> Dict[str, InstalledPluginData]:
        """已安装插件，按插件名索引"""
        now = self._clock()
        last = self._cache.last_refreshed_at
        if last is not None and now - last < self.cache_ttl:
            return self._cache.data

        self._cache = _PluginDataCache(data=self._scan(), last_refreshed_at=now)
        self.logger.debug(f"已刷新已安装插件缓存: {len(self._cache.data)} 个插件")
        return self._cache.data

    # endregion

    @staticmethod
    def _to_info(data: InstalledPluginData) -> DependencyInfo:
        return DependencyInfo(
            plugin_name=data.name,
            version=data.version,
            depend=list(data.depend),
            soft_depend=list(data.soft_depend),
            load_before=list(data.load_before),
        )

    def get_dependency_info(self, plugin_name: str) -> DependencyInfo:
        """
        获取已安装插件的依赖信息

        Raises:
            PluginNotFoundError: 插件未安装
        """
        data = self.get_installed_plugins().get(plugin_name)
        if data is None:
            raise PluginNotFoundError(plugin_name, f"插件未安装: {plugin_name}")
        return self._to_info(data)

    def get_all_dependency_info(self) -> Dict[str, DependencyInfo]:
        return {name: self._to_info(data) for name, data in self.get_installed_plugins().items()}

    def build_dependency_tree(
        self, plugin_name: str, include_soft_dependencies: bool = False
    ) -> DependencyTree:
        """
        构建依赖树

        每条分支维护自己的已访问集合，重复出现的插件成为叶子节点，
        因此存在循环依赖时也能正常结束。

        Args:
            plugin_name: 根插件
            include_soft_dependencies: 是否包含可选依赖

        Raises:
            PluginNotFoundError: 根插件未安装
        """
        installed = self.get_installed_plugins()
        if plugin_name not in installed:
            raise PluginNotFoundError(plugin_name, f"插件未安装: {plugin_name}")

        missing_required: List[str] = []
        missing_soft: List[str] = []

        def build(name: str, is_required: bool, visited: Set[str]) -> DependencyNode:
            data = installed.get(name)
            node = DependencyNode(name, data is not None, is_required)

            if data is None:
                target = missing_required if is_required else missing_soft
                if name not in target:
                    target.append(name)
                return node

            if name in visited:
                return node

            branch = visited | {name}
            for dep in data.depend:
                node.children.append(build(dep, True, branch))
            if include_soft_dependencies:
                for dep in data.soft_depend:
                    node.children.append(build(dep, False, branch))
            return node

        root = build(plugin_name, True, set())
        return DependencyTree(root, missing_required, missing_soft)

    def check_missing_dependencies(self, plugin_name: Optional[str] = None) -> Dict[str, List[str]]:
        """
        检查缺失的必需依赖，可选依赖不计入

        Returns:
            {插件名: [缺失的必需依赖]}，没有缺失的插件不出现在结果中
        """
        installed = self.get_installed_plugins()
        if plugin_name is not None:
            targets = [installed[plugin_name]] if plugin_name in installed else []
        else:
            targets = list(installed.values())

        result = {}
        for data in targets:
            missing = [dep for dep in data.depend if dep not in installed]
            if missing:
                result[data.name] = missing
        return result

    def require_dependencies(self, plugin_name: str) -> None:
        """
        Raises:
            PluginNotFoundError: 插件未安装
            MissingDependencyError: 缺少必需依赖
        """
        info = self.get_dependency_info(plugin_name)
        installed = self.get_installed_plugins()
        missing = [dep for dep in info.depend if dep not in installed]
        if missing:
            raise MissingDependencyError(plugin_name, missing)

    def get_reverse_dependencies(self, plugin_name: str) -> List[str]:
        """声明依赖（必需或可选）于该插件的已安装插件"""
        return [
            data.name
            for data in self.get_installed_plugins().values()
            if data.name != plugin_name
            and (plugin_name in data.depend or plugin_name in data.soft_depend)
        ]

    def get_load_order(self, plugin_names: Optional[List[str]] = None) -> List[str]:
        """
        计算已安装插件的加载顺序

        已安装的依赖先加载，load-before 目标后加载。

        Raises:
            PluginNotFoundError: 指定的插件未安装
            CircularDependencyError: 存在循环依赖
        """
        installed = self.get_installed_plugins()
        names = list(plugin_names) if plugin_names is not None else list(installed)
        for name in names:
            if name not in installed:
                raise PluginNotFoundError(name, f"插件未安装: {name}")

        graph = nx.DiGraph()
        graph.add_nodes_from(names)
        selected = set(names)
        for name in names:
            data = installed[name]
            for dep in data.depend + data.soft_depend:
                if dep in selected and dep != name:
                    graph.add_edge(dep, name)
            for target in data.load_before:
                if target in selected and target != name:
                    graph.add_edge(name, target)

        if not nx.is_directed_acyclic_graph(graph):
            cycle = [source for source, _ in nx.find_cycle(graph)]
            cycle.append(cycle[0])
            raise CircularDependencyError(cycle)

        index = {name: i for i, name in enumerate(names)}
        order = list(nx.lexicographical_topological_sort(graph, key=lambda n: index[n]))
        self.logger.debug(f"插件加载顺序: {order}")
        return order
