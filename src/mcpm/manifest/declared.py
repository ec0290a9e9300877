# -*- coding: utf-8 -*-
"""
声明式插件清单

保存 插件名 -> 版本声明 的有序映射，负责 sync 声明校验和处理顺序计算。
"""

import logging
from typing import Dict, Iterator, List, Optional, Tuple

import networkx as nx

from ..core.config.project_config import UNMANAGED
from ..exceptions import (
    CircularDependencyError,
    SyncTargetNotFoundError,
    SyncTargetUnmanagedError,
)
from .specifier import Sync, VersionSpecifier, VersionSpecifierParser

logger = logging.getLogger(__name__)


class DeclaredManifest:
    """
    声明式插件清单

    实例不可变，修改操作返回新的清单并保持原有插件顺序。
    """

    def __init__(self, plugins: Optional[Dict[str, str]] = None):
        self._plugins: Dict[str, str] = dict(plugins or {})

    def __contains__(self, plugin_name: str) -> bool:
        return plugin_name in self._plugins

    def __len__(self) -> int:
        return len(self._plugins)

    def __iter__(self) -> Iterator[str]:
        return iter(self._plugins)

    def __eq__(self, other) -> bool:
        if not isinstance(other, DeclaredManifest):
            return NotImplemented
        return list(self._plugins.items()) == list(other._plugins.items())

    def __repr__(self) -> str:
        return f"DeclaredManifest({self._plugins!r})"

    def items(self) -> List[Tuple[str, str]]:
        return list(self._plugins.items())

    def as_dict(self) -> Dict[str, str]:
        return dict(self._plugins)

    def get(self, plugin_name: str) -> Optional[str]:
        return self._plugins.get(plugin_name)

    def is_unmanaged(self, plugin_name: str) -> bool:
        return self._plugins.get(plugin_name) == UNMANAGED

    def managed_names(self) -> List[str]:
        return [name for name, text in self._plugins.items() if text != UNMANAGED]

    def specifier(self, plugin_name: str) -> Optional[VersionSpecifier]:
        """unmanaged 或未声明的插件返回 None"""
        text = self._plugins.get(plugin_name)
        if text is None or text == UNMANAGED:
            return None
        return VersionSpecifierParser.parse(text)

    def with_plugin(self, plugin_name: str, specifier_text: str) -> "DeclaredManifest":
        """添加或覆盖一个插件，已存在的插件保持原位置"""
        plugins = dict(self._plugins)
        plugins[plugin_name] = specifier_text
        return DeclaredManifest(plugins)

    def without_plugin(self, plugin_name: str) -> "DeclaredManifest":
        plugins = dict(self._plugins)
        plugins.pop(plugin_name, None)
        return DeclaredManifest(plugins)

    def sync_edges(self) -> Dict[str, str]:
        """声明插件 -> sync 目标"""
        edges = {}
        for name, text in self._plugins.items():
            if text == UNMANAGED:
                continue
            spec = VersionSpecifierParser.parse(text)
            if isinstance(spec, Sync):
                edges[name] = spec.target_plugin
        return edges

    def sync_dependents(self, target: str) -> List[str]:
        """所有 sync 到 target 的插件"""
        return [name for name, t in self.sync_edges().items() if t == target]

    def _build_sync_graph(self) -> nx.DiGraph:
        graph = nx.DiGraph()
        graph.add_nodes_from(self._plugins)
        for name, target in self.sync_edges().items():
            graph.add_edge(name, target)
        return graph

    def validate_sync(self) -> None:
        """
        校验所有 sync 声明

        Raises:
            SyncTargetNotFoundError: sync 目标未在清单中声明
            SyncTargetUnmanagedError: sync 目标为 unmanaged
            CircularDependencyError: sync 链形成循环
        """
        edges = self.sync_edges()
        for name, target in edges.items():
            if target not in self._plugins:
                raise SyncTargetNotFoundError(name, target)
            if self._plugins[target] == UNMANAGED:
                raise SyncTargetUnmanagedError(name, target)

        graph = self._build_sync_graph()
        if not nx.is_directed_acyclic_graph(graph):
            cycle_edges = nx.find_cycle(graph)
            cycle = [source for source, _ in cycle_edges]
            cycle.append(cycle[0])
            raise CircularDependencyError(cycle)

    def topological_order(self) -> List[str]:
        """
        计算处理顺序

        sync 目标排在声明它的插件之前，其余插件保持清单顺序。

        Raises:
            SyncValidationError: sync 声明无效
            CircularDependencyError: sync 链形成循环
        """
        self.validate_sync()

        index = {name: i for i, name in enumerate(self._plugins)}
        # 边方向为 目标 -> 声明者，目标先处理
        graph = self._build_sync_graph().reverse(copy=True)
        order = list(nx.lexicographical_topological_sort(graph, key=lambda n: index[n]))
        logger.debug(f"插件处理顺序: {order}")
        return order
