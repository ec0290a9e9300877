# -*- coding: utf-8 -*-
"""
已安装插件的依赖分析
"""

from .analyzer import DependencyAnalyzer, DependencyInfo, DependencyNode, DependencyTree
from .descriptor import InstalledPluginData, read_plugin_descriptor

__all__ = [
    "DependencyAnalyzer",
    "DependencyInfo",
    "DependencyNode",
    "DependencyTree",
    "InstalledPluginData",
    "read_plugin_descriptor",
]
