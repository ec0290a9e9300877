# -*- coding: utf-8 -*-
"""
mcpm: 游戏服务器插件的声明式管理器
"""

__author__ = "mcpm"
__version__ = "1.0.0"

from .application import MpmApplication

# 异常
from .exceptions import (
    CircularDependencyError,
    HasDependentsError,
    MissingDependencyError,
    MpmException,
    PluginAlreadyExistsError,
    PluginAlreadyLockedError,
    PluginError,
    PluginNotFoundError,
    PluginNotLockedError,
    RepositoryNotFoundError,
    UnsupportedRepositoryError,
    VersionResolutionError,
)
from .manifest.specifier import VersionSpecifierParser

__all__ = [
    "MpmApplication",
    "VersionSpecifierParser",
    "MpmException",
    "PluginError",
    "PluginNotFoundError",
    "PluginAlreadyExistsError",
    "PluginAlreadyLockedError",
    "PluginNotLockedError",
    "VersionResolutionError",
    "CircularDependencyError",
    "MissingDependencyError",
    "HasDependentsError",
    "RepositoryNotFoundError",
    "UnsupportedRepositoryError",
]
