# -*- coding: utf-8 -*-
"""
版本解析、批量安装和插件生命周期
"""

from .lifecycle import PluginLifecycleManager
from .orchestrator import DEFAULT_FILE_NAME_TEMPLATE, BulkInstaller, render_file_name
from .resolver import VersionResolver
from .results import (
    AddResult,
    BulkInstallResult,
    InstallOutcome,
    OutdatedInfo,
    PluginInstallInfo,
    PluginRemovalInfo,
    UpdateResult,
)

__all__ = [
    "PluginLifecycleManager",
    "BulkInstaller",
    "VersionResolver",
    "DEFAULT_FILE_NAME_TEMPLATE",
    "render_file_name",
    "AddResult",
    "BulkInstallResult",
    "InstallOutcome",
    "OutdatedInfo",
    "PluginInstallInfo",
    "PluginRemovalInfo",
    "UpdateResult",
]
