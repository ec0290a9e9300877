# -*- coding: utf-8 -*-
"""
项目文档配置
"""

from .config_manager import PROJECT_FILE_NAMES, ProjectConfigManager
from .project_config import (
    UNMANAGED,
    GlobalSettings,
    ProjectConfig,
    RepositorySourceConfig,
)

__all__ = [
    "PROJECT_FILE_NAMES",
    "ProjectConfigManager",
    "ProjectConfig",
    "RepositorySourceConfig",
    "GlobalSettings",
    "UNMANAGED",
]
