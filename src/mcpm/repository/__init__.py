# -*- coding: utf-8 -*-
"""
仓库抽象
"""

from .manager import RepositoryManager
from .models import RepositoryConfig, RepositoryFile
from .sources import (
    LocalRepositorySource,
    RemoteRepositorySource,
    RepositorySource,
    create_source,
)

__all__ = [
    "RepositoryManager",
    "RepositoryConfig",
    "RepositoryFile",
    "RepositorySource",
    "LocalRepositorySource",
    "RemoteRepositorySource",
    "create_source",
]
