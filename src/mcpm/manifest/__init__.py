# -*- coding: utf-8 -*-
"""
插件清单与版本声明
"""

from .declared import DeclaredManifest
from .specifier import (
    Fixed,
    Latest,
    Pattern,
    Sync,
    Tag,
    VersionSpecifier,
    VersionSpecifierParser,
)

__all__ = [
    "DeclaredManifest",
    "VersionSpecifier",
    "VersionSpecifierParser",
    "Fixed",
    "Latest",
    "Tag",
    "Pattern",
    "Sync",
]
