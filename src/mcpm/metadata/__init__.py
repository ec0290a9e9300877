# -*- coding: utf-8 -*-
"""
插件元数据
"""

from .models import ManagedPluginRecord, VersionDetail, normalize_version
from .store import MetadataStore

__all__ = ["ManagedPluginRecord", "VersionDetail", "normalize_version", "MetadataStore"]
