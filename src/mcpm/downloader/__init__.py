# -*- coding: utf-8 -*-
"""
目录下载器
"""

from .base import CatalogDownloader, DownloaderRegistry, VersionData

__all__ = ["CatalogDownloader", "DownloaderRegistry", "VersionData"]
