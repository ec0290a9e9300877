# -*- coding: utf-8 -*-
"""
项目路径管理

项目根目录保存 mpm.json、metadata/ 和本地仓库；插件目录默认为 <根目录>/plugins。
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config.config_manager import PROJECT_FILE_NAMES
from .config.project_config import GlobalSettings


def _is_project_dir(path: Path) -> bool:
    """检查目录是否为项目根目录"""
    return any((path / name).is_file() for name in PROJECT_FILE_NAMES)


def get_project_root(start: Optional[Path] = None) -> Path:
    """获取项目根目录

    从 start（默认当前工作目录）向上查找包含项目文档的目录，
    找不到时返回 start 本身。

    Returns:
        项目根目录的Path对象
    """
    start = Path(start or Path.cwd()).resolve()
    for parent in [start] + list(start.parents):
        if _is_project_dir(parent):
            return parent
    return start


@dataclass(frozen=True)
class PluginDirectory:
    """项目内各目录的位置"""

    root: Path
    plugins_dir: Path
    metadata_dir: Path

    @classmethod
    def from_settings(cls, root: Path, settings: Optional[GlobalSettings] = None) -> "PluginDirectory":
        settings = settings or GlobalSettings()
        root = Path(root)

        def _resolve(value: str) -> Path:
            path = Path(value)
            return path if path.is_absolute() else root / path

        return cls(
            root=root,
            plugins_dir=_resolve(settings.plugins_directory),
            metadata_dir=_resolve(settings.metadata_directory),
        )
