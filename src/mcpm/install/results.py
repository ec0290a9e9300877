# -*- coding: utf-8 -*-
"""
安装与更新的结果对象
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..exceptions import RemoveError


@dataclass
class PluginInstallInfo:
    name: str
    current_version: str
    latest_version: str
    old_version: Optional[str] = None


@dataclass
class PluginRemovalInfo:
    """被新版本替换掉的旧文件"""

    name: str
    version: str


@dataclass
class BulkInstallResult:
    """
    批量安装结果

    部分成功是正常结果：失败记录在 failed 中，不会抛出异常。
    """

    installed: List[PluginInstallInfo] = field(default_factory=list)
    removed: List[PluginRemovalInfo] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return not self.failed


@dataclass
class InstallOutcome:
    """单个插件安装事务的结果"""

    installed: PluginInstallInfo
    removed: Optional[PluginRemovalInfo] = None
    # 新文件已就位但旧文件仍留在插件目录
    remove_error: Optional[RemoveError] = None


@dataclass
class OutdatedInfo:
    plugin_name: str
    current_version: str
    latest_version: str
    needs_update: bool


@dataclass
class UpdateResult:
    plugin_name: str
    old_version: str
    new_version: str
    success: bool
    error_message: Optional[str] = None


@dataclass
class AddResult:
    """添加插件（可带依赖）的结果"""

    added_plugins: List[str] = field(default_factory=list)
    skipped_plugins: List[str] = field(default_factory=list)
    not_found_plugins: List[str] = field(default_factory=list)
