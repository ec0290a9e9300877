# -*- coding: utf-8 -*-
"""
插件元数据模型

每个受管理插件持久化一条记录，保存版本、下载信息、锁定状态和安装历史。
"""

import re
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalize_version(raw: str, version_pattern: Optional[str] = None) -> str:
    """
    计算版本的比较键

    Args:
        raw: 目录返回的原始版本
        version_pattern: 可选的正则，先从原始版本中提取版本部分

    Returns:
        去掉前导 v/V 并转为小写的版本字符串
    """
    value = raw
    if version_pattern:
        match = re.search(version_pattern, raw)
        if match:
            value = match.group(0)
    return value.lstrip("vV").lower()


class VersionDetail(BaseModel):
    """原始版本与规范化版本"""

    model_config = ConfigDict(frozen=True)

    raw: str = Field(..., description="目录返回的原始版本")
    normalized: str = Field(..., description="用于比较的规范化版本")

    @classmethod
    def from_raw(cls, raw: str, version_pattern: Optional[str] = None) -> "VersionDetail":
        return cls(raw=raw, normalized=normalize_version(raw, version_pattern))

    def equals_normalized(self, other: "VersionDetail") -> bool:
        """规范化形式相同即视为同一版本"""
        return self.normalized == other.normalized


class RepositoryBinding(BaseModel):
    """插件绑定的目录类型和目录内 ID"""

    type: str
    id: str


class VersionInfo(BaseModel):
    current: VersionDetail
    latest: VersionDetail
    last_checked: datetime


class DownloadInfo(BaseModel):
    download_id: str = ""
    file_name: Optional[str] = None
    url: Optional[str] = None


class PluginSettings(BaseModel):
    lock: bool = False


class InstallHistory(BaseModel):
    """一次成功的安装或更新"""

    version: str
    installed_at: datetime
    action: str


class ManagedPluginRecord(BaseModel):
    """
    受管理插件的元数据记录

    history 只追加，每次成功安装或更新恰好追加一条。
    """

    name: str = Field(..., description="插件名称")
    repository: RepositoryBinding
    version: VersionInfo
    download: DownloadInfo = Field(default_factory=DownloadInfo)
    settings: PluginSettings = Field(default_factory=PluginSettings)
    history: List[InstallHistory] = Field(default_factory=list)
    version_pattern: Optional[str] = None
    file_name_pattern: Optional[str] = None
    file_name_template: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("插件名称不能为空")
        return v

    @property
    def is_locked(self) -> bool:
        return self.settings.lock

    def with_lock(self, locked: bool) -> "ManagedPluginRecord":
        """返回只修改了锁定标志的副本"""
        return self.model_copy(
            update={"settings": self.settings.model_copy(update={"lock": locked})}
        )


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
