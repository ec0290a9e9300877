# -*- coding: utf-8 -*-
"""
项目文档模型

mpm.json / mpm.yaml 保存插件清单、仓库源、下载器注册和全局设置。
字符串值支持 ${VAR_NAME} 形式的环境变量引用。
"""

import os
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# 环境变量匹配模式: ${VAR_NAME}
ENV_VAR_PATTERN = re.compile(r"\${([A-Za-z0-9_]+)}")

UNMANAGED = "unmanaged"


def resolve_env_vars(value: Any) -> Any:
    """
    递归解析环境变量

    Raises:
        ValueError: 当环境变量未设置时抛出
    """
    if isinstance(value, str):
        match = ENV_VAR_PATTERN.match(value)
        if not match:
            return value
        env_var_name = match.group(1)
        env_var_value = os.getenv(env_var_name)
        if env_var_value is None:
            raise ValueError(f"环境变量 '{env_var_name}' 未设置")
        return env_var_value
    elif isinstance(value, dict):
        return {k: resolve_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [resolve_env_vars(v) for v in value]
    else:
        return value


class RepositorySourceConfig(BaseModel):
    """
    仓库源配置

    type 为 local 时使用 path，为 remote 时使用 url、headers 和 timeout。
    """

    type: str = "local"
    path: str = "repository"
    url: Optional[str] = None
    headers: Dict[str, str] = Field(default_factory=dict)
    timeout: float = 10.0

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        v = v.lower()
        if v not in ("local", "remote"):
            raise ValueError(f"不支持的仓库源类型: {v}")
        return v

    @model_validator(mode="after")
    def validate_remote_url(self):
        if self.type == "remote" and not self.url:
            raise ValueError("远程仓库源必须配置 url")
        return self


class GlobalSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plugins_directory: str = Field(default="plugins", alias="pluginsDirectory")
    metadata_directory: str = Field(default="metadata", alias="metadataDirectory")
    dependency_cache_ttl: float = Field(default=30.0, alias="dependencyCacheTtl")
    repository_cache_ttl: float = Field(default=180.0, alias="repositoryCacheTtl")


class ProjectConfig(BaseModel):
    """项目文档"""

    model_config = ConfigDict(populate_by_name=True)

    name: str = "server"
    version: str = "1.0.0"
    plugins: Dict[str, str] = Field(default_factory=dict, description="插件名 -> 版本声明")
    repositories: List[RepositorySourceConfig] = Field(
        default_factory=lambda: [RepositorySourceConfig()]
    )
    downloaders: Dict[str, str] = Field(
        default_factory=dict, description="目录类型 -> 下载器类路径"
    )
    settings: GlobalSettings = Field(default_factory=GlobalSettings)

    @model_validator(mode="before")
    @classmethod
    def _resolve_env_vars(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        return resolve_env_vars(data)

    @field_validator("plugins", mode="before")
    @classmethod
    def validate_plugins(cls, v):
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValueError("plugins 必须是 插件名 -> 版本声明 的映射")
        plugins = {}
        for name, spec in v.items():
            if not isinstance(name, str) or not name.strip():
                raise ValueError("插件名称不能为空")
            # YAML 会把 1.0 之类的版本读成数字
            if isinstance(spec, (int, float)) and not isinstance(spec, bool):
                spec = str(spec)
            if not isinstance(spec, str) or not spec.strip():
                raise ValueError(f"插件 {name} 的版本声明必须是非空字符串")
            plugins[name] = spec
        return plugins
