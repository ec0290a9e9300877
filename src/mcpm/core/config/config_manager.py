# -*- coding: utf-8 -*-
"""
项目文档管理器

按文件后缀选择 JSON 或 YAML，负责项目文档的初始化、加载和插件清单的回写。
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import ValidationError

from ...exceptions import (
    ProjectAlreadyInitializedError,
    ProjectConfigError,
    ProjectNotInitializedError,
)
from .project_config import ProjectConfig, resolve_env_vars

PROJECT_FILE_NAMES = ("mpm.json", "mpm.yaml", "mpm.yml")


class ProjectConfigManager:
    """
    项目文档管理器

    回写时只替换原始文档中的 plugins 键，其余内容（包括未展开的
    ${VAR} 引用）原样保留。
    """

    def __init__(self, project_file: Path):
        self.project_file = Path(project_file)
        self._logger = logging.getLogger(__name__)

    @classmethod
    def for_root(cls, root: Path) -> "ProjectConfigManager":
        """在根目录中查找已有的项目文档，找不到时默认使用 mpm.json"""
        root = Path(root)
        for file_name in PROJECT_FILE_NAMES:
            candidate = root / file_name
            if candidate.exists():
                return cls(candidate)
        return cls(root / PROJECT_FILE_NAMES[0])

    def exists(self) -> bool:
        return self.project_file.exists()

    def _is_yaml(self) -> bool:
        return self.project_file.suffix.lower() in (".yaml", ".yml")

    def load_raw(self) -> Dict[str, Any]:
        """
        读取原始文档

        Raises:
            ProjectNotInitializedError: 文档不存在
            ProjectConfigError: 文档无法解析
        """
        if not self.exists():
            raise ProjectNotInitializedError(f"项目未初始化，找不到 {self.project_file}")

        suffix = self.project_file.suffix.lower()
        try:
            with open(self.project_file, "r", encoding="utf-8") as f:
                if self._is_yaml():
                    data = yaml.safe_load(f)
                elif suffix == ".json":
                    data = json.load(f)
                else:
                    raise ProjectConfigError(f"不支持的项目文件格式: {suffix}")
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ProjectConfigError(f"解析项目文件失败 {self.project_file}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ProjectConfigError(f"项目文件顶层必须是映射: {self.project_file}")
        return data

    def load(self) -> ProjectConfig:
        data = self.load_raw()
        try:
            return ProjectConfig.model_validate(data)
        except ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(loc) for loc in err['loc']) or '<root>'}: {err['msg']}"
                for err in e.errors()
            )
            raise ProjectConfigError(f"项目文件验证失败 {self.project_file}: {errors}") from e

    def _write(self, data: Dict[str, Any]) -> None:
        self.project_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.project_file, "w", encoding="utf-8") as f:
            if self._is_yaml():
                yaml.dump(
                    data, f, default_flow_style=False, allow_unicode=True, sort_keys=False
                )
            else:
                json.dump(data, f, ensure_ascii=False, indent=2)
                f.write("\n")

    def init(self, name: str = "server") -> ProjectConfig:
        """
        创建新的项目文档

        Raises:
            ProjectAlreadyInitializedError: 文档已存在
        """
        if self.exists():
            raise ProjectAlreadyInitializedError(f"项目已初始化: {self.project_file}")

        config = ProjectConfig(name=name)
        self._write(config.model_dump(mode="json", by_alias=True))
        self._logger.info(f"项目已初始化: {self.project_file}")
        return config

    def save_plugins(self, plugins: Dict[str, str]) -> None:
        """
        按给定顺序回写插件清单

        取值未变的条目保留文档中的原始文本，其中的 ${VAR} 引用不会被展开。
        """
        data = self.load_raw()
        raw_plugins = data.get("plugins")
        if not isinstance(raw_plugins, dict):
            raw_plugins = {}

        merged = {}
        for name, text in plugins.items():
            raw = raw_plugins.get(name)
            merged[name] = raw if raw is not None and _resolves_to(raw, text) else text
        data["plugins"] = merged
        self._write(data)
        self._logger.debug(f"插件清单已保存: {list(plugins)}")


def _resolves_to(raw: Any, text: str) -> bool:
    """原始值解析环境变量后是否等于 text"""
    try:
        return str(resolve_env_vars(raw)) == text
    except ValueError:
        return False
