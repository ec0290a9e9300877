# -*- coding: utf-8 -*-
"""
仓库源

本地目录源和远程 HTTP 源，均提供 is_available / list_plugin_ids / fetch_manifest。
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..core.config.project_config import RepositorySourceConfig
from ..exceptions import ProjectConfigError
from .models import RepositoryFile

logger = logging.getLogger(__name__)


class RepositorySource(ABC):
    """仓库源基类"""

    @property
    @abstractmethod
    def source_type(self) -> str:
        pass

    @property
    @abstractmethod
    def identifier(self) -> str:
        """用于日志和展示的源标识"""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        pass

    @abstractmethod
    def list_plugin_ids(self) -> List[str]:
        pass

    @abstractmethod
    def fetch_manifest(self, plugin_name: str) -> Optional[RepositoryFile]:
        pass

    def close(self) -> None:
        """释放源持有的连接"""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.identifier})"


class LocalRepositorySource(RepositorySource):
    """目录中的 <插件名>.json 文件"""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    @property
    def source_type(self) -> str:
        return "local"

    @property
    def identifier(self) -> str:
        return str(self.directory)

    def is_available(self) -> bool:
        return self.directory.is_dir()

    def list_plugin_ids(self) -> List[str]:
        if not self.is_available():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json"))

    def fetch_manifest(self, plugin_name: str) -> Optional[RepositoryFile]:
        path = self.directory / f"{plugin_name}.json"
        if not path.is_file():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                return RepositoryFile.model_validate(json.load(f))
        except (json.JSONDecodeError, ValidationError, OSError) as e:
            logger.warning(f"无法读取仓库文件 {path}: {e}")
            return None


class RemoteRepositorySource(RepositorySource):
    """
    远程仓库源

    GET <url>/index.json 返回插件列表，GET <url>/<name>.json 返回仓库文件。
    """

    def __init__(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        self.url = url.rstrip("/")
        self.headers = dict(headers or {})
        self._client = client or httpx.Client(timeout=timeout, headers=self.headers)

    @property
    def source_type(self) -> str:
        return "remote"

    @property
    def identifier(self) -> str:
        return self.url

    def is_available(self) -> bool:
        try:
            response = self._client.get(f"{self.url}/index.json", headers=self.headers)
        except httpx.HTTPError as e:
            logger.debug(f"远程仓库不可用 {self.url}: {e}")
            return False
        return response.status_code < 400

    def list_plugin_ids(self) -> List[str]:
        response = self._client.get(f"{self.url}/index.json", headers=self.headers)
        response.raise_for_status()
        data = response.json()
        if isinstance(data, dict):
            data = data.get("plugins", [])
        return sorted(str(name) for name in data)

    def fetch_manifest(self, plugin_name: str) -> Optional[RepositoryFile]:
        response = self._client.get(f"{self.url}/{plugin_name}.json", headers=self.headers)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return RepositoryFile.model_validate(response.json())

    def close(self) -> None:
        self._client.close()


def create_source(config: RepositorySourceConfig, base_dir: Path) -> RepositorySource:
    """
    根据配置创建仓库源

    Args:
        config: 仓库源配置
        base_dir: 相对路径的基准目录
    """
    if config.type == "local":
        path = Path(config.path)
        if not path.is_absolute():
            path = Path(base_dir) / path
        return LocalRepositorySource(path)
    if config.type == "remote":
        return RemoteRepositorySource(config.url, config.headers, config.timeout)
    raise ProjectConfigError(f"不支持的仓库源类型: {config.type}")
