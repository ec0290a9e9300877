# -*- coding: utf-8 -*-
"""
已安装插件的描述文件读取

.jar 是 zip 归档，优先读取 paper-plugin.yml，其次 plugin.yml。
"""

import zipfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

PAPER_DESCRIPTOR = "paper-plugin.yml"
BUKKIT_DESCRIPTOR = "plugin.yml"


class DescriptorFormat(str, Enum):
    BUKKIT = "bukkit"
    PAPER = "paper"


@dataclass
class InstalledPluginData:
    """已安装插件自身声明的信息"""

    name: str
    version: str = ""
    main: str = ""
    description: str = ""
    author: str = ""
    website: str = ""
    api_version: str = ""
    format: DescriptorFormat = DescriptorFormat.BUKKIT
    depend: List[str] = field(default_factory=list)
    soft_depend: List[str] = field(default_factory=list)
    load_before: List[str] = field(default_factory=list)
    file: Optional[Path] = None


def _as_list(value: Any) -> List[str]:
    """依赖字段既可以是列表也可以是单个字符串"""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    return [str(value)]


def _text(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


def _parse_paper_dependencies(data: Dict[str, Any]):
    depend: List[str] = []
    soft_depend: List[str] = []
    load_before: List[str] = []

    dependencies = data.get("dependencies") or {}
    for section in ("server", "bootstrap"):
        entries = dependencies.get(section) or {}
        if not isinstance(entries, dict):
            continue
        for name, options in entries.items():
            options = options or {}
            target = depend if options.get("required") is True else soft_depend
            if name not in target:
                target.append(name)
            if str(options.get("load", "")).upper() == "BEFORE" and name not in load_before:
                load_before.append(name)

    return depend, soft_depend, load_before


def parse_descriptor(text: str, descriptor_format: DescriptorFormat) -> Optional[InstalledPluginData]:
    """解析描述文件内容，缺少 name 时返回 None"""
    data = yaml.safe_load(text)
    if not isinstance(data, dict) or not data.get("name"):
        return None

    if descriptor_format == DescriptorFormat.PAPER:
        depend, soft_depend, load_before = _parse_paper_dependencies(data)
    else:
        depend = _as_list(data.get("depend"))
        soft_depend = _as_list(data.get("softdepend"))
        load_before = _as_list(data.get("loadbefore"))

    return InstalledPluginData(
        name=_text(data, "name"),
        version=_text(data, "version"),
        main=_text(data, "main"),
        description=_text(data, "description"),
        author=_text(data, "author"),
        website=_text(data, "website"),
        api_version=_text(data, "api-version"),
        format=descriptor_format,
        depend=depend,
        soft_depend=soft_depend,
        load_before=load_before,
    )


def read_plugin_descriptor(jar_path: Path) -> Optional[InstalledPluginData]:
    """
    读取插件归档中的描述文件

    Args:
        jar_path: 插件文件

    Returns:
        插件信息，归档中没有可识别的描述文件时返回 None

    Raises:
        zipfile.BadZipFile: 文件不是有效的归档
        yaml.YAMLError: 描述文件不是有效的 YAML
    """
    with zipfile.ZipFile(jar_path) as archive:
        names = set(archive.namelist())
        if PAPER_DESCRIPTOR in names:
            entry, descriptor_format = PAPER_DESCRIPTOR, DescriptorFormat.PAPER
        elif BUKKIT_DESCRIPTOR in names:
            entry, descriptor_format = BUKKIT_DESCRIPTOR, DescriptorFormat.BUKKIT
        else:
            return None
        text = archive.read(entry).decode("utf-8")

    data = parse_descriptor(text, descriptor_format)
    if data is not None:
        data.file = Path(jar_path)
    return data
