# -*- coding: utf-8 -*-
"""
版本声明模型

清单中每个插件对应一个版本声明字符串，解析为以下五种之一：
固定版本、latest、tag、pattern、sync（跟随另一个插件的版本）。
"""

from dataclasses import dataclass
from typing import Optional, Union

LATEST_KEYWORD = "latest"
SYNC_PREFIX = "sync:"
TAG_PREFIX = "tag:"
PATTERN_PREFIX = "pattern:"


@dataclass(frozen=True)
class Fixed:
    """固定版本"""

    version: str


@dataclass(frozen=True)
class Latest:
    """始终使用目录中的最新版本"""


@dataclass(frozen=True)
class Tag:
    """按标签选择版本"""

    tag: str


@dataclass(frozen=True)
class Pattern:
    """按正则表达式选择版本，表达式在使用时才校验"""

    pattern: str


@dataclass(frozen=True)
class Sync:
    """跟随另一个插件解析出的版本"""

    target_plugin: str


VersionSpecifier = Union[Fixed, Latest, Tag, Pattern, Sync]


def _strip_prefix(text: str, prefix: str) -> Optional[str]:
    if text[: len(prefix)].lower() == prefix:
        return text[len(prefix) :]
    return None


class VersionSpecifierParser:
    """
    版本声明解析器

    前缀关键字不区分大小写；无法识别的内容一律视为固定版本，从不报错。
    """

    @staticmethod
    def parse(text: str) -> VersionSpecifier:
        """
        解析版本声明字符串

        Args:
            text: 清单中的版本声明

        Returns:
            对应的版本声明对象
        """
        if text.lower() == LATEST_KEYWORD:
            return Latest()

        target = _strip_prefix(text, SYNC_PREFIX)
        if target is not None:
            # "sync:" 后为空时退化为固定版本
            if target.strip():
                return Sync(target)
            return Fixed(text)

        tag = _strip_prefix(text, TAG_PREFIX)
        if tag is not None:
            return Tag(tag)

        pattern = _strip_prefix(text, PATTERN_PREFIX)
        if pattern is not None:
            return Pattern(pattern)

        return Fixed(text)

    @staticmethod
    def format(spec: VersionSpecifier) -> str:
        """将版本声明对象转换回字符串"""
        if isinstance(spec, Latest):
            return LATEST_KEYWORD
        if isinstance(spec, Sync):
            return f"{SYNC_PREFIX}{spec.target_plugin}"
        if isinstance(spec, Tag):
            return f"{TAG_PREFIX}{spec.tag}"
        if isinstance(spec, Pattern):
            return f"{PATTERN_PREFIX}{spec.pattern}"
        if isinstance(spec, Fixed):
            return spec.version
        raise TypeError(f"未知的版本声明类型: {type(spec).__name__}")

    @staticmethod
    def is_sync_format(text: str) -> bool:
        """判断字符串是否为有效的 sync 声明"""
        target = _strip_prefix(text, SYNC_PREFIX)
        return target is not None and bool(target.strip())

    @staticmethod
    def extract_sync_target(text: str) -> Optional[str]:
        """提取 sync 目标插件名，不是 sync 声明时返回 None"""
        if not VersionSpecifierParser.is_sync_format(text):
            return None
        return text[len(SYNC_PREFIX) :]
