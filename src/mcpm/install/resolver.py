# -*- coding: utf-8 -*-
"""
版本解析器

把清单中的版本声明解析为具体的版本字符串。
"""

import logging
from typing import Dict, Mapping

from ..manifest.specifier import LATEST_KEYWORD, Latest, Sync, VersionSpecifierParser
from ..metadata.store import MetadataStore


class VersionResolver:
    """
    版本解析器

    tag 和 pattern 声明目前按原文返回，不会在目录版本列表中匹配。
    """

    def __init__(self, metadata_store: MetadataStore):
        self.metadata_store = metadata_store
        self.logger = logging.getLogger(__name__)

    def resolve(
        self,
        plugin_name: str,
        specifier_text: str,
        resolved_so_far: Mapping[str, str],
    ) -> str:
        """
        解析具体版本

        Args:
            plugin_name: 插件名称
            specifier_text: 清单中的版本声明
            resolved_so_far: 已处理插件的解析结果

        Returns:
            具体的版本字符串
        """
        spec = VersionSpecifierParser.parse(specifier_text)

        if isinstance(spec, Sync):
            resolved = resolved_so_far.get(spec.target_plugin)
            if resolved is None:
                self.logger.warning(
                    f"{plugin_name} 的 sync 目标 {spec.target_plugin} 尚未解析，使用原始声明"
                )
                return specifier_text
            return resolved

        if isinstance(spec, Latest):
            record = self.metadata_store.find(plugin_name)
            if record is not None:
                return record.version.current.raw
            return LATEST_KEYWORD

        # Fixed、Tag、Pattern 按原文返回
        return specifier_text

    def resolve_all(self, order, manifest: Mapping[str, str]) -> Dict[str, str]:
        """按给定顺序依次解析，sync 声明使用前面插件的结果"""
        resolved: Dict[str, str] = {}
        for name in order:
            resolved[name] = self.resolve(name, manifest[name], resolved)
        return resolved
