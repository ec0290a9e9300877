# -*- coding: utf-8 -*-
"""
版本声明解析测试
"""

import pytest

from mcpm.manifest.specifier import (
    Fixed,
    Latest,
    Pattern,
    Sync,
    Tag,
    VersionSpecifierParser,
)


class TestParse:
    """测试 VersionSpecifierParser.parse"""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("latest", Latest()),
            ("LATEST", Latest()),
            ("sync:LuckPerms", Sync("LuckPerms")),
            ("SYNC:core-lib", Sync("core-lib")),
            ("sync:a:b-c", Sync("a:b-c")),
            ("tag:beta", Tag("beta")),
            ("Tag:release", Tag("release")),
            ("pattern:^1\\.2\\..*$", Pattern("^1\\.2\\..*$")),
            ("1.2.3", Fixed("1.2.3")),
            ("v2.0-SNAPSHOT", Fixed("v2.0-SNAPSHOT")),
            ("unknown:prefix", Fixed("unknown:prefix")),
        ],
    )
    def test_parse_variants(self, text, expected):
        """测试各种声明的解析结果"""
        assert VersionSpecifierParser.parse(text) == expected

    def test_blank_sync_target_is_fixed(self):
        """测试 sync: 后为空时视为固定版本"""
        assert VersionSpecifierParser.parse("sync:") == Fixed("sync:")
        assert VersionSpecifierParser.parse("sync:  ") == Fixed("sync:  ")

    @pytest.mark.parametrize(
        "text", ["", " ", ":", "tag:", "pattern:[", "🙂", "sync", "latest ", "\n"]
    )
    def test_parse_never_raises(self, text):
        """测试任意输入都能解析"""
        spec = VersionSpecifierParser.parse(text)
        assert spec is not None

    def test_invalid_regex_accepted_at_parse_time(self):
        """测试正则在解析时不校验"""
        assert VersionSpecifierParser.parse("pattern:([") == Pattern("([")


class TestFormat:
    """测试 VersionSpecifierParser.format"""

    @pytest.mark.parametrize(
        "spec",
        [
            Latest(),
            Sync("Vault"),
            Tag("beta"),
            Pattern(".*"),
            Fixed("1.0.0"),
            Fixed("sync:"),
            Tag(""),
        ],
    )
    def test_round_trip(self, spec):
        """测试 parse(format(spec)) == spec"""
        assert VersionSpecifierParser.parse(VersionSpecifierParser.format(spec)) == spec

    def test_format_strings(self):
        assert VersionSpecifierParser.format(Latest()) == "latest"
        assert VersionSpecifierParser.format(Sync("Vault")) == "sync:Vault"
        assert VersionSpecifierParser.format(Tag("beta")) == "tag:beta"
        assert VersionSpecifierParser.format(Pattern("1\\..*")) == "pattern:1\\..*"
        assert VersionSpecifierParser.format(Fixed("2.0")) == "2.0"

    def test_format_unknown_type(self):
        with pytest.raises(TypeError):
            VersionSpecifierParser.format("latest")


class TestSyncHelpers:
    """测试 sync 辅助方法"""

    def test_is_sync_format(self):
        assert VersionSpecifierParser.is_sync_format("sync:Vault")
        assert VersionSpecifierParser.is_sync_format("Sync:Vault")
        assert not VersionSpecifierParser.is_sync_format("sync:")
        assert not VersionSpecifierParser.is_sync_format("latest")
        assert not VersionSpecifierParser.is_sync_format("1.0")

    def test_extract_sync_target(self):
        assert VersionSpecifierParser.extract_sync_target("sync:Vault") == "Vault"
        assert VersionSpecifierParser.extract_sync_target("SYNC:a:b") == "a:b"
        assert VersionSpecifierParser.extract_sync_target("sync:") is None
        assert VersionSpecifierParser.extract_sync_target("tag:x") is None
