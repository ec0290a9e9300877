# -*- coding: utf-8 -*-
"""
依赖分析器测试
"""

import pytest

from mcpm.dependency.analyzer import DependencyAnalyzer
from mcpm.exceptions import (
    CircularDependencyError,
    MissingDependencyError,
    PluginNotFoundError,
)


@pytest.fixture
def plugins_dir(tmp_path):
    path = tmp_path / "plugins"
    path.mkdir()
    return path


@pytest.fixture
def analyzer(plugins_dir) -> DependencyAnalyzer:
    return DependencyAnalyzer(plugins_dir)


class TestDependencyInfo:
    """测试依赖信息查询"""

    def test_get_dependency_info(self, analyzer, plugins_dir, jar_factory):
        jar_factory(plugins_dir / "Essentials.jar", "Essentials", "2.0", depend=["Vault"], softdepend=["LuckPerms"])
        info = analyzer.get_dependency_info("Essentials")
        assert info.plugin_name == "Essentials"
        assert info.version == "2.0"
        assert info.depend == ["Vault"]
        assert info.soft_depend == ["LuckPerms"]

    def test_not_installed(self, analyzer):
        with pytest.raises(PluginNotFoundError):
            analyzer.get_dependency_info("Missing")

    def test_unreadable_archive_skipped(self, analyzer, plugins_dir, jar_factory):
        (plugins_dir / "broken.jar").write_bytes(b"garbage")
        jar_factory(plugins_dir / "Vault.jar", "Vault")
        assert list(analyzer.get_all_dependency_info()) == ["Vault"]


class TestDependencyTree:
    """测试依赖树构建"""

    def test_tree_with_missing(self, analyzer, plugins_dir, jar_factory):
        jar_factory(plugins_dir / "A.jar", "A", depend=["B", "Missing"], softdepend=["Soft"])
        jar_factory(plugins_dir / "B.jar", "B")

        tree = analyzer.build_dependency_tree("A")
        assert tree.root.plugin_name == "A"
        assert tree.root.is_installed
        assert tree.root.is_required
        assert [c.plugin_name for c in tree.root.children] == ["B", "Missing"]
        assert tree.missing_required == ["Missing"]
        assert tree.missing_soft == []

        with_soft = analyzer.build_dependency_tree("A", include_soft_dependencies=True)
        soft = with_soft.root.children[-1]
        assert soft.plugin_name == "Soft"
        assert not soft.is_required
        assert with_soft.missing_soft == ["Soft"]

    def test_cycle_terminates(self, analyzer, plugins_dir, jar_factory):
        """测试 X 依赖 Y、Y 依赖 X 时依赖树有限"""
        jar_factory(plugins_dir / "X.jar", "X", depend=["Y"])
        jar_factory(plugins_dir / "Y.jar", "Y", depend=["X"])

        tree = analyzer.build_dependency_tree("X")
        y = tree.root.children[0]
        assert y.plugin_name == "Y"
        leaf = y.children[0]
        assert leaf.plugin_name == "X"
        assert leaf.children == []
        assert tree.root.to_dict()["children"][0]["children"][0]["children"] == []

    def test_tree_root_not_installed(self, analyzer):
        with pytest.raises(PluginNotFoundError):
            analyzer.build_dependency_tree("Missing")


class TestDependencyChecks:
    """测试缺失依赖、反向依赖和加载顺序"""

    def test_check_missing(self, analyzer, plugins_dir, jar_factory):
        jar_factory(plugins_dir / "A.jar", "A", depend=["B", "C"], softdepend=["D"])
        jar_factory(plugins_dir / "B.jar", "B")
        jar_factory(plugins_dir / "E.jar", "E", depend=["Z"])

        assert analyzer.check_missing_dependencies() == {"A": ["C"], "E": ["Z"]}
        assert analyzer.check_missing_dependencies("A") == {"A": ["C"]}
        assert analyzer.check_missing_dependencies("B") == {}
        assert analyzer.check_missing_dependencies("Unknown") == {}

    def test_require_dependencies(self, analyzer, plugins_dir, jar_factory):
        jar_factory(plugins_dir / "A.jar", "A", depend=["B"])
        with pytest.raises(MissingDependencyError) as exc_info:
            analyzer.require_dependencies("A")
        assert exc_info.value.missing == ["B"]

    def test_reverse_dependencies(self, analyzer, plugins_dir, jar_factory):
        jar_factory(plugins_dir / "Vault.jar", "Vault", depend=["Vault"])
        jar_factory(plugins_dir / "Essentials.jar", "Essentials", depend=["Vault"])
        jar_factory(plugins_dir / "Shop.jar", "Shop", softdepend=["Vault"])
        jar_factory(plugins_dir / "Other.jar", "Other")
        assert sorted(analyzer.get_reverse_dependencies("Vault")) == ["Essentials", "Shop"]

    def test_load_order(self, analyzer, plugins_dir, jar_factory):
        jar_factory(plugins_dir / "a.jar", "Essentials", depend=["Vault"])
        jar_factory(plugins_dir / "b.jar", "Vault")
        jar_factory(plugins_dir / "c.jar", "Early", loadbefore=["Vault"])
        order = analyzer.get_load_order()
        assert order.index("Vault") < order.index("Essentials")
        assert order.index("Early") < order.index("Vault")

    def test_load_order_cycle(self, analyzer, plugins_dir, jar_factory):
        jar_factory(plugins_dir / "X.jar", "X", depend=["Y"])
        jar_factory(plugins_dir / "Y.jar", "Y", depend=["X"])
        with pytest.raises(CircularDependencyError) as exc_info:
            analyzer.get_load_order()
        assert set(exc_info.value.cycle) == {"X", "Y"}


class TestCache:
    """测试已安装插件缓存"""

    def test_cache_expiry(self, plugins_dir, jar_factory):
        now = [0.0]
        analyzer = DependencyAnalyzer(plugins_dir, cache_ttl=30.0, clock=lambda: now[0])
        jar_factory(plugins_dir / "A.jar", "A")
        assert list(analyzer.get_installed_plugins()) == ["A"]

        jar_factory(plugins_dir / "B.jar", "B")
        now[0] = 29.0
        assert list(analyzer.get_installed_plugins()) == ["A"]

        now[0] = 30.0
        assert sorted(analyzer.get_installed_plugins()) == ["A", "B"]

    def test_invalidate(self, plugins_dir, jar_factory):
        analyzer = DependencyAnalyzer(plugins_dir, clock=lambda: 0.0)
        analyzer.get_installed_plugins()
        jar_factory(plugins_dir / "A.jar", "A")
        analyzer.invalidate()
        assert list(analyzer.get_installed_plugins()) == ["A"]
