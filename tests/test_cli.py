# -*- coding: utf-8 -*-
"""
命令行接口测试
"""

import json

import pytest

from mcpm import cli
from mcpm.downloader.base import DownloaderRegistry


@pytest.fixture
def run_cli(project, monkeypatch):
    """用模拟下载器运行命令行，返回退出码"""
    original_create = cli.MpmApplication.create

    def create(root, downloaders=None, sources=None):
        registry = DownloaderRegistry()
        registry.register("fake", project.downloader)
        return original_create(root, downloaders=registry, sources=sources)

    monkeypatch.setattr(cli.MpmApplication, "create", staticmethod(create))

    def _run(*args):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--root", str(project.root), *args])
        return exc_info.value.code

    return _run


class TestCli:
    """测试命令行主要流程"""

    def test_init(self, run_cli, project, capsys):
        assert run_cli("init", "survival") == 0
        data = json.loads((project.root / "mpm.json").read_text(encoding="utf-8"))
        assert data["name"] == "survival"
        assert run_cli("init") == 1
        assert "已初始化" in capsys.readouterr().err

    def test_add_install_resolve(self, run_cli, project, capsys):
        project.add_catalog_plugin("Vault", ["1.7.3"])
        project.write_project({})

        assert run_cli("add", "Vault", "1.7.3") == 0
        assert run_cli("install") == 0
        assert project.plugin_files() == ["Vault-1.7.3.jar"]

        capsys.readouterr()
        assert run_cli("resolve", "Vault") == 0
        assert capsys.readouterr().out.strip() == "1.7.3"

    def test_install_failure_exit_code(self, run_cli, project):
        project.write_project({"Ghost": "1.0"})
        assert run_cli("install") == 1

    def test_lock_twice(self, run_cli, project, capsys):
        project.add_catalog_plugin("Vault", ["1.0"])
        project.write_project({"Vault": "1.0"})
        run_cli("install")
        assert run_cli("lock", "Vault") == 0
        assert run_cli("lock", "Vault") == 1
        assert "已被锁定" in capsys.readouterr().err

    def test_sync_cycle_reported(self, run_cli, project, capsys):
        project.write_project({"A": "sync:B", "B": "sync:A"})
        assert run_cli("install") == 1
        assert "循环依赖" in capsys.readouterr().err

    def test_deps_tree(self, run_cli, project, jar_factory, capsys):
        project.write_project({})
        jar_factory(project.plugins_dir / "A.jar", "A", depend=["B"])
        assert run_cli("deps", "tree", "A") == 1
        out = capsys.readouterr().out
        assert "B (未安装)" in out
        assert run_cli("deps", "check") == 1
        assert run_cli("deps", "order") == 0

    def test_versions(self, run_cli, project, capsys):
        project.add_catalog_plugin("Vault", ["1.0", "2.0"])
        project.write_project({})
        assert run_cli("versions", "Vault") == 0
        assert capsys.readouterr().out.split() == ["1.0", "2.0"]
        assert run_cli("versions", "Ghost") == 1

    def test_sources_closed_after_command(self, run_cli, project, mocker):
        project.write_project({})
        close = mocker.patch("mcpm.repository.manager.RepositoryManager.close")
        assert run_cli("list") == 0
        close.assert_called_once_with()
