# -*- coding: utf-8 -*-
"""
mcpm 命令行接口
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .application import MpmApplication
from .core.paths import get_project_root
from .dependency.analyzer import DependencyNode
from .exceptions import MpmException
from .install.results import BulkInstallResult


def _print_install_result(result: BulkInstallResult) -> None:
    """格式化并打印批量安装结果。"""
    print("\n--- 安装摘要 ---")
    for info in result.installed:
        if info.old_version:
            print(f"  更新 {info.name}: {info.old_version} -> {info.current_version}")
        else:
            print(f"  安装 {info.name}: {info.current_version}")
    for removal in result.removed:
        print(f"  删除旧文件 {removal.name}: {removal.version}")
    for name, reason in result.failed.items():
        print(f"  失败 {name}: {reason}")
    print(
        f"安装 {len(result.installed)}，删除 {len(result.removed)}，"
        f"失败 {len(result.failed)}，跳过 {len(result.skipped)}"
    )


def _print_tree(node: DependencyNode, prefix: str = "") -> None:
    status = "" if node.is_installed else " (未安装)"
    kind = "" if node.is_required else " [可选]"
    print(f"{prefix}{node.plugin_name}{kind}{status}")
    for child in node.children:
        _print_tree(child, prefix + "  ")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcpm",
        description="mcpm - 游戏服务器插件的声明式管理器",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--root", "-r", help="项目根目录，默认向上查找 mpm.json")
    parser.add_argument("--verbose", "-v", action="store_true", help="输出调试日志")

    commands = parser.add_subparsers(dest="command", required=True)

    init = commands.add_parser("init", help="初始化项目")
    init.add_argument("name", nargs="?", default="server", help="项目名称")

    add = commands.add_parser("add", help="将插件加入清单")
    add.add_argument("plugin")
    add.add_argument("version", nargs="?", default="latest", help="版本声明，默认 latest")
    add.add_argument("--with-deps", action="store_true", help="同时添加仓库文件中列出的依赖")

    remove = commands.add_parser("remove", help="从管理中移除插件，保留文件")
    remove.add_argument("plugin")

    uninstall = commands.add_parser("uninstall", help="卸载插件并删除文件")
    uninstall.add_argument("plugin")
    uninstall.add_argument("--force", "-f", action="store_true", help="忽略依赖检查")

    commands.add_parser("install", help="按清单安装或更新所有插件")
    commands.add_parser("update", help="更新所有过期的 latest 插件")
    commands.add_parser("outdated", help="列出过期的插件")
    commands.add_parser("list", help="列出清单中的插件")
    commands.add_parser("remove-unmanaged", help="删除未在清单中声明的插件文件")

    for name, help_text in (("lock", "锁定插件版本"), ("unlock", "解锁插件版本"), ("resolve", "解析插件的具体版本")):
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument("plugin")

    versions = commands.add_parser("versions", help="列出目录中插件的可用版本")
    versions.add_argument("plugin")

    deps = commands.add_parser("deps", help="分析已安装插件的依赖")
    deps_commands = deps.add_subparsers(dest="deps_command", required=True)
    tree = deps_commands.add_parser("tree", help="显示依赖树")
    tree.add_argument("plugin")
    tree.add_argument("--soft", action="store_true", help="包含可选依赖")
    check = deps_commands.add_parser("check", help="检查缺失的必需依赖")
    check.add_argument("plugin", nargs="?")
    reverse = deps_commands.add_parser("reverse", help="列出依赖该插件的插件")
    reverse.add_argument("plugin")
    deps_commands.add_parser("order", help="计算加载顺序")

    return parser


def _run(app: MpmApplication, args: argparse.Namespace) -> int:
    command = args.command

    if command == "init":
        app.config_manager.init(args.name)
        print(f"项目已初始化: {app.config_manager.project_file}")
        return 0

    if command == "add":
        result = app.lifecycle.add_plugin(args.plugin, args.version, args.with_deps)
        print(f"已添加: {', '.join(result.added_plugins)}")
        if result.skipped_plugins:
            print(f"已存在: {', '.join(result.skipped_plugins)}")
        if result.not_found_plugins:
            print(f"找不到仓库文件: {', '.join(result.not_found_plugins)}")
        return 0

    if command == "remove":
        app.lifecycle.remove_plugin(args.plugin)
        print(f"已移除管理: {args.plugin}")
        return 0

    if command == "uninstall":
        removed = app.lifecycle.uninstall_plugin(args.plugin, force=args.force)
        print(f"已卸载: {args.plugin}" + (f" ({removed.name})" if removed else ""))
        return 0

    if command == "install":
        result = app.install_all()
        _print_install_result(result)
        return 0 if result.is_success else 1

    if command == "update":
        results = app.lifecycle.update_plugins()
        for r in results:
            if r.success:
                print(f"  更新 {r.plugin_name}: {r.old_version} -> {r.new_version}")
            else:
                print(f"  跳过 {r.plugin_name}: {r.error_message}")
        if not results:
            print("所有插件均为最新")
        return 0 if all(r.success for r in results) else 1

    if command == "outdated":
        infos = [i for i in app.lifecycle.check_all_outdated() if i.needs_update]
        for info in infos:
            print(f"  {info.plugin_name}: {info.current_version} -> {info.latest_version}")
        if not infos:
            print("所有插件均为最新")
        return 0

    if command == "list":
        for row in app.lifecycle.list_plugins():
            current = row["current"] or "-"
            lock = " [锁定]" if row["locked"] else ""
            print(f"  {row['name']:<24} {row['specifier']:<20} {current}{lock}")
        return 0

    if command == "remove-unmanaged":
        removed = app.lifecycle.remove_unmanaged()
        print(f"已删除: {', '.join(removed)}" if removed else "没有未管理的插件")
        return 0

    if command == "lock":
        app.lock(args.plugin)
        print(f"已锁定: {args.plugin}")
        return 0

    if command == "unlock":
        app.unlock(args.plugin)
        print(f"已解锁: {args.plugin}")
        return 0

    if command == "resolve":
        print(app.resolve_version(args.plugin))
        return 0

    if command == "versions":
        for version in app.lifecycle.list_versions(args.plugin):
            print(f"  {version.version}")
        return 0

    if command == "deps":
        if args.deps_command == "tree":
            tree = app.build_dependency_tree(args.plugin, args.soft)
            _print_tree(tree.root)
            if tree.missing_required:
                print(f"缺失必需依赖: {', '.join(tree.missing_required)}")
            return 1 if tree.missing_required else 0
        if args.deps_command == "check":
            missing = app.analyzer.check_missing_dependencies(args.plugin)
            for name, deps in missing.items():
                print(f"  {name}: {', '.join(deps)}")
            if not missing:
                print("没有缺失的依赖")
            return 1 if missing else 0
        if args.deps_command == "reverse":
            for name in app.analyzer.get_reverse_dependencies(args.plugin):
                print(f"  {name}")
            return 0
        if args.deps_command == "order":
            for name in app.analyzer.get_load_order():
                print(f"  {name}")
            return 0

    return 1


def main(argv: Optional[List[str]] = None) -> None:
    """命令行主入口"""
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    root = Path(args.root) if args.root else get_project_root()

    try:
        with MpmApplication.create(root) as app:
            code = _run(app, args)
        sys.exit(code)
    except MpmException as e:
        print(f"错误: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n用户中断", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
