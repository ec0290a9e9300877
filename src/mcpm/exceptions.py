# -*- coding: utf-8 -*-
"""
mcpm 核心异常
"""

from typing import List, Optional


class MpmException(Exception):
    """所有 mcpm 自定义异常的基类。"""

    def __init__(self, message: str, plugin_name: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.plugin_name = plugin_name

    def __str__(self) -> str:
        return self.message


# region 插件异常


class PluginError(MpmException):
    """与插件相关的错误的基类。"""

    pass


class PluginNotFoundError(PluginError, KeyError):
    """当在清单、仓库或已安装插件中找不到指定插件时引发。"""

    def __init__(self, plugin_name: str, message: Optional[str] = None):
        super().__init__(message or f"插件不存在: {plugin_name}", plugin_name)


class PluginAlreadyExistsError(PluginError):
    """当插件已在清单中声明时引发。"""

    def __init__(self, plugin_name: str):
        super().__init__(f"插件已存在: {plugin_name}", plugin_name)


class PluginAlreadyLockedError(PluginError):
    """当锁定一个已锁定的插件时引发。"""

    def __init__(self, plugin_name: str):
        super().__init__(f"插件已被锁定: {plugin_name}", plugin_name)


class PluginNotLockedError(PluginError):
    """当解锁一个未锁定的插件时引发。"""

    def __init__(self, plugin_name: str):
        super().__init__(f"插件未被锁定: {plugin_name}", plugin_name)


class VersionResolutionError(PluginError):
    """当无法为插件解析出具体版本时引发。"""

    def __init__(self, plugin_name: str, reason: str):
        super().__init__(f"无法解析插件 {plugin_name} 的版本: {reason}", plugin_name)
        self.reason = reason


class PluginOperationError(PluginError):
    """安装、更新、移除等单插件事务失败的基类。"""

    operation = "操作"

    def __init__(self, plugin_name: str, reason: str):
        super().__init__(f"{self.operation}插件 {plugin_name} 失败: {reason}", plugin_name)
        self.reason = reason


class InstallError(PluginOperationError):
    """安装失败"""

    operation = "安装"


class UpdateError(PluginOperationError):
    """更新失败"""

    operation = "更新"


class RemoveError(PluginOperationError):
    """移除失败"""

    operation = "移除"


# endregion

# region 依赖异常


class DependencyError(MpmException):
    """依赖管理基础异常"""

    pass


class CircularDependencyError(DependencyError):
    """当 sync 链或插件依赖图中存在循环时引发。"""

    def __init__(self, cycle: List[str]):
        super().__init__(f"检测到循环依赖: {' -> '.join(cycle)}", cycle[0] if cycle else None)
        self.cycle = list(cycle)


class MissingDependencyError(DependencyError):
    """当已安装插件缺少必需依赖时引发。"""

    def __init__(self, plugin_name: str, missing: List[str]):
        super().__init__(
            f"插件 {plugin_name} 缺少必需依赖: {', '.join(missing)}", plugin_name
        )
        self.missing = list(missing)


class HasDependentsError(DependencyError):
    """当仍有其他插件依赖目标插件时引发，阻止移除。"""

    def __init__(self, plugin_name: str, dependents: List[str]):
        super().__init__(
            f"插件 {plugin_name} 仍被以下插件依赖: {', '.join(dependents)}", plugin_name
        )
        self.dependents = list(dependents)


class SyncValidationError(DependencyError):
    """sync 版本声明无效的基类。"""

    def __init__(self, plugin_name: str, target: str, message: str):
        super().__init__(message, plugin_name)
        self.target = target


class SyncTargetNotFoundError(SyncValidationError):
    """当 sync 目标未在清单中声明时引发。"""

    def __init__(self, plugin_name: str, target: str):
        super().__init__(
            plugin_name, target, f"插件 {plugin_name} 的 sync 目标不存在: {target}"
        )


class SyncTargetUnmanagedError(SyncValidationError):
    """当 sync 目标被声明为 unmanaged 时引发。"""

    def __init__(self, plugin_name: str, target: str):
        super().__init__(
            plugin_name, target, f"插件 {plugin_name} 的 sync 目标未被管理: {target}"
        )


# endregion

# region 仓库异常


class RepositoryError(MpmException):
    """与仓库和目录源相关的错误的基类。"""

    pass


class RepositoryNotFoundError(RepositoryError):
    """当任何仓库源都没有插件的仓库文件时引发。"""

    def __init__(self, plugin_name: str, message: Optional[str] = None):
        super().__init__(message or f"找不到插件的仓库文件: {plugin_name}", plugin_name)


class UnsupportedRepositoryError(RepositoryError, ValueError):
    """当仓库类型没有已注册的下载器时引发。"""

    def __init__(self, repository_type: str, plugin_name: Optional[str] = None):
        super().__init__(f"不支持的仓库类型: {repository_type}", plugin_name)
        self.repository_type = repository_type


class DownloadError(RepositoryError):
    """当下载器无法获取版本信息或文件时引发。"""

    pass


# endregion

# region 项目异常


class ProjectError(MpmException):
    """与项目文档相关的错误的基类。"""

    pass


class ProjectNotInitializedError(ProjectError, FileNotFoundError):
    """当项目文档不存在时引发。"""

    pass


class ProjectAlreadyInitializedError(ProjectError, FileExistsError):
    """当重复初始化项目时引发。"""

    pass


class ProjectConfigError(ProjectError, ValueError):
    """当项目文档格式或内容无效时引发。"""

    pass


# endregion

# region 元数据异常


class MetadataError(MpmException):
    """当元数据记录无法读取或写入时引发。"""

    pass


# endregion
