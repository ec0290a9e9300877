# -*- coding: utf-8 -*-
"""
仓库文件模型

仓库文件描述一个插件可以从哪些目录获取，按优先级排列候选源。
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RepositoryConfig(BaseModel):
    """单个候选源"""

    model_config = ConfigDict(populate_by_name=True)

    type: str = Field(..., description="目录类型，如 github、modrinth")
    repository_id: str = Field(..., alias="id", description="目录内的插件 ID")
    version_pattern: Optional[str] = Field(
        default=None, alias="versionModifier", description="从原始版本中提取版本号的正则"
    )
    download_url: Optional[str] = Field(default=None, alias="downloadUrl")
    file_name_pattern: Optional[str] = Field(
        default=None, alias="fileNameRegex", description="选择下载文件的正则"
    )
    file_name_template: Optional[str] = Field(
        default=None, alias="fileNameTemplate", description="安装后的文件名模板"
    )

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        if not v or not v.strip():
            raise ValueError("仓库类型不能为空")
        return v.strip().lower()


class RepositoryFile(BaseModel):
    """一个插件的仓库文件"""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="插件名称")
    website: Optional[str] = None
    source: Optional[str] = None
    license: Optional[str] = None
    repositories: List[RepositoryConfig] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)

    @property
    def primary(self) -> Optional[RepositoryConfig]:
        """第一个候选源为权威源"""
        return self.repositories[0] if self.repositories else None
