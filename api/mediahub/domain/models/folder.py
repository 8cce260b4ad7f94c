import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class Folder(BaseModel):
    """媒体文件夹领域模型，层级通过parent_id扁平存储，path为物化路径"""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))  # 文件夹id
    name: str  # 文件夹名字，同一父级下唯一
    description: Optional[str] = None  # 文件夹描述
    parent_id: Optional[str] = None  # 父文件夹id，为空表示根级
    path: str = ""  # 物化路径，由祖先名字拼接得到
    is_public: bool = False  # 是否公开
    creator_id: Optional[str] = None  # 创建者用户ID
    updated_at: datetime = Field(default_factory=datetime.now)  # 更新时间
    created_at: datetime = Field(default_factory=datetime.now)  # 创建时间

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


class FolderNode(BaseModel):
    """层级视图中的文件夹节点，仅持有直接子节点"""

    id: str
    name: str
    description: Optional[str] = None
    parent_id: Optional[str] = None
    path: str = ""
    is_public: bool = False
    creator_id: Optional[str] = None
    created_at: datetime
    file_count: int = 0  # 直接包含的文件数
    children: List["FolderNode"] = Field(default_factory=list)

    @classmethod
    def from_folder(cls, folder: Folder, file_count: int = 0) -> "FolderNode":
        return cls(
            id=folder.id,
            name=folder.name,
            description=folder.description,
            parent_id=folder.parent_id,
            path=folder.path,
            is_public=folder.is_public,
            creator_id=folder.creator_id,
            created_at=folder.created_at,
            file_count=file_count,
        )


class FolderDeleteSummary(BaseModel):
    """删除文件夹的结果汇总"""

    deleted_folders: List[str] = Field(default_factory=list)  # 被删除的文件夹id
    deleted_files: List[str] = Field(default_factory=list)  # 被删除的文件id
