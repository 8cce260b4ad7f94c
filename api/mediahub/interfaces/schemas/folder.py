from typing import Optional

from pydantic import BaseModel, Field


class CreateFolderRequest(BaseModel):
    """创建文件夹请求结构"""

    name: str = Field(min_length=1)  # 文件夹名字
    parent_id: Optional[str] = None  # 父文件夹id，为空表示根级
    description: Optional[str] = None
    is_public: bool = False


class UpdateFolderRequest(BaseModel):
    """更新文件夹请求结构，未传递的字段保持不变"""

    name: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = None


class MoveFolderRequest(BaseModel):
    """移动文件夹请求结构"""

    parent_id: Optional[str] = None  # 目标父文件夹id，为空表示移动为根文件夹
