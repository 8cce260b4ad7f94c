from typing import List, Optional, Protocol

from mediahub.domain.models.folder import Folder


class FolderRepository(Protocol):
    """文件夹模型数据仓库"""

    async def save(self, folder: Folder) -> None:
        """新增或更新文件夹信息"""
        ...

    async def save_all(self, folders: List[Folder]) -> None:
        """批量新增或更新文件夹，用于路径整体重算"""
        ...

    async def get_by_id(self, folder_id: str) -> Optional[Folder]:
        """根据文件夹id获取文件夹信息"""
        ...

    async def list_all(self) -> List[Folder]:
        """获取全部文件夹(扁平列表)"""
        ...

    async def list_children(self, parent_id: Optional[str]) -> List[Folder]:
        """获取指定父级下的直接子文件夹，parent_id为空时返回根文件夹"""
        ...

    async def find_child_by_name(
        self, parent_id: Optional[str], name: str
    ) -> Optional[Folder]:
        """在同一父级下按名字查找文件夹"""
        ...

    async def delete_many(self, folder_ids: List[str]) -> None:
        """批量删除文件夹记录"""
        ...
