from typing import List, Optional

from mediahub.domain.models.folder import Folder
from mediahub.domain.repositories.folder_repository import FolderRepository
from mediahub.infrastructure.models import FolderModel
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession


class DBFolderRepository(FolderRepository):
    """基于数据库的文件夹数据仓库"""

    def __init__(self, db_session: AsyncSession) -> None:
        """构造函数，完成数据仓库初始化"""
        self.db_session = db_session

    async def save(self, folder: Folder) -> None:
        """根据传递的文件夹模型存储or更新数据"""
        # 1.根据id查询记录是否存在
        stmt = select(FolderModel).where(FolderModel.id == folder.id)
        result = await self.db_session.execute(stmt)
        record = result.scalar_one_or_none()

        # 2.记录不存在则新建，存在则更新
        if not record:
            self.db_session.add(FolderModel.from_domain(folder))
            return
        record.update_from_domain(folder)

    async def save_all(self, folders: List[Folder]) -> None:
        """批量更新文件夹，一次查询出所有已存在的记录"""
        if not folders:
            return
        stmt = select(FolderModel).where(FolderModel.id.in_([f.id for f in folders]))
        result = await self.db_session.execute(stmt)
        records = {record.id: record for record in result.scalars().all()}

        for folder in folders:
            record = records.get(folder.id)
            if record is None:
                self.db_session.add(FolderModel.from_domain(folder))
            else:
                record.update_from_domain(folder)

    async def get_by_id(self, folder_id: str) -> Optional[Folder]:
        """根据文件夹id获取文件夹信息"""
        stmt = select(FolderModel).where(FolderModel.id == folder_id)
        result = await self.db_session.execute(stmt)
        record = result.scalar_one_or_none()
        return record.to_domain() if record is not None else None

    async def list_all(self) -> List[Folder]:
        """获取全部文件夹"""
        stmt = select(FolderModel).order_by(FolderModel.name.asc(), FolderModel.id.asc())
        result = await self.db_session.execute(stmt)
        return [record.to_domain() for record in result.scalars().all()]

    async def list_children(self, parent_id: Optional[str]) -> List[Folder]:
        """获取直接子文件夹"""
        condition = (
            FolderModel.parent_id.is_(None)
            if parent_id is None
            else FolderModel.parent_id == parent_id
        )
        stmt = (
            select(FolderModel)
            .where(condition)
            .order_by(FolderModel.name.asc(), FolderModel.id.asc())
        )
        result = await self.db_session.execute(stmt)
        return [record.to_domain() for record in result.scalars().all()]

    async def find_child_by_name(
        self, parent_id: Optional[str], name: str
    ) -> Optional[Folder]:
        """在同一父级下按名字查找文件夹"""
        condition = (
            FolderModel.parent_id.is_(None)
            if parent_id is None
            else FolderModel.parent_id == parent_id
        )
        stmt = select(FolderModel).where(condition, FolderModel.name == name).limit(1)
        result = await self.db_session.execute(stmt)
        record = result.scalar_one_or_none()
        return record.to_domain() if record is not None else None

    async def delete_many(self, folder_ids: List[str]) -> None:
        """批量删除文件夹记录"""
        if not folder_ids:
            return
        await self.db_session.execute(
            delete(FolderModel).where(FolderModel.id.in_(folder_ids))
        )
