from typing import Dict, List, Optional, Tuple

from mediahub.domain.models.file import File, FileQuery, MediaStats, SortField, SortOrder
from mediahub.domain.repositories.file_repository import FileRepository
from mediahub.infrastructure.models import FileModel
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

# 排序字段到数据列的映射
SORT_COLUMNS = {
    SortField.NAME: FileModel.original_name,
    SortField.SIZE: FileModel.size_bytes,
    SortField.CREATED_AT: FileModel.created_at,
    SortField.TYPE: FileModel.mime_type,
}


class DBFileRepository(FileRepository):
    """基于数据库的文件数据仓库"""

    def __init__(self, db_session: AsyncSession) -> None:
        """构造函数，完成数据仓库初始化"""
        self.db_session = db_session

    async def save(self, file: File) -> None:
        """根据传递的文件模型存储or更新数据"""
        # 1.根据id查询记录是否存在
        stmt = select(FileModel).where(FileModel.id == file.id)
        result = await self.db_session.execute(stmt)
        record = result.scalar_one_or_none()

        # 2.判断如果文件不存在则新建文件
        if not record:
            record = FileModel.from_domain(file)
            self.db_session.add(record)
            return

        # 3.文件存在则直接更新文件
        record.update_from_domain(file)

    async def get_by_id(self, file_id: str) -> Optional[File]:
        """根据传递的文件id获取文件信息"""
        stmt = select(FileModel).where(FileModel.id == file_id)
        result = await self.db_session.execute(stmt)
        record = result.scalar_one_or_none()
        return record.to_domain() if record is not None else None

    async def delete(self, file_id: str) -> None:
        """根据传递的文件id删除文件记录"""
        await self.db_session.execute(delete(FileModel).where(FileModel.id == file_id))

    async def delete_many(self, file_ids: List[str]) -> None:
        """批量删除文件记录"""
        if not file_ids:
            return
        await self.db_session.execute(delete(FileModel).where(FileModel.id.in_(file_ids)))

    async def list_page(self, query: FileQuery) -> Tuple[List[File], int]:
        """按条件分页查询文件，排序相同时按id升序保证结果稳定"""
        # 1.组装过滤条件
        stmt = select(FileModel)
        if query.folder_id is not None:
            stmt = stmt.where(FileModel.folder_id == query.folder_id)
        elif query.unfiled:
            stmt = stmt.where(FileModel.folder_id.is_(None))
        if query.query:
            stmt = stmt.where(FileModel.original_name.icontains(query.query, autoescape=True))
        if query.mime_type_prefix:
            stmt = stmt.where(
                FileModel.mime_type.startswith(query.mime_type_prefix, autoescape=True)
            )
        if query.uploader_id:
            stmt = stmt.where(FileModel.uploader_id == query.uploader_id)

        # 2.统计总数
        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self.db_session.execute(count_stmt)).scalar_one()

        # 3.排序并分页
        column = SORT_COLUMNS[query.sort_field]
        order = column.asc() if query.sort_order == SortOrder.ASC else column.desc()
        stmt = (
            stmt.order_by(order, FileModel.id.asc())
            .offset((query.page - 1) * query.limit)
            .limit(query.limit)
        )
        result = await self.db_session.execute(stmt)
        return [record.to_domain() for record in result.scalars().all()], total

    async def list_by_folders(self, folder_ids: List[str]) -> List[File]:
        """获取指定文件夹中的全部文件"""
        if not folder_ids:
            return []
        stmt = select(FileModel).where(FileModel.folder_id.in_(folder_ids))
        result = await self.db_session.execute(stmt)
        return [record.to_domain() for record in result.scalars().all()]

    async def count_by_folder(self) -> Dict[str, int]:
        """统计每个文件夹直接包含的文件数"""
        stmt = (
            select(FileModel.folder_id, func.count(FileModel.id))
            .where(FileModel.folder_id.is_not(None))
            .group_by(FileModel.folder_id)
        )
        result = await self.db_session.execute(stmt)
        return {folder_id: count for folder_id, count in result.all()}

    async def find_duplicate(
        self, original_name: str, size_bytes: int, uploader_id: Optional[str]
    ) -> Optional[File]:
        """查找同一用户上传的同名同大小文件"""
        stmt = select(FileModel).where(
            FileModel.original_name == original_name,
            FileModel.size_bytes == size_bytes,
        )
        if uploader_id is None:
            stmt = stmt.where(FileModel.uploader_id.is_(None))
        else:
            stmt = stmt.where(FileModel.uploader_id == uploader_id)
        result = await self.db_session.execute(stmt.limit(1))
        record = result.scalar_one_or_none()
        return record.to_domain() if record is not None else None

    async def stats(self) -> MediaStats:
        """统计文件总数、总大小及按mime主类型的分布"""
        totals_stmt = select(
            func.count(FileModel.id), func.coalesce(func.sum(FileModel.size_bytes), 0)
        )
        total_files, total_size = (await self.db_session.execute(totals_stmt)).one()

        major_type = func.split_part(FileModel.mime_type, "/", 1)
        types_stmt = select(major_type, func.count(FileModel.id)).group_by(major_type)
        result = await self.db_session.execute(types_stmt)
        return MediaStats(
            total_files=total_files,
            total_size=int(total_size),
            file_types={kind or "unknown": count for kind, count in result.all()},
        )
