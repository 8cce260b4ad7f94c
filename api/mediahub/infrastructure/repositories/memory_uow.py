"""基于进程内存的数据仓库实现

每个UoW在进入时拿到当前数据的快照，变更只记录在快照上，提交时在一次同步操作中
整体替换共享数据，读者要么看到变更前的层级，要么看到变更后的层级。
"""

from typing import Dict, Generic, List, Optional, Set, Tuple, TypeVar

from mediahub.domain.models.file import File, FileQuery, MediaStats, SortField, SortOrder
from mediahub.domain.models.folder import Folder
from mediahub.domain.repositories.file_repository import FileRepository
from mediahub.domain.repositories.folder_repository import FolderRepository
from mediahub.domain.repositories.uow import IUnitOfWork
from pydantic import BaseModel

M = TypeVar("M", bound=BaseModel)


class MemoryMediaStore:
    """进程内共享的媒体数据"""

    def __init__(self) -> None:
        self.folders: Dict[str, Folder] = {}
        self.files: Dict[str, File] = {}
        self.version = 0

    def clear(self) -> None:
        self.folders = {}
        self.files = {}
        self.version += 1


class _StagedTable(Generic[M]):
    """记录一张表在当前事务中的新增/更新/删除"""

    def __init__(self, rows: Dict[str, M]) -> None:
        self.rows: Dict[str, M] = dict(rows)
        self.upserted: Set[str] = set()
        self.deleted: Set[str] = set()

    def get(self, row_id: str) -> Optional[M]:
        row = self.rows.get(row_id)
        return row.model_copy(deep=True) if row is not None else None

    def values(self) -> List[M]:
        return [row.model_copy(deep=True) for row in self.rows.values()]

    def put(self, row_id: str, row: M) -> None:
        self.rows[row_id] = row.model_copy(deep=True)
        self.upserted.add(row_id)
        self.deleted.discard(row_id)

    def remove(self, row_id: str) -> None:
        self.rows.pop(row_id, None)
        self.deleted.add(row_id)
        self.upserted.discard(row_id)

    def apply_to(self, target: Dict[str, M]) -> Dict[str, M]:
        merged = dict(target)
        for row_id in self.deleted:
            merged.pop(row_id, None)
        for row_id in self.upserted:
            merged[row_id] = self.rows[row_id]
        return merged


class MemoryFolderRepository(FolderRepository):
    """基于内存的文件夹数据仓库"""

    def __init__(self, table: _StagedTable[Folder]) -> None:
        self._table = table

    async def save(self, folder: Folder) -> None:
        self._table.put(folder.id, folder)

    async def save_all(self, folders: List[Folder]) -> None:
        for folder in folders:
            self._table.put(folder.id, folder)

    async def get_by_id(self, folder_id: str) -> Optional[Folder]:
        return self._table.get(folder_id)

    async def list_all(self) -> List[Folder]:
        return sorted(self._table.values(), key=lambda f: (f.name, f.id))

    async def list_children(self, parent_id: Optional[str]) -> List[Folder]:
        children = [f for f in self._table.values() if f.parent_id == parent_id]
        return sorted(children, key=lambda f: (f.name, f.id))

    async def find_child_by_name(
        self, parent_id: Optional[str], name: str
    ) -> Optional[Folder]:
        for folder in self._table.values():
            if folder.parent_id == parent_id and folder.name == name:
                return folder
        return None

    async def delete_many(self, folder_ids: List[str]) -> None:
        for folder_id in folder_ids:
            self._table.remove(folder_id)


def _sort_key(file: File, sort_field: SortField):
    if sort_field == SortField.NAME:
        return file.original_name
    if sort_field == SortField.SIZE:
        return file.size_bytes
    if sort_field == SortField.TYPE:
        return file.mime_type
    return file.created_at


class MemoryFileRepository(FileRepository):
    """基于内存的文件数据仓库"""

    def __init__(self, table: _StagedTable[File]) -> None:
        self._table = table

    async def save(self, file: File) -> None:
        self._table.put(file.id, file)

    async def get_by_id(self, file_id: str) -> Optional[File]:
        return self._table.get(file_id)

    async def delete(self, file_id: str) -> None:
        self._table.remove(file_id)

    async def delete_many(self, file_ids: List[str]) -> None:
        for file_id in file_ids:
            self._table.remove(file_id)

    async def list_page(self, query: FileQuery) -> Tuple[List[File], int]:
        files = self._table.values()
        if query.folder_id is not None:
            files = [f for f in files if f.folder_id == query.folder_id]
        elif query.unfiled:
            files = [f for f in files if f.folder_id is None]
        if query.query:
            needle = query.query.lower()
            files = [f for f in files if needle in f.original_name.lower()]
        if query.mime_type_prefix:
            files = [f for f in files if f.mime_type.startswith(query.mime_type_prefix)]
        if query.uploader_id:
            files = [f for f in files if f.uploader_id == query.uploader_id]

        # 先按id升序，再利用稳定排序按目标字段排序，保证相同值时id升序
        files.sort(key=lambda f: f.id)
        files.sort(
            key=lambda f: _sort_key(f, query.sort_field),
            reverse=query.sort_order == SortOrder.DESC,
        )
        offset = (query.page - 1) * query.limit
        return files[offset : offset + query.limit], len(files)

    async def list_by_folders(self, folder_ids: List[str]) -> List[File]:
        targets = set(folder_ids)
        return [f for f in self._table.values() if f.folder_id in targets]

    async def count_by_folder(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for file in self._table.values():
            if file.folder_id is not None:
                counts[file.folder_id] = counts.get(file.folder_id, 0) + 1
        return counts

    async def find_duplicate(
        self, original_name: str, size_bytes: int, uploader_id: Optional[str]
    ) -> Optional[File]:
        for file in self._table.values():
            if (
                file.original_name == original_name
                and file.size_bytes == size_bytes
                and file.uploader_id == uploader_id
            ):
                return file
        return None

    async def stats(self) -> MediaStats:
        stats = MediaStats()
        for file in self._table.values():
            stats.total_files += 1
            stats.total_size += file.size_bytes
            kind = file.mime_type.split("/", 1)[0] or "unknown"
            stats.file_types[kind] = stats.file_types.get(kind, 0) + 1
        return stats


class MemoryUnitOfWork(IUnitOfWork):
    """基于内存快照的UoW实例"""

    def __init__(self, store: MemoryMediaStore) -> None:
        self.store = store
        self._folders: Optional[_StagedTable[Folder]] = None
        self._files: Optional[_StagedTable[File]] = None

    async def commit(self):
        """将暂存的变更一次性替换到共享数据中"""
        folders = self._folders.apply_to(self.store.folders)
        files = self._files.apply_to(self.store.files)
        self.store.folders = folders
        self.store.files = files
        self.store.version += 1
        self._begin()

    async def rollback(self):
        """丢弃暂存的变更"""
        self._begin()

    def _begin(self) -> None:
        self._folders = _StagedTable(self.store.folders)
        self._files = _StagedTable(self.store.files)
        self.folder = MemoryFolderRepository(self._folders)
        self.file = MemoryFileRepository(self._files)

    async def __aenter__(self) -> "MemoryUnitOfWork":
        self._begin()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            await self.rollback()
        else:
            await self.commit()
