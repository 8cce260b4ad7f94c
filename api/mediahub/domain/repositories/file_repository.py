from typing import Dict, List, Optional, Protocol, Tuple

from mediahub.domain.models.file import File, FileQuery, MediaStats


class FileRepository(Protocol):
    """文件模型数据仓库"""

    async def save(self, file: File) -> None:
        """新增或更新文件信息"""
        ...

    async def get_by_id(self, file_id: str) -> Optional[File]:
        """根据传递的文件id获取文件信息"""
        ...

    async def delete(self, file_id: str) -> None:
        """根据传递的文件id删除文件记录"""
        ...

    async def delete_many(self, file_ids: List[str]) -> None:
        """批量删除文件记录"""
        ...

    async def list_page(self, query: FileQuery) -> Tuple[List[File], int]:
        """按条件分页查询文件，返回当前页数据和总数"""
        ...

    async def list_by_folders(self, folder_ids: List[str]) -> List[File]:
        """获取指定文件夹中的全部文件"""
        ...

    async def count_by_folder(self) -> Dict[str, int]:
        """统计每个文件夹直接包含的文件数"""
        ...

    async def find_duplicate(
        self, original_name: str, size_bytes: int, uploader_id: Optional[str]
    ) -> Optional[File]:
        """查找同一用户上传的同名同大小文件"""
        ...

    async def stats(self) -> MediaStats:
        """统计文件总数、总大小及类型分布"""
        ...
