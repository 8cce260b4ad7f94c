from typing import BinaryIO, Optional, Protocol

from mediahub.domain.models.file import File


class FileStorage(Protocol):
    """文件存储桶协议，同时作为优化后图片变体的持久化协作者"""

    async def upload_bytes(
        self,
        data: bytes,
        object_name: str,
        content_type: Optional[str] = None,
    ) -> str:
        """上传二进制数据，返回对象的访问地址"""
        ...

    async def download_file(self, file: File) -> BinaryIO:
        """下载文件内容"""
        ...

    async def delete_object(self, object_name: str) -> None:
        """删除对象"""
        ...

    async def copy_object(self, source_object: str, target_object: str) -> str:
        """复制对象，返回新对象的访问地址"""
        ...

    async def presigned_url(self, object_name: str) -> str:
        """生成带签名的临时下载地址"""
        ...
