import io
import logging
from typing import BinaryIO, Optional

from mediahub.domain.external.file_storage import FileStorage
from mediahub.domain.models.file import File
from mediahub.infrastructure.storage.minio import MinioStore

logger = logging.getLogger(__name__)


class MinioFileStorage(FileStorage):
    """基于MinIO的文件存储扩展，只负责对象读写，元数据由应用服务维护"""

    def __init__(self, bucket: str, minio_store: MinioStore) -> None:
        """构造函数，完成MinIO文件存储扩展初始化"""
        self.bucket = bucket
        self.minio_store = minio_store

    async def upload_bytes(
        self,
        data: bytes,
        object_name: str,
        content_type: Optional[str] = None,
    ) -> str:
        """将二进制数据上传到MinIO并返回访问地址"""
        try:
            await self.minio_store.upload_fileobj(
                bucket_name=self.bucket,
                object_name=object_name,
                data=io.BytesIO(data),
                length=len(data),
                content_type=content_type,
            )
            logger.info(f"对象上传成功: {object_name} ({len(data)} bytes)")
            return self.minio_store.object_url(self.bucket, object_name)
        except Exception as e:
            logger.error(f"上传对象[{object_name}]失败: {str(e)}")
            raise

    async def download_file(self, file: File) -> BinaryIO:
        """根据文件记录中的key下载文件"""
        try:
            return await self.minio_store.download_fileobj(
                bucket_name=self.bucket,
                object_name=file.key,
            )
        except Exception as e:
            logger.error(f"下载文件[{file.id}]失败: {str(e)}")
            raise

    async def delete_object(self, object_name: str) -> None:
        """从MinIO中删除对象"""
        try:
            await self.minio_store.delete_object(
                bucket_name=self.bucket,
                object_name=object_name,
            )
            logger.info(f"对象删除成功: {object_name}")
        except Exception as e:
            logger.error(f"删除对象[{object_name}]失败: {str(e)}")
            raise

    async def copy_object(self, source_object: str, target_object: str) -> str:
        await self.minio_store.copy_object(
            bucket_name=self.bucket,
            source_object=source_object,
            target_object=target_object,
        )
        return self.minio_store.object_url(self.bucket, target_object)

    async def presigned_url(self, object_name: str) -> str:
        return await self.minio_store.presigned_get_url(
            bucket_name=self.bucket,
            object_name=object_name,
            expiry_seconds=self.minio_store.settings.minio_presigned_expiry_seconds,
        )
