import io
import logging
from datetime import timedelta
from functools import lru_cache, partial
from typing import Any, BinaryIO, Optional

import anyio
from core.config import Settings, get_settings
from minio import Minio
from minio.commonconfig import CopySource

logger = logging.getLogger(__name__)


class MinioStore:
    """MinIO（S3兼容）对象存储"""

    def __init__(self):
        """构造函数：获取配置 + 初始化 client 占位"""
        self._settings: Settings = get_settings()
        self._client: Optional[Minio] = None

    async def init(self) -> None:
        """创建 MinIO 客户端（Minio SDK 为同步客户端，但初始化本身很轻）"""
        if self._client is not None:
            logger.warning("MinIO 对象存储已初始化，无需重复操作")
            return

        try:
            self._client = Minio(
                endpoint=self._settings.minio_endpoint,
                access_key=self._settings.minio_access_key,
                secret_key=self._settings.minio_secret_key,
                secure=self._settings.minio_secure,
                region=self._settings.minio_region,
            )
            logger.info("MinIO 对象存储初始化成功")
        except Exception as e:
            logger.error(f"MinIO 对象存储初始化失败: {str(e)}")
            raise

    async def shutdown(self) -> None:
        """关闭 MinIO 客户端（SDK 无显式 close，释放引用即可）"""
        if self._client is not None:
            self._client = None
            logger.info("关闭 MinIO 对象存储成功")

        get_minio.cache_clear()

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def client(self) -> Minio:
        """只读属性：返回 MinIO 客户端"""
        if self._client is None:
            raise RuntimeError("MinIO 未初始化，请调用 init() 完成初始化")
        return self._client

    def object_url(self, bucket_name: str, object_name: str) -> str:
        """拼接对象的公开访问地址"""
        protocol = "https" if self._settings.minio_secure else "http"
        return f"{protocol}://{self._settings.minio_endpoint}/{bucket_name}/{object_name}"

    async def _run_sync(self, fn, /, *args, **kwargs):
        return await anyio.to_thread.run_sync(partial(fn, *args, **kwargs))

    async def upload_fileobj(
        self,
        bucket_name: str,
        object_name: str,
        data: BinaryIO,
        length: int,
        content_type: str | None = None,
    ) -> dict[str, Any]:
        client = self.client
        result = await self._run_sync(
            client.put_object,
            bucket_name,
            object_name,
            data,
            length,
            content_type=content_type or "application/octet-stream",
        )
        return {
            "bucket": bucket_name,
            "object": object_name,
            "etag": getattr(result, "etag", None),
            "version_id": getattr(result, "version_id", None),
        }

    async def presigned_get_url(
        self, bucket_name: str, object_name: str, expiry_seconds: int = 3600
    ) -> str:
        client = self.client
        return await self._run_sync(
            client.presigned_get_object,
            bucket_name,
            object_name,
            expires=timedelta(seconds=expiry_seconds),
        )

    async def download_fileobj(
        self,
        bucket_name: str,
        object_name: str,
    ) -> BinaryIO:
        """从MinIO下载文件对象，返回文件流"""
        client = self.client

        def _download() -> BinaryIO:
            resp = client.get_object(bucket_name, object_name)
            # 将响应内容读取到BytesIO中，因为原始响应需要释放连接
            try:
                return io.BytesIO(resp.read())
            finally:
                resp.close()
                resp.release_conn()

        return await anyio.to_thread.run_sync(_download)

    async def copy_object(
        self,
        bucket_name: str,
        source_object: str,
        target_object: str,
    ) -> None:
        """在同一个存储桶内复制对象"""
        client = self.client
        await self._run_sync(
            client.copy_object,
            bucket_name,
            target_object,
            CopySource(bucket_name, source_object),
        )

    async def delete_object(
        self,
        bucket_name: str,
        object_name: str,
    ) -> None:
        """从MinIO删除指定对象"""
        client = self.client
        await self._run_sync(client.remove_object, bucket_name, object_name)


@lru_cache()
def get_minio() -> MinioStore:
    """lru_cache 单例：获取 MinIO 对象存储实例"""
    return MinioStore()
