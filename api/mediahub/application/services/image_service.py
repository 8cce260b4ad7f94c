import logging
from functools import partial
from typing import List, Optional, Sequence, Tuple

import anyio
from core.config import Settings, get_settings
from mediahub.application.errors.exceptions import ValidationError
from mediahub.application.services.file_service import FileService
from mediahub.domain.external.file_storage import FileStorage
from mediahub.domain.models.cancellation import CancellationToken
from mediahub.domain.models.file import ProcessingStatus
from mediahub.domain.models.image import (
    ImageOptimizationOptions,
    OptimizedImage,
    ResponsiveSize,
    VariantResult,
)
from mediahub.domain.services import image_optimizer

logger = logging.getLogger(__name__)


class ImageService:
    """图片处理服务：调用无状态的优化函数，并把结果交给文件存储持久化"""

    def __init__(
        self,
        file_service: FileService,
        file_storage: FileStorage,
        settings: Optional[Settings] = None,
    ) -> None:
        self._file_service = file_service
        self._file_storage = file_storage
        self._settings = settings or get_settings()

    async def optimize_upload(
        self,
        data: bytes,
        options: Optional[ImageOptimizationOptions] = None,
    ) -> Tuple[OptimizedImage, float]:
        """优化上传的图片，返回优化结果和压缩率"""
        if not data:
            raise ValidationError("图片内容不能为空")
        image = await image_optimizer.optimize_image_async(data, options)
        ratio = image_optimizer.calculate_compression_ratio(len(data), image.size_bytes)
        logger.info(
            f"图片优化完成: {image.width}x{image.height} {image.format.value}, "
            f"{image_optimizer.format_file_size(len(data))} -> "
            f"{image_optimizer.format_file_size(image.size_bytes)} ({ratio:.2f}%)"
        )
        return image, ratio

    async def _load_image(self, file_id: str) -> Tuple[bytes, str]:
        stream, file = await self._file_service.download_file(file_id)
        if not file.is_image:
            raise ValidationError(f"文件[{file_id}]不是图片类型: {file.mime_type}")
        return stream.read(), file.key

    async def generate_thumbnail(
        self,
        file_id: str,
        width: int = image_optimizer.THUMBNAIL_WIDTH,
        height: int = image_optimizer.THUMBNAIL_HEIGHT,
        options: Optional[ImageOptimizationOptions] = None,
    ) -> OptimizedImage:
        """为图片文件生成缩略图并保存到thumbnails/目录，同时维护文件的处理状态"""
        data, _ = await self._load_image(file_id)

        # 1.标记为处理中
        await self._file_service.mark_status(file_id, ProcessingStatus.PROCESSING)

        try:
            # 2.生成缩略图
            thumbnail = await anyio.to_thread.run_sync(
                partial(image_optimizer.create_thumbnail, data, width, height, options)
            )

            # 3.持久化缩略图
            object_name = f"thumbnails/{file_id}_{width}x{height}.{thumbnail.format.extension}"
            thumbnail.url = await self._file_storage.upload_bytes(
                thumbnail.encoded_data, object_name, content_type=thumbnail.format.mime_type
            )
        except Exception as e:
            # 任何失败都标记为failed后继续抛出
            await self._file_service.mark_status(file_id, ProcessingStatus.FAILED)
            logger.warning(f"文件[{file_id}]缩略图生成失败: {str(e)}")
            raise

        # 4.标记为ready
        await self._file_service.mark_status(file_id, ProcessingStatus.READY)
        return thumbnail

    async def generate_responsive_set(
        self,
        file_id: str,
        sizes: Sequence[ResponsiveSize],
        options: Optional[ImageOptimizationOptions] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[VariantResult]:
        """生成响应式尺寸集合，成功的尺寸保存到variants/{file_id}/目录，失败的尺寸只做记录"""
        if not sizes:
            raise ValidationError("至少需要一个响应式尺寸")
        data, _ = await self._load_image(file_id)

        results = await image_optimizer.generate_responsive_sizes(
            data,
            sizes,
            options,
            cancel_token=cancel_token,
            max_concurrency=self._settings.media_image_max_concurrency,
        )
        for result in results:
            if not result.ok:
                continue
            image = result.image
            object_name = f"variants/{file_id}/{result.key}.{image.format.extension}"
            try:
                image.url = await self._file_storage.upload_bytes(
                    image.encoded_data, object_name, content_type=image.format.mime_type
                )
            except Exception as e:
                logger.warning(f"保存响应式尺寸[{result.key}]失败: {str(e)}")
                result.image = None
                result.error = "storage_error"
                result.message = str(e)

        failed = [result.key for result in results if not result.ok]
        if failed:
            logger.warning(f"文件[{file_id}]部分响应式尺寸生成失败: {failed}")
        return results
