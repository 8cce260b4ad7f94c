import logging
import os.path
import uuid
from datetime import datetime
from typing import BinaryIO, Callable, List, Optional, Tuple

from core.config import Settings, get_settings
from mediahub.application.errors.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
)
from mediahub.domain.external.file_storage import FileStorage
from mediahub.domain.models.file import (
    File,
    FilePage,
    FileQuery,
    MediaStats,
    Pagination,
    ProcessingStatus,
)
from mediahub.domain.repositories.uow import IUnitOfWork
from mediahub.domain.services.image_optimizer import probe_dimensions

logger = logging.getLogger(__name__)

COPY_SUFFIX = " (copy)"


class FileService:
    """媒体文件服务，维护文件元数据及其与文件夹的关联"""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        file_storage: FileStorage,
        settings: Optional[Settings] = None,
    ) -> None:
        """构造函数，完成文件服务的初始化"""
        self.file_storage = file_storage
        self._uow_factory = uow_factory
        self._settings = settings or get_settings()

    @staticmethod
    async def _get_file(uow: IUnitOfWork, file_id: str) -> File:
        file = await uow.file.get_by_id(file_id)
        if not file:
            raise NotFoundError(f"该文件[{file_id}]不存在")
        return file

    @staticmethod
    async def _ensure_folder(uow: IUnitOfWork, folder_id: Optional[str]) -> None:
        if folder_id is not None and not await uow.folder.get_by_id(folder_id):
            raise NotFoundError(f"该文件夹[{folder_id}]不存在")

    async def ensure_folder(self, folder_id: Optional[str]) -> None:
        """校验文件夹存在，folder_id为空表示未归档，直接通过"""
        async with self._uow_factory() as uow:
            await self._ensure_folder(uow, folder_id)

    def _validate_query(self, query: FileQuery) -> None:
        if query.page < 1:
            raise ValidationError("页码必须大于等于1")
        if query.limit < 1 or query.limit > self._settings.media_page_max_limit:
            raise ValidationError(
                f"每页数量必须在1到{self._settings.media_page_max_limit}之间"
            )
        if query.folder_id is not None and query.unfiled:
            raise ValidationError("folder_id与unfiled不能同时指定")

    async def list_files(self, query: FileQuery) -> FilePage:
        """按条件分页查询文件，相同排序值时按id升序"""
        self._validate_query(query)
        async with self._uow_factory() as uow:
            await self._ensure_folder(uow, query.folder_id)
            items, total = await uow.file.list_page(query)
        return FilePage(
            items=items,
            pagination=Pagination.build(query.page, query.limit, total),
        )

    async def get_file(self, file_id: str) -> File:
        async with self._uow_factory() as uow:
            return await self._get_file(uow, file_id)

    async def reassign_folder(self, file_id: str, folder_id: Optional[str]) -> File:
        """将文件移动到指定文件夹，folder_id为空表示移出为未归档"""
        async with self._uow_factory() as uow:
            file = await self._get_file(uow, file_id)
            await self._ensure_folder(uow, folder_id)
            file.folder_id = folder_id
            file.updated_at = datetime.now()
            await uow.file.save(file)
        logger.info(f"文件[{file_id}]移动到文件夹[{folder_id}]")
        return file

    async def mark_status(self, file_id: str, status: ProcessingStatus) -> File:
        """更新文件处理状态，状态仅作提示，不校验流转是否合法"""
        async with self._uow_factory() as uow:
            file = await self._get_file(uow, file_id)
            file.processing_status = status
            file.updated_at = datetime.now()
            await uow.file.save(file)
        return file

    async def update_file(
        self,
        file_id: str,
        alt: Optional[str] = None,
        caption: Optional[str] = None,
        description: Optional[str] = None,
    ) -> File:
        """更新文件的展示信息"""
        async with self._uow_factory() as uow:
            file = await self._get_file(uow, file_id)
            if alt is not None:
                file.alt = alt
            if caption is not None:
                file.caption = caption
            if description is not None:
                file.description = description
            file.updated_at = datetime.now()
            await uow.file.save(file)
        return file

    async def add_tags(self, file_id: str, tags: List[str]) -> File:
        """为文件追加标签，已有标签保持原顺序"""
        cleaned = [tag.strip() for tag in tags if tag and tag.strip()]
        if not cleaned:
            raise ValidationError("标签列表不能为空")

        async with self._uow_factory() as uow:
            file = await self._get_file(uow, file_id)
            file.tags = list(dict.fromkeys([*file.tags, *cleaned]))
            file.updated_at = datetime.now()
            await uow.file.save(file)
        return file

    def _validate_upload(self, original_name: str, mime_type: str, size: int) -> None:
        if not original_name:
            raise ValidationError("文件名不能为空")
        if size <= 0:
            raise ValidationError("不能上传空文件")
        if size > self._settings.media_upload_max_size:
            raise ValidationError(
                f"文件大小超过限制({self._settings.media_upload_max_size} bytes)"
            )
        if not any(mime_type.startswith(prefix) for prefix in self._settings.allowed_mime_prefixes):
            raise ValidationError(f"不支持的文件类型: {mime_type or 'unknown'}")

    async def upload_file(
        self,
        data: bytes,
        original_name: str,
        mime_type: str,
        uploader_id: Optional[str] = None,
        folder_id: Optional[str] = None,
    ) -> File:
        """上传文件到对象存储并登记文件记录"""
        mime_type = (mime_type or "").lower()
        self._validate_upload(original_name, mime_type, len(data))

        # 1.校验目标文件夹与重复上传
        async with self._uow_factory() as uow:
            await self._ensure_folder(uow, folder_id)
            duplicate = await uow.file.find_duplicate(original_name, len(data), uploader_id)
        if duplicate:
            raise ConflictError(
                f"文件[{original_name}]已上传过",
                data={"file_id": duplicate.id},
            )

        # 2.生成随机的uuid作为文件id并拼接日期路径
        file_id = str(uuid.uuid4())
        _, file_extension = os.path.splitext(original_name)
        filename = f"{file_id}{file_extension.lower()}"
        object_name = f"{datetime.now().strftime('%Y/%m/%d')}/{filename}"

        # 3.图片类型读取尺寸，读取失败时仍然允许上传
        dimensions = probe_dimensions(data) if mime_type.startswith("image/") else None

        # 4.上传到对象存储
        url = await self.file_storage.upload_bytes(data, object_name, content_type=mime_type)

        # 5.登记文件记录
        file = File(
            id=file_id,
            filename=filename,
            original_name=original_name,
            mime_type=mime_type,
            size_bytes=len(data),
            url=url,
            key=object_name,
            folder_id=folder_id,
            uploader_id=uploader_id,
            dimensions=dimensions,
            processing_status=ProcessingStatus.PENDING,
        )
        try:
            async with self._uow_factory() as uow:
                await uow.file.save(file)
        except Exception:
            logger.error(f"登记文件[{original_name}]失败，清理已上传的对象")
            await self.file_storage.delete_object(object_name)
            raise

        logger.info(f"文件上传成功: {original_name} (ID: {file_id})")
        return file

    async def download_file(self, file_id: str) -> Tuple[BinaryIO, File]:
        """根据传递的文件id下载文件"""
        file = await self.get_file(file_id)
        return await self.file_storage.download_file(file), file

    async def get_download_url(self, file_id: str) -> str:
        """生成文件的临时下载地址"""
        file = await self.get_file(file_id)
        return await self.file_storage.presigned_url(file.key)

    async def delete_file(self, file_id: str) -> None:
        """先删除文件记录，再删除存储对象"""
        async with self._uow_factory() as uow:
            file = await self._get_file(uow, file_id)
            await uow.file.delete(file_id)

        # 记录已删除，存储对象清理失败只记录警告
        if file.key:
            try:
                await self.file_storage.delete_object(file.key)
            except Exception as e:
                logger.warning(f"清理文件[{file_id}]的存储对象失败: {str(e)}")
        logger.info(f"文件删除成功: {file.original_name} (ID: {file_id})")

    async def copy_file(self, file_id: str) -> File:
        """复制文件：生成新的存储对象和文件记录，保留所在文件夹"""
        source = await self.get_file(file_id)

        new_id = str(uuid.uuid4())
        _, file_extension = os.path.splitext(source.filename or source.original_name)
        filename = f"{new_id}{file_extension}"
        object_name = f"{datetime.now().strftime('%Y/%m/%d')}/{filename}"
        url = await self.file_storage.copy_object(source.key, object_name)

        name, extension = os.path.splitext(source.original_name)
        now = datetime.now()
        copied = source.model_copy(
            update={
                "id": new_id,
                "filename": filename,
                "original_name": f"{name}{COPY_SUFFIX}{extension}",
                "url": url,
                "key": object_name,
                "tags": list(source.tags),
                "created_at": now,
                "updated_at": now,
            },
            deep=True,
        )
        async with self._uow_factory() as uow:
            await uow.file.save(copied)
        logger.info(f"文件复制成功: {source.id} -> {new_id}")
        return copied

    async def get_stats(self) -> MediaStats:
        async with self._uow_factory() as uow:
            return await uow.file.stats()
