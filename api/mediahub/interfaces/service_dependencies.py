import logging
from functools import lru_cache
from typing import Callable

from core.config import get_settings
from fastapi import Depends
from mediahub.application.services.bulk_operation_service import (
    BulkOperationCoordinator,
    SelectionGuard,
)
from mediahub.application.services.file_service import FileService
from mediahub.application.services.folder_service import FolderService
from mediahub.application.services.image_service import ImageService
from mediahub.application.services.media_selection_service import MediaSelectionService
from mediahub.domain.external.file_storage import FileStorage
from mediahub.domain.repositories.uow import IUnitOfWork
from mediahub.infrastructure.external.file_storage.minio_file_storage import (
    MinioFileStorage,
)
from mediahub.infrastructure.storage.memory import get_memory_uow
from mediahub.infrastructure.storage.minio import MinioStore, get_minio
from mediahub.infrastructure.storage.postgres import get_uow

logger = logging.getLogger(__name__)
settings = get_settings()


def get_uow_factory() -> Callable[[], IUnitOfWork]:
    """根据配置选择数据仓库后端"""
    if settings.media_repository_backend == "memory":
        return get_memory_uow
    return get_uow


def get_file_storage(
    minio_store: MinioStore = Depends(get_minio),
) -> FileStorage:
    return MinioFileStorage(bucket=settings.minio_bucket_name, minio_store=minio_store)


@lru_cache()
def get_selection_guard() -> SelectionGuard:
    """进程内共享的批量操作选择标记"""
    return SelectionGuard()


def get_folder_service(
    uow_factory: Callable[[], IUnitOfWork] = Depends(get_uow_factory),
    file_storage: FileStorage = Depends(get_file_storage),
) -> FolderService:
    return FolderService(uow_factory=uow_factory, file_storage=file_storage)


def get_file_service(
    uow_factory: Callable[[], IUnitOfWork] = Depends(get_uow_factory),
    file_storage: FileStorage = Depends(get_file_storage),
) -> FileService:
    return FileService(uow_factory=uow_factory, file_storage=file_storage)


def get_image_service(
    file_service: FileService = Depends(get_file_service),
    file_storage: FileStorage = Depends(get_file_storage),
) -> ImageService:
    return ImageService(file_service=file_service, file_storage=file_storage)


def get_bulk_operation_coordinator(
    file_service: FileService = Depends(get_file_service),
    guard: SelectionGuard = Depends(get_selection_guard),
) -> BulkOperationCoordinator:
    return BulkOperationCoordinator(file_service=file_service, guard=guard)


def get_media_selection_service(
    folder_service: FolderService = Depends(get_folder_service),
) -> MediaSelectionService:
    return MediaSelectionService(folder_service=folder_service)
