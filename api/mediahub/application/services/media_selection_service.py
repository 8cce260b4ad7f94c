from typing import Optional

from mediahub.application.services.folder_service import FolderService
from mediahub.domain.models.bulk import BulkOperationResult
from mediahub.domain.models.media_selection import (
    BulkCompleted,
    MediaSelectionEvent,
    MediaSelectionState,
    NavigateToFolder,
)
from mediahub.domain.services.media_selection import reduce


class MediaSelectionService:
    """媒体库界面状态服务，导航时从文件夹服务获取完整祖先链"""

    def __init__(self, folder_service: FolderService) -> None:
        self._folder_service = folder_service

    def dispatch(self, state: MediaSelectionState, event: MediaSelectionEvent) -> MediaSelectionState:
        return reduce(state, event)

    async def navigate(
        self, state: MediaSelectionState, folder_id: Optional[str]
    ) -> MediaSelectionState:
        """进入文件夹，folder_id为空时回到媒体库根目录"""
        if folder_id is None:
            return reduce(state, NavigateToFolder())

        folder_path = await self._folder_service.get_folder_path(folder_id)
        return reduce(state, NavigateToFolder(folder=folder_path[-1], folder_path=folder_path))

    def apply_bulk_result(
        self, state: MediaSelectionState, result: BulkOperationResult
    ) -> MediaSelectionState:
        """批量操作结束后按结果清空或保留选择"""
        return reduce(state, BulkCompleted(result=result))
