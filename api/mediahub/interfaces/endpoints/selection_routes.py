import logging

from fastapi import APIRouter, Depends
from mediahub.application.services.media_selection_service import MediaSelectionService
from mediahub.domain.models.media_selection import MediaSelectionState
from mediahub.interfaces.dependencies import CurrentUser
from mediahub.interfaces.schemas import Response
from mediahub.interfaces.schemas.selection import (
    SelectionEventRequest,
    SelectionNavigateRequest,
)
from mediahub.interfaces.service_dependencies import get_media_selection_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/selection", tags=["界面状态模块"])


@router.post(
    path="/events",
    response_model=Response[MediaSelectionState],
    summary="计算界面状态",
    description="将事件应用到客户端当前的选择/视图状态上，返回新的状态，服务端不保存状态",
)
async def dispatch_event(
    request: SelectionEventRequest,
    current_user: CurrentUser,
    selection_service: MediaSelectionService = Depends(get_media_selection_service),
) -> Response[MediaSelectionState]:
    state = selection_service.dispatch(request.state, request.event)
    return Response.success(msg="界面状态更新成功", data=state)


@router.post(
    path="/navigate",
    response_model=Response[MediaSelectionState],
    summary="进入文件夹",
    description="加载目标文件夹的完整祖先链作为面包屑，并清空当前选择",
)
async def navigate(
    request: SelectionNavigateRequest,
    current_user: CurrentUser,
    selection_service: MediaSelectionService = Depends(get_media_selection_service),
) -> Response[MediaSelectionState]:
    state = await selection_service.navigate(request.state, request.folder_id)
    return Response.success(msg="进入文件夹成功", data=state)
