import logging
from typing import List

from fastapi import APIRouter, Depends
from mediahub.application.services.folder_service import FolderService
from mediahub.domain.models.folder import Folder, FolderDeleteSummary, FolderNode
from mediahub.interfaces.dependencies import CurrentUser
from mediahub.interfaces.schemas import Response
from mediahub.interfaces.schemas.folder import (
    CreateFolderRequest,
    MoveFolderRequest,
    UpdateFolderRequest,
)
from mediahub.interfaces.service_dependencies import get_folder_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/folders", tags=["文件夹模块"])


@router.post(
    path="",
    response_model=Response[Folder],
    summary="创建文件夹",
    description="在指定父文件夹下创建文件夹，parent_id为空时创建根文件夹",
)
async def create_folder(
    request: CreateFolderRequest,
    current_user: CurrentUser,
    folder_service: FolderService = Depends(get_folder_service),
) -> Response[Folder]:
    folder = await folder_service.create_folder(
        name=request.name,
        parent_id=request.parent_id,
        creator_id=current_user.id,
        description=request.description,
        is_public=request.is_public,
    )
    return Response.success(msg="创建文件夹成功", data=folder)


@router.get(
    path="",
    response_model=Response[List[Folder]],
    summary="获取根文件夹列表",
)
async def get_root_folders(
    current_user: CurrentUser,
    folder_service: FolderService = Depends(get_folder_service),
) -> Response[List[Folder]]:
    folders = await folder_service.get_root_folders()
    return Response.success(msg="获取根文件夹成功", data=folders)


@router.get(
    path="/hierarchy",
    response_model=Response[List[FolderNode]],
    summary="获取文件夹层级",
    description="返回嵌套的文件夹树，每个节点携带直接包含的文件数",
)
async def get_hierarchy(
    current_user: CurrentUser,
    folder_service: FolderService = Depends(get_folder_service),
) -> Response[List[FolderNode]]:
    hierarchy = await folder_service.get_hierarchy()
    return Response.success(msg="获取文件夹层级成功", data=hierarchy)


@router.get(
    path="/{folder_id}",
    response_model=Response[Folder],
    summary="获取文件夹信息",
)
async def get_folder(
    folder_id: str,
    current_user: CurrentUser,
    folder_service: FolderService = Depends(get_folder_service),
) -> Response[Folder]:
    folder = await folder_service.get_folder(folder_id)
    return Response.success(msg="获取文件夹成功", data=folder)


@router.get(
    path="/{folder_id}/path",
    response_model=Response[List[Folder]],
    summary="获取文件夹完整路径",
    description="返回从根文件夹到指定文件夹的祖先链，用于面包屑导航",
)
async def get_folder_path(
    folder_id: str,
    current_user: CurrentUser,
    folder_service: FolderService = Depends(get_folder_service),
) -> Response[List[Folder]]:
    folder_path = await folder_service.get_folder_path(folder_id)
    return Response.success(msg="获取文件夹路径成功", data=folder_path)


@router.patch(
    path="/{folder_id}",
    response_model=Response[Folder],
    summary="更新文件夹",
    description="更新文件夹名字/描述/公开状态，重命名会同步更新所有子文件夹的路径",
)
async def update_folder(
    folder_id: str,
    request: UpdateFolderRequest,
    current_user: CurrentUser,
    folder_service: FolderService = Depends(get_folder_service),
) -> Response[Folder]:
    folder = await folder_service.update_folder(
        folder_id,
        name=request.name,
        description=request.description,
        is_public=request.is_public,
    )
    return Response.success(msg="更新文件夹成功", data=folder)


@router.post(
    path="/{folder_id}/move",
    response_model=Response[Folder],
    summary="移动文件夹",
    description="将文件夹移动到新的父文件夹下，不能移动到自身或子文件夹下",
)
async def move_folder(
    folder_id: str,
    request: MoveFolderRequest,
    current_user: CurrentUser,
    folder_service: FolderService = Depends(get_folder_service),
) -> Response[Folder]:
    folder = await folder_service.move_folder(folder_id, request.parent_id)
    return Response.success(msg="移动文件夹成功", data=folder)


@router.delete(
    path="/{folder_id}",
    response_model=Response[FolderDeleteSummary],
    summary="删除文件夹",
    description="默认只能删除空文件夹，cascade=true时删除整个子树及其中的文件",
)
async def delete_folder(
    folder_id: str,
    current_user: CurrentUser,
    cascade: bool = False,
    folder_service: FolderService = Depends(get_folder_service),
) -> Response[FolderDeleteSummary]:
    summary = await folder_service.delete_folder(folder_id, cascade=cascade)
    return Response.success(msg="删除文件夹成功", data=summary)
