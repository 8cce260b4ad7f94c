import logging
import urllib.parse
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from mediahub.application.errors.exceptions import AppException
from mediahub.application.services.file_service import FileService
from mediahub.application.services.image_service import ImageService
from mediahub.domain.models.file import File as FileInfo
from mediahub.domain.models.file import FileQuery, SortField, SortOrder
from mediahub.domain.models.image import OptimizedImage, VariantResult
from mediahub.domain.services.image_optimizer import format_file_size
from mediahub.interfaces.dependencies import CurrentUser
from mediahub.interfaces.schemas import PageResponse, Response
from mediahub.interfaces.schemas.file import (
    FileStatsResponse,
    ImageVariantItem,
    MarkStatusRequest,
    ReassignFolderRequest,
    ResponsiveSetRequest,
    ResponsiveSetResponse,
    ThumbnailRequest,
    UpdateFileRequest,
)
from mediahub.interfaces.service_dependencies import get_file_service, get_image_service
from starlette.responses import StreamingResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/files", tags=["文件模块"])


def _variant_item(key: str, image: Optional[OptimizedImage]) -> ImageVariantItem:
    if image is None:
        return ImageVariantItem(key=key)
    return ImageVariantItem(
        key=key,
        width=image.width,
        height=image.height,
        size_bytes=image.size_bytes,
        format=image.format.value,
        url=image.url,
    )


def _variant_result_item(result: VariantResult) -> ImageVariantItem:
    item = _variant_item(result.key, result.image)
    item.error = result.error
    item.message = result.message
    return item


@router.get(
    path="",
    response_model=PageResponse[FileInfo],
    summary="分页查询文件列表",
    description="按文件夹/名字/mime前缀过滤并排序，相同排序值时按id升序",
)
async def list_files(
    current_user: CurrentUser,
    page: int = 1,
    limit: int = 20,
    query: Optional[str] = None,
    folder_id: Optional[str] = None,
    unfiled: bool = False,
    mime_type_prefix: Optional[str] = None,
    uploader_id: Optional[str] = None,
    sort_field: SortField = SortField.CREATED_AT,
    sort_order: SortOrder = SortOrder.DESC,
    file_service: FileService = Depends(get_file_service),
):
    """列表接口失败时返回 {success: false, message, error}"""
    try:
        result = await file_service.list_files(
            FileQuery(
                folder_id=folder_id,
                unfiled=unfiled,
                query=query,
                mime_type_prefix=mime_type_prefix,
                uploader_id=uploader_id,
                page=page,
                limit=limit,
                sort_field=sort_field,
                sort_order=sort_order,
            )
        )
    except AppException as e:
        logger.warning(f"查询文件列表失败[{e.error_code}]: {e.msg}")
        return JSONResponse(
            status_code=e.status_code,
            content=jsonable_encoder(PageResponse.fail(message=e.msg, error=e.error_code)),
        )
    return PageResponse.ok(data=result.items, pagination=result.pagination)


@router.post(
    path="",
    response_model=Response[FileInfo],
    summary="上传文件",
    description="将文件上传到MinIO对象存储并登记到媒体库，可指定所属文件夹",
)
async def upload_file(
    current_user: CurrentUser,
    file: UploadFile = File(...),
    folder_id: Optional[str] = Form(None),
    file_service: FileService = Depends(get_file_service),
) -> Response[FileInfo]:
    """文件上传接口，传递文件返回文件的File信息"""
    data = await file.read()
    fileinfo = await file_service.upload_file(
        data=data,
        original_name=file.filename or "",
        mime_type=file.content_type or "",
        uploader_id=current_user.id,
        folder_id=folder_id or None,
    )
    return Response.success(msg="上传文件成功", data=fileinfo)


@router.get(
    path="/stats",
    response_model=Response[FileStatsResponse],
    summary="媒体库统计",
)
async def get_stats(
    current_user: CurrentUser,
    file_service: FileService = Depends(get_file_service),
) -> Response[FileStatsResponse]:
    stats = await file_service.get_stats()
    return Response.success(
        msg="获取媒体库统计成功",
        data=FileStatsResponse(
            total_files=stats.total_files,
            total_size=stats.total_size,
            total_size_display=format_file_size(stats.total_size),
            file_types=stats.file_types,
        ),
    )


@router.get(
    path="/{file_id}",
    response_model=Response[FileInfo],
    summary="获取文件信息",
)
async def get_file(
    file_id: str,
    current_user: CurrentUser,
    file_service: FileService = Depends(get_file_service),
) -> Response[FileInfo]:
    fileinfo = await file_service.get_file(file_id)
    return Response.success(msg="获取文件信息成功", data=fileinfo)


@router.patch(
    path="/{file_id}",
    response_model=Response[FileInfo],
    summary="更新文件信息",
    description="更新替代文本/标题/描述，tags会追加到已有标签后",
)
async def update_file(
    file_id: str,
    request: UpdateFileRequest,
    current_user: CurrentUser,
    file_service: FileService = Depends(get_file_service),
) -> Response[FileInfo]:
    fileinfo = await file_service.update_file(
        file_id,
        alt=request.alt,
        caption=request.caption,
        description=request.description,
    )
    if request.tags:
        fileinfo = await file_service.add_tags(file_id, request.tags)
    return Response.success(msg="更新文件信息成功", data=fileinfo)


@router.post(
    path="/{file_id}/folder",
    response_model=Response[FileInfo],
    summary="移动文件到文件夹",
    description="folder_id为空时将文件移出为未归档",
)
async def reassign_folder(
    file_id: str,
    request: ReassignFolderRequest,
    current_user: CurrentUser,
    file_service: FileService = Depends(get_file_service),
) -> Response[FileInfo]:
    fileinfo = await file_service.reassign_folder(file_id, request.folder_id)
    return Response.success(msg="移动文件成功", data=fileinfo)


@router.post(
    path="/{file_id}/status",
    response_model=Response[FileInfo],
    summary="更新文件处理状态",
)
async def mark_status(
    file_id: str,
    request: MarkStatusRequest,
    current_user: CurrentUser,
    file_service: FileService = Depends(get_file_service),
) -> Response[FileInfo]:
    fileinfo = await file_service.mark_status(file_id, request.status)
    return Response.success(msg="更新处理状态成功", data=fileinfo)


@router.get(
    path="/{file_id}/download",
    summary="文件下载接口",
    description="从对象存储中下载指定的文件",
)
async def download_file(
    file_id: str,
    current_user: CurrentUser,
    file_service: FileService = Depends(get_file_service),
) -> StreamingResponse:
    # 1.调用服务获取文件源数据
    file_data, fileinfo = await file_service.download_file(file_id)

    # 2.对文件中的中文名字进行url编码
    encoded_filename = urllib.parse.quote(fileinfo.original_name or fileinfo.filename)

    # 3.返回文件流数据
    return StreamingResponse(
        content=file_data,
        media_type=fileinfo.mime_type or "application/octet-stream",
        headers={
            "Content-Disposition": f"attachment; filename*=utf-8''{encoded_filename}",
            "Content-Length": str(fileinfo.size_bytes),
        },
    )


@router.delete(
    path="/{file_id}",
    response_model=Response[dict],
    summary="删除文件",
    description="删除文件记录及其在对象存储中的对象",
)
async def delete_file(
    file_id: str,
    current_user: CurrentUser,
    file_service: FileService = Depends(get_file_service),
) -> Response[dict]:
    await file_service.delete_file(file_id)
    return Response.success(msg="删除文件成功")


@router.post(
    path="/{file_id}/thumbnail",
    response_model=Response[ImageVariantItem],
    summary="生成缩略图",
    description="为图片文件生成缩略图并保存到对象存储，同时更新文件处理状态",
)
async def generate_thumbnail(
    file_id: str,
    current_user: CurrentUser,
    request: Optional[ThumbnailRequest] = None,
    image_service: ImageService = Depends(get_image_service),
) -> Response[ImageVariantItem]:
    request = request or ThumbnailRequest()
    thumbnail = await image_service.generate_thumbnail(
        file_id,
        width=request.width,
        height=request.height,
        options=request.options,
    )
    return Response.success(
        msg="生成缩略图成功",
        data=_variant_item(f"{request.width}x{request.height}", thumbnail),
    )


@router.post(
    path="/{file_id}/variants",
    response_model=Response[ResponsiveSetResponse],
    summary="生成响应式尺寸",
    description="为图片文件生成多个尺寸的变体，单个尺寸失败不影响其他尺寸",
)
async def generate_variants(
    file_id: str,
    request: ResponsiveSetRequest,
    current_user: CurrentUser,
    image_service: ImageService = Depends(get_image_service),
) -> Response[ResponsiveSetResponse]:
    results = await image_service.generate_responsive_set(
        file_id, request.sizes, options=request.options
    )
    return Response.success(
        msg="生成响应式尺寸完成",
        data=ResponsiveSetResponse(
            file_id=file_id,
            variants=[_variant_result_item(result) for result in results],
            failed=[result.key for result in results if not result.ok],
        ),
    )
