import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from mediahub.application.services.image_service import ImageService
from mediahub.domain.models.image import ImageFormat, ImageOptimizationOptions
from mediahub.domain.services import image_optimizer
from mediahub.interfaces.dependencies import CurrentUser
from mediahub.interfaces.schemas import Response
from mediahub.interfaces.schemas.image import RecommendedFormatResponse
from mediahub.interfaces.service_dependencies import get_image_service
from starlette.responses import Response as RawResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/images", tags=["图片模块"])


@router.post(
    path="/optimize",
    summary="图片优化",
    description="缩放并重新编码上传的图片，直接返回编码后的图片数据，尺寸与压缩率放在响应头中",
)
async def optimize_image(
    current_user: CurrentUser,
    file: UploadFile = File(...),
    quality: int = Form(85, ge=0, le=100),
    max_width: int = Form(1920, gt=0),
    max_height: int = Form(1080, gt=0),
    format: Optional[ImageFormat] = Form(None),
    progressive: bool = Form(False),
    strip_metadata: bool = Form(False),
    image_service: ImageService = Depends(get_image_service),
) -> RawResponse:
    options = ImageOptimizationOptions(
        quality=quality,
        max_width=max_width,
        max_height=max_height,
        format=format or image_optimizer.get_recommended_format(),
        progressive=progressive,
        strip_metadata=strip_metadata,
    )
    image, ratio = await image_service.optimize_upload(await file.read(), options)
    return RawResponse(
        content=image.encoded_data,
        media_type=image.format.mime_type,
        headers={
            "X-Image-Width": str(image.width),
            "X-Image-Height": str(image.height),
            "X-Image-Size": str(image.size_bytes),
            "X-Compression-Ratio": f"{ratio:.2f}",
        },
    )


@router.get(
    path="/format",
    response_model=Response[RecommendedFormatResponse],
    summary="推荐的图片格式",
    description="当前运行环境支持WebP编码时推荐webp，否则推荐jpeg",
)
async def get_image_format(current_user: CurrentUser) -> Response[RecommendedFormatResponse]:
    return Response.success(
        data=RecommendedFormatResponse(
            format=image_optimizer.get_recommended_format(),
            webp_supported=image_optimizer.is_webp_supported(),
        )
    )
