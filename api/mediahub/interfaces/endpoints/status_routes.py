import logging

from core.config import get_settings
from fastapi import APIRouter
from mediahub.interfaces.schemas import Response

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/status", tags=["状态模块"])


@router.get(
    "",
    response_model=Response[dict],
    summary="服务存活检查",
    description="返回服务状态和当前使用的数据仓库后端，不需要认证",
)
async def get_status() -> Response[dict]:
    settings = get_settings()
    return Response.success(
        msg="服务运行正常",
        data={
            "service": "mediahub",
            "status": "ok",
            "env": settings.env,
            "repository_backend": settings.media_repository_backend,
        },
    )
