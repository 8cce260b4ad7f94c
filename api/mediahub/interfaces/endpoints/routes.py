from fastapi import APIRouter

from . import (
    bulk_routes,
    file_routes,
    folder_routes,
    image_routes,
    selection_routes,
    status_routes,
)


def create_api_routes() -> APIRouter:
    """创建API路由，涵盖整个项目的所有路由管理"""

    api_router = APIRouter()

    # 状态路由 (无需认证)
    api_router.include_router(status_routes.router)

    # 业务路由 (需要认证)，批量路由需要先于/files/{file_id}注册
    api_router.include_router(folder_routes.router)
    api_router.include_router(bulk_routes.router)
    api_router.include_router(file_routes.router)
    api_router.include_router(image_routes.router)
    api_router.include_router(selection_routes.router)

    return api_router


router = create_api_routes()
