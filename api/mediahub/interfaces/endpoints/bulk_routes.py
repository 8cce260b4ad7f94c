import logging

from fastapi import APIRouter, Depends
from mediahub.application.services.bulk_operation_service import (
    BulkOperationCoordinator,
)
from mediahub.domain.models.bulk import BulkOperationRequest, BulkOperationResult
from mediahub.interfaces.dependencies import CurrentUser
from mediahub.interfaces.schemas import Response
from mediahub.interfaces.service_dependencies import get_bulk_operation_coordinator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/files", tags=["批量操作模块"])


@router.post(
    path="/bulk",
    response_model=Response[BulkOperationResult],
    summary="批量操作文件",
    description="对选中的文件执行delete/download/copy/move/tag，单个文件失败不会中断整个批次",
)
async def run_bulk_operation(
    request: BulkOperationRequest,
    current_user: CurrentUser,
    coordinator: BulkOperationCoordinator = Depends(get_bulk_operation_coordinator),
) -> Response[BulkOperationResult]:
    result = await coordinator.run(request)
    if result.failed:
        return Response(
            code=200,
            msg=f"批量操作部分失败: 成功{len(result.succeeded)}个, 失败{len(result.failed)}个",
            data=result,
        )
    return Response.success(msg="批量操作成功", data=result)
