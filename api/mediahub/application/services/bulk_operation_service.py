"""批量操作协调器

对选中的每个文件逐项调用注入的执行器，单项失败只记录不中断，
汇总结果按文件id记账，与执行器的完成顺序无关。
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Dict, Iterable, Optional, Set

from core.config import Settings, get_settings
from mediahub.application.errors.exceptions import (
    AppException,
    ConflictError,
    ValidationError,
)
from mediahub.application.services.file_service import FileService
from mediahub.domain.models.bulk import (
    BulkItemFailure,
    BulkOperationKind,
    BulkOperationPayload,
    BulkOperationRequest,
    BulkOperationResult,
)
from mediahub.domain.models.cancellation import CancellationToken
from mediahub.domain.models.file import File

logger = logging.getLogger(__name__)

# 执行器返回值会记录到结果的outputs中(下载地址、复制出的新文件id等)
BulkExecutor = Callable[[File, BulkOperationPayload], Awaitable[Optional[str]]]


class SelectionGuard:
    """批量操作进行中的选择标记，同一文件不能同时处于两个批次中"""

    def __init__(self) -> None:
        self._processing: Set[str] = set()

    def is_processing(self, file_ids: Iterable[str]) -> bool:
        return any(file_id in self._processing for file_id in file_ids)

    @asynccontextmanager
    async def hold(self, file_ids: Iterable[str]) -> AsyncIterator[None]:
        ids = set(file_ids)
        busy = ids & self._processing
        if busy:
            raise ConflictError(
                "所选文件正在进行批量操作，请稍后再试",
                data={"processing": sorted(busy)},
            )
        self._processing |= ids
        try:
            yield
        finally:
            self._processing -= ids


def default_executors(file_service: FileService) -> Dict[BulkOperationKind, BulkExecutor]:
    """基于FileService的默认执行器"""

    async def _delete(file: File, payload: BulkOperationPayload) -> Optional[str]:
        await file_service.delete_file(file.id)
        return None

    async def _download(file: File, payload: BulkOperationPayload) -> Optional[str]:
        return await file_service.get_download_url(file.id)

    async def _copy(file: File, payload: BulkOperationPayload) -> Optional[str]:
        copied = await file_service.copy_file(file.id)
        return copied.id

    async def _move(file: File, payload: BulkOperationPayload) -> Optional[str]:
        await file_service.reassign_folder(file.id, payload.destination_folder_id)
        return None

    async def _tag(file: File, payload: BulkOperationPayload) -> Optional[str]:
        await file_service.add_tags(file.id, payload.tags)
        return None

    return {
        BulkOperationKind.DELETE: _delete,
        BulkOperationKind.DOWNLOAD: _download,
        BulkOperationKind.COPY: _copy,
        BulkOperationKind.MOVE: _move,
        BulkOperationKind.TAG: _tag,
    }


class BulkOperationCoordinator:
    """批量操作协调器，尽力执行全部条目并返回结构化结果"""

    def __init__(
        self,
        file_service: FileService,
        executors: Optional[Dict[BulkOperationKind, BulkExecutor]] = None,
        guard: Optional[SelectionGuard] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._file_service = file_service
        self._executors = executors if executors is not None else default_executors(file_service)
        self._guard = guard or SelectionGuard()
        self._settings = settings or get_settings()

    async def _validate(self, request: BulkOperationRequest) -> BulkExecutor:
        """在执行任何条目前校验操作参数"""
        executor = self._executors.get(request.operation)
        if executor is None:
            raise ValidationError(f"不支持的批量操作: {request.operation.value}")

        if request.operation == BulkOperationKind.TAG:
            if not [tag for tag in request.payload.tags if tag and tag.strip()]:
                raise ValidationError("批量打标签需要提供非空的标签列表")

        if request.operation == BulkOperationKind.MOVE:
            folder_id = request.payload.destination_folder_id
            if folder_id is not None:
                await self._file_service.ensure_folder(folder_id)
        return executor

    async def run(
        self,
        request: BulkOperationRequest,
        cancel_token: Optional[CancellationToken] = None,
    ) -> BulkOperationResult:
        """执行批量操作，单项失败不会中断整个批次"""
        executor = await self._validate(request)
        file_ids = request.unique_ids
        semaphore = asyncio.Semaphore(max(1, self._settings.media_bulk_max_concurrency))

        succeeded: Set[str] = set()
        skipped: Set[str] = set()
        failures: Dict[str, BulkItemFailure] = {}
        outputs: Dict[str, str] = {}

        async def _run_item(file_id: str) -> None:
            async with semaphore:
                # 1.取消后尚未开始的条目直接跳过
                if cancel_token is not None and cancel_token.cancelled:
                    skipped.add(file_id)
                    return

                # 2.从文件登记处解析文件后交给执行器
                try:
                    file = await self._file_service.get_file(file_id)
                    output = await executor(file, request.payload)
                except AppException as e:
                    failures[file_id] = BulkItemFailure(
                        id=file_id, error=e.error_code, message=e.msg
                    )
                except Exception as e:
                    logger.exception(f"批量{request.operation.value}文件[{file_id}]出现未知错误")
                    failures[file_id] = BulkItemFailure(
                        id=file_id, error="internal_error", message=str(e)
                    )
                else:
                    succeeded.add(file_id)
                    if output is not None:
                        outputs[file_id] = output

        async with self._guard.hold(file_ids):
            logger.info(f"开始批量{request.operation.value}, 共{len(file_ids)}个文件")
            await asyncio.gather(*(_run_item(file_id) for file_id in file_ids))

        result = BulkOperationResult(
            operation=request.operation,
            attempted=len(succeeded) + len(failures),
            succeeded=[file_id for file_id in file_ids if file_id in succeeded],
            failed=[failures[file_id] for file_id in file_ids if file_id in failures],
            skipped=[file_id for file_id in file_ids if file_id in skipped],
            outputs=outputs,
            cancelled=cancel_token is not None and cancel_token.cancelled,
        )
        if result.failed or result.skipped:
            logger.warning(
                f"批量{request.operation.value}部分完成: 成功{len(result.succeeded)}, "
                f"失败{len(result.failed)}, 跳过{len(result.skipped)}"
            )
        else:
            logger.info(f"批量{request.operation.value}完成: 成功{len(result.succeeded)}")
        return result
