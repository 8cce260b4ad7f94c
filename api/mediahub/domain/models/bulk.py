from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, computed_field


class BulkOperationKind(str, Enum):
    """批量操作类型"""

    DELETE = "delete"
    DOWNLOAD = "download"
    COPY = "copy"
    MOVE = "move"
    TAG = "tag"


class BulkOperationPayload(BaseModel):
    """批量操作参数，move需要目标文件夹，tag需要标签列表"""

    destination_folder_id: Optional[str] = None  # 为空表示移出到未归档
    tags: List[str] = Field(default_factory=list)


class BulkItemFailure(BaseModel):
    """单个文件的失败记录"""

    id: str
    error: str  # 错误码，如not_found/conflict
    message: str = ""


class BulkOperationResult(BaseModel):
    """批量操作汇总结果，部分失败以结构化结果返回而不是抛出异常"""

    operation: BulkOperationKind
    attempted: int = 0  # 实际执行过的文件数
    succeeded: List[str] = Field(default_factory=list)
    failed: List[BulkItemFailure] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)  # 取消后未执行的文件
    outputs: Dict[str, str] = Field(default_factory=dict)  # 下载地址/复制后的新文件id等
    cancelled: bool = False

    @property
    def is_partial_failure(self) -> bool:
        return bool(self.failed) and bool(self.succeeded)

    @computed_field
    @property
    def should_clear_selection(self) -> bool:
        """只有全部成功时才清空界面选择"""
        return not self.failed and not self.skipped

    @computed_field
    @property
    def retry_ids(self) -> List[str]:
        """需要保持选中以便重试的文件id"""
        return [failure.id for failure in self.failed] + list(self.skipped)


class BulkOperationRequest(BaseModel):
    """批量操作请求，file_ids按界面上的选择顺序排列"""

    file_ids: List[str] = Field(min_length=1)
    operation: BulkOperationKind
    payload: BulkOperationPayload = Field(default_factory=BulkOperationPayload)

    @property
    def unique_ids(self) -> List[str]:
        """去重后的文件id，保留首次出现的顺序"""
        return list(dict.fromkeys(self.file_ids))
