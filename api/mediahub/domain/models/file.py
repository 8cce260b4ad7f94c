import uuid
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ProcessingStatus(str, Enum):
    """文件处理状态枚举(仅作提示，不强制状态流转)"""

    PENDING = "pending"  # 等待处理
    PROCESSING = "processing"  # 处理中
    READY = "ready"  # 处理完成
    FAILED = "failed"  # 处理失败


class SortField(str, Enum):
    """文件列表排序字段"""

    NAME = "name"
    SIZE = "size"
    CREATED_AT = "created_at"
    TYPE = "type"


class SortOrder(str, Enum):
    """排序方向"""

    ASC = "asc"
    DESC = "desc"


class Dimensions(BaseModel):
    """图片尺寸"""

    width: int
    height: int


class File(BaseModel):
    """媒体文件Domain模型，记录用户上传的文件及其所属文件夹"""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))  # 文件id
    filename: str = ""  # 存储层唯一文件名(生成)
    original_name: str = ""  # 用户上传时的文件名
    mime_type: str = ""  # mime-type类型
    size_bytes: int = 0  # 文件大小，单位为字节
    url: str = ""  # 文件访问地址
    key: str = ""  # 对象存储中的路径
    folder_id: Optional[str] = None  # 所属文件夹，为空表示未归档
    uploader_id: Optional[str] = None  # 上传用户ID
    dimensions: Optional[Dimensions] = None  # 图片尺寸，仅图片类型存在
    processing_status: ProcessingStatus = ProcessingStatus.PENDING  # 处理状态
    alt: Optional[str] = None  # 替代文本
    caption: Optional[str] = None  # 标题说明
    description: Optional[str] = None  # 描述
    tags: List[str] = Field(default_factory=list)  # 标签
    updated_at: datetime = Field(default_factory=datetime.now)  # 更新时间
    created_at: datetime = Field(default_factory=datetime.now)  # 创建时间

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")


class FileQuery(BaseModel):
    """文件列表查询条件"""

    folder_id: Optional[str] = None  # 按文件夹过滤
    unfiled: bool = False  # 只查询未归档文件
    query: Optional[str] = None  # 按原始文件名模糊搜索
    mime_type_prefix: Optional[str] = None  # 按mime前缀过滤，如image/
    uploader_id: Optional[str] = None
    page: int = 1
    limit: int = 20
    sort_field: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC


class Pagination(BaseModel):
    """分页信息"""

    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = (total + limit - 1) // limit if limit > 0 else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class FilePage(BaseModel):
    """分页后的文件列表"""

    items: List[File] = Field(default_factory=list)
    pagination: Pagination


class MediaStats(BaseModel):
    """媒体库统计信息"""

    total_files: int = 0
    total_size: int = 0
    file_types: Dict[str, int] = Field(default_factory=dict)  # 按mime主类型计数
