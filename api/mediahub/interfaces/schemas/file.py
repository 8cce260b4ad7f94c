from typing import Dict, List, Optional

from mediahub.domain.models.file import ProcessingStatus
from mediahub.domain.models.image import ImageOptimizationOptions, ResponsiveSize
from pydantic import BaseModel, Field


class ReassignFolderRequest(BaseModel):
    """移动文件到文件夹请求结构"""

    folder_id: Optional[str] = None  # 为空表示移出为未归档


class MarkStatusRequest(BaseModel):
    status: ProcessingStatus


class UpdateFileRequest(BaseModel):
    """更新文件展示信息请求结构，tags为追加"""

    alt: Optional[str] = None
    caption: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class FileStatsResponse(BaseModel):
    """媒体库统计响应结构"""

    total_files: int = 0
    total_size: int = 0
    total_size_display: str = "0 Bytes"  # 可读的总大小
    file_types: Dict[str, int] = Field(default_factory=dict)


class ThumbnailRequest(BaseModel):
    """生成缩略图请求结构"""

    width: int = Field(default=300, gt=0)
    height: int = Field(default=200, gt=0)
    options: Optional[ImageOptimizationOptions] = None


class ResponsiveSetRequest(BaseModel):
    """生成响应式尺寸集合请求结构"""

    sizes: List[ResponsiveSize] = Field(min_length=1)
    options: Optional[ImageOptimizationOptions] = None


class ImageVariantItem(BaseModel):
    """图片变体信息(不包含编码后的二进制数据)"""

    key: str
    width: Optional[int] = None
    height: Optional[int] = None
    size_bytes: Optional[int] = None
    format: Optional[str] = None
    url: Optional[str] = None
    error: Optional[str] = None
    message: Optional[str] = None


class ResponsiveSetResponse(BaseModel):
    file_id: str
    variants: List[ImageVariantItem] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)  # 生成失败的尺寸key
