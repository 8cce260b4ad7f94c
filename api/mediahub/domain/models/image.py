from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ImageFormat(str, Enum):
    """图片输出格式"""

    JPEG = "jpeg"
    WEBP = "webp"
    PNG = "png"

    @property
    def mime_type(self) -> str:
        return f"image/{self.value}"

    @property
    def extension(self) -> str:
        return "jpg" if self is ImageFormat.JPEG else self.value


class ImageOptimizationOptions(BaseModel):
    """图片优化参数"""

    model_config = ConfigDict(frozen=True)

    quality: int = Field(default=85, ge=0, le=100)  # 编码质量0-100
    max_width: int = Field(default=1920, gt=0)  # 最大宽度
    max_height: int = Field(default=1080, gt=0)  # 最大高度
    format: ImageFormat = ImageFormat.JPEG  # 输出格式
    progressive: bool = False  # 是否渐进式编码(仅jpeg)
    strip_metadata: bool = False  # 是否去除EXIF/ICC等元数据


class OptimizedImage(BaseModel):
    """图片优化结果(变体)"""

    encoded_data: bytes = Field(repr=False)  # 编码后的图片数据
    width: int
    height: int
    size_bytes: int
    format: ImageFormat
    url: str = Field(default="", repr=False)  # data URI，持久化后替换为存储地址


class ResponsiveSize(BaseModel):
    """响应式尺寸，height为空时沿用基础参数的最大高度"""

    width: int = Field(gt=0)
    height: Optional[int] = Field(default=None, gt=0)

    @property
    def key(self) -> str:
        """用于将结果与请求尺寸对应的键"""
        if self.height is None:
            return f"{self.width}w"
        return f"{self.width}x{self.height}"


class VariantResult(BaseModel):
    """响应式尺寸批量生成中单个尺寸的结果"""

    key: str
    size: ResponsiveSize
    image: Optional[OptimizedImage] = None
    error: Optional[str] = None  # 错误码
    message: Optional[str] = None  # 错误信息

    @property
    def ok(self) -> bool:
        return self.image is not None
