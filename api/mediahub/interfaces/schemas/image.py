from mediahub.domain.models.image import ImageFormat
from pydantic import BaseModel


class RecommendedFormatResponse(BaseModel):
    """当前运行环境推荐的图片输出格式"""

    format: ImageFormat
    webp_supported: bool
