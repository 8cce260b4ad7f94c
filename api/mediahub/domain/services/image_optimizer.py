"""图片优化管线：缩放、重新编码、压缩

模块内全部是无状态的纯函数，唯一的进程级状态是WebP能力探测结果的缓存。
同步函数是CPU密集型操作，异步版本通过anyio放到工作线程中执行。
"""

import asyncio
import base64
import io
import logging
import math
from functools import lru_cache, partial
from typing import Any, BinaryIO, Dict, List, Optional, Sequence, Tuple, Union

import anyio
from PIL import Image, ImageOps, UnidentifiedImageError, features
from pydantic import ValidationError as PydanticValidationError

from mediahub.application.errors.exceptions import (
    AppException,
    EncodingError,
    ValidationError,
)
from mediahub.domain.models.cancellation import CancellationToken
from mediahub.domain.models.file import Dimensions
from mediahub.domain.models.image import (
    ImageFormat,
    ImageOptimizationOptions,
    OptimizedImage,
    ResponsiveSize,
    VariantResult,
)

logger = logging.getLogger(__name__)

ImageSource = Union[bytes, bytearray, memoryview, BinaryIO]

SIZE_UNITS = ("Bytes", "KB", "MB", "GB")
THUMBNAIL_WIDTH = 300
THUMBNAIL_HEIGHT = 200
THUMBNAIL_QUALITY = 80
WEBP_QUALITY = 85

_PIL_FORMATS = {
    ImageFormat.JPEG: "JPEG",
    ImageFormat.WEBP: "WEBP",
    ImageFormat.PNG: "PNG",
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_dimensions(
    original_width: int,
    original_height: int,
    max_width: int,
    max_height: int,
) -> Tuple[int, int]:
    """在保持宽高比的前提下计算不超过(max_width, max_height)的目标尺寸

    横图(含正方形)先按宽度缩放，纵图先按高度缩放，若另一边仍超限则改用另一边约束重新计算，
    保证两个边界同时满足。结果四舍五入为整数。
    """
    if original_width <= 0 or original_height <= 0:
        raise ValidationError("图片原始尺寸必须大于0")
    if max_width <= 0 or max_height <= 0:
        raise ValidationError("最大尺寸必须大于0")

    width, height = float(original_width), float(original_height)
    if width <= max_width and height <= max_height:
        return original_width, original_height

    aspect_ratio = width / height
    if original_width >= original_height:
        # 横图: 先约束宽度
        width = max_width
        height = width / aspect_ratio
        if height > max_height:
            height = max_height
            width = height * aspect_ratio
    else:
        # 纵图: 先约束高度
        height = max_height
        width = height * aspect_ratio
        if width > max_width:
            width = max_width
            height = width / aspect_ratio

    return max(1, _round_half_up(width)), max(1, _round_half_up(height))


def _merge_options(
    options: Optional[ImageOptimizationOptions], **overrides: Any
) -> ImageOptimizationOptions:
    """在基础参数上覆盖部分字段并重新校验"""
    data: Dict[str, Any] = options.model_dump() if options is not None else {}
    data.update(overrides)
    try:
        return ImageOptimizationOptions.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError("图片优化参数不合法", data=e.errors(include_url=False)) from e


def _read_source(source: ImageSource) -> bytes:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    if hasattr(source, "seek"):
        source.seek(0)
    return source.read()


def _decode(data: bytes) -> Image.Image:
    """解码图片并按EXIF方向摆正"""
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
        return ImageOps.exif_transpose(image)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise EncodingError(f"图片解码失败: {str(e)}") from e


def _has_alpha(image: Image.Image) -> bool:
    return image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    )


def _normalize_mode(image: Image.Image) -> Image.Image:
    """统一为缩放时能够高质量插值的色彩模式"""
    if image.mode in ("RGB", "RGBA", "L"):
        return image
    return image.convert("RGBA" if _has_alpha(image) else "RGB")


def _prepare_for_format(image: Image.Image, image_format: ImageFormat) -> Image.Image:
    if image_format is ImageFormat.JPEG:
        if image.mode == "RGBA":
            # JPEG不支持透明通道，铺白底
            background = Image.new("RGB", image.size, (255, 255, 255))
            background.paste(image, mask=image.getchannel("A"))
            return background
        return image if image.mode in ("RGB", "L") else image.convert("RGB")
    if image_format is ImageFormat.WEBP and image.mode == "L":
        return image.convert("RGB")
    return image


def _to_data_url(data: bytes, image_format: ImageFormat) -> str:
    return f"data:{image_format.mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def _encode(
    image: Image.Image,
    options: ImageOptimizationOptions,
    metadata: Dict[str, Any],
) -> bytes:
    params: Dict[str, Any] = {}
    if options.format is ImageFormat.JPEG:
        params.update(quality=options.quality, optimize=True, progressive=options.progressive)
    elif options.format is ImageFormat.WEBP:
        params.update(quality=options.quality, method=4)
    else:
        params.update(optimize=True)

    if not options.strip_metadata:
        params.update({key: value for key, value in metadata.items() if value})

    buffer = io.BytesIO()
    try:
        image.save(buffer, format=_PIL_FORMATS[options.format], **params)
    except (KeyError, OSError, ValueError) as e:
        raise EncodingError(f"图片编码为{options.format.value}失败: {str(e)}") from e
    return buffer.getvalue()


def optimize_image(
    source: ImageSource,
    options: Optional[ImageOptimizationOptions] = None,
) -> OptimizedImage:
    """解码源图片，按最大尺寸等比缩放后以指定格式和质量重新编码"""
    options = options or ImageOptimizationOptions()

    # 1.解码并记录需要保留的元数据
    image = _decode(_read_source(source))
    metadata = {
        "exif": image.info.get("exif"),
        "icc_profile": image.info.get("icc_profile"),
    }

    # 2.计算目标尺寸并高质量缩放
    width, height = calculate_dimensions(
        image.width, image.height, options.max_width, options.max_height
    )
    image = _normalize_mode(image)
    if (width, height) != image.size:
        image = image.resize((width, height), Image.Resampling.LANCZOS)

    # 3.按目标格式重新编码
    encoded = _encode(_prepare_for_format(image, options.format), options, metadata)
    return OptimizedImage(
        encoded_data=encoded,
        width=width,
        height=height,
        size_bytes=len(encoded),
        format=options.format,
        url=_to_data_url(encoded, options.format),
    )


def create_thumbnail(
    source: ImageSource,
    width: int = THUMBNAIL_WIDTH,
    height: int = THUMBNAIL_HEIGHT,
    options: Optional[ImageOptimizationOptions] = None,
) -> OptimizedImage:
    """生成缩略图，未显式指定质量时固定为80"""
    explicit_quality = options is not None and "quality" in options.model_fields_set
    quality = options.quality if explicit_quality else THUMBNAIL_QUALITY
    merged = _merge_options(options, max_width=width, max_height=height, quality=quality)
    return optimize_image(source, merged)


def convert_to_webp(
    source: ImageSource,
    options: Optional[ImageOptimizationOptions] = None,
) -> OptimizedImage:
    """转换为WebP格式，质量固定为85"""
    merged = _merge_options(options, format=ImageFormat.WEBP, quality=WEBP_QUALITY)
    return optimize_image(source, merged)


async def optimize_image_async(
    source: ImageSource,
    options: Optional[ImageOptimizationOptions] = None,
    limiter: Optional[anyio.CapacityLimiter] = None,
) -> OptimizedImage:
    """在工作线程中执行optimize_image，避免阻塞事件循环"""
    data = _read_source(source)
    return await anyio.to_thread.run_sync(partial(optimize_image, data, options), limiter=limiter)


async def generate_responsive_sizes(
    source: ImageSource,
    sizes: Sequence[ResponsiveSize],
    options: Optional[ImageOptimizationOptions] = None,
    cancel_token: Optional[CancellationToken] = None,
    max_concurrency: int = 4,
) -> List[VariantResult]:
    """为每个尺寸独立生成一个变体

    各尺寸之间没有共享的可变状态，可并发执行；结果按请求下标对应回尺寸，
    单个尺寸失败只记录错误，不影响其他尺寸。
    """
    options = options or ImageOptimizationOptions()
    data = _read_source(source)
    limiter = anyio.CapacityLimiter(max(1, max_concurrency))
    results: Dict[int, VariantResult] = {}

    async def _generate(index: int, size: ResponsiveSize) -> None:
        result = VariantResult(key=size.key, size=size)
        results[index] = result
        async with limiter:
            # 取得工作槽位后再检查取消
            if cancel_token is not None and cancel_token.cancelled:
                result.error = "cancelled"
                result.message = cancel_token.reason
                return

            try:
                variant_options = _merge_options(
                    options,
                    max_width=size.width,
                    max_height=size.height or options.max_height,
                )
                result.image = await anyio.to_thread.run_sync(
                    partial(optimize_image, data, variant_options)
                )
            except AppException as e:
                result.error = e.error_code
                result.message = e.msg
                logger.warning(f"响应式尺寸[{size.key}]生成失败: {e.msg}")
            except Exception as e:  # noqa: BLE001
                result.error = "internal_error"
                result.message = str(e)
                logger.exception(f"响应式尺寸[{size.key}]生成出现未知错误")

    await asyncio.gather(*(_generate(index, size) for index, size in enumerate(sizes)))
    return [results[index] for index in range(len(sizes))]


def probe_dimensions(source: ImageSource) -> Optional[Dimensions]:
    """只读取图片头获取尺寸，无法识别时返回None"""
    try:
        with Image.open(io.BytesIO(_read_source(source))) as image:
            width, height = image.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
        return None
    return Dimensions(width=width, height=height)


def format_file_size(size: float) -> str:
    """将字节数格式化为可读字符串，使用1024进制，最多两位小数"""
    if size == 0:
        return "0 Bytes"
    if size < 0:
        raise ValidationError("文件大小不能为负数")

    index = int(math.floor(math.log(size) / math.log(1024)))
    index = min(max(index, 0), len(SIZE_UNITS) - 1)
    # 浮点误差可能让恰好1024的整数次幂落到低一级单位
    while index + 1 < len(SIZE_UNITS) and size >= 1024 ** (index + 1):
        index += 1

    text = f"{size / 1024 ** index:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[index]}"


def calculate_compression_ratio(original_size: int, optimized_size: int) -> float:
    """压缩率百分比，优化后变大时为负数"""
    if original_size == 0:
        return 0.0
    return ((original_size - optimized_size) / original_size) * 100


@lru_cache(maxsize=None)
def is_webp_supported() -> bool:
    """探测当前运行环境是否能编码WebP，结果在进程内缓存"""
    try:
        if not features.check("webp"):
            return False
        buffer = io.BytesIO()
        Image.new("RGB", (1, 1)).save(buffer, format="WEBP")
        return buffer.getvalue()[:4] == b"RIFF"
    except (KeyError, OSError, ValueError):
        logger.warning("WebP能力探测失败，回退为jpeg", exc_info=True)
        return False


def get_recommended_format() -> ImageFormat:
    """支持WebP时推荐webp，否则推荐jpeg"""
    return ImageFormat.WEBP if is_webp_supported() else ImageFormat.JPEG
