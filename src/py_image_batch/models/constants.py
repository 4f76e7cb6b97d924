"""图像处理相关常量定义。

压缩方式与输出格式、扩展名、MIME 类型之间的映射，以及文件签名。
"""

from typing import Final


class QualityDefaults:
    """质量相关默认值"""

    # 质量范围
    MIN_QUALITY: Final[int] = 1
    MAX_QUALITY: Final[int] = 100


class MethodFormats:
    """压缩方式 → Pillow 输出格式"""

    # 键为设置中的方式标记
    PIL_FORMATS: Final[dict[str, str]] = {
        "lossy": "JPEG",
        "lossless": "PNG",
        "webp_lossy": "WEBP",
        "webp_lossless": "WEBP",
    }

    EXTENSIONS: Final[dict[str, str]] = {
        "JPEG": ".jpg",
        "PNG": ".png",
        "WEBP": ".webp",
    }

    # 带质量参数的方式
    QUALITY_BEARING: Final[frozenset[str]] = frozenset({"lossy", "webp_lossy"})


class ImageSignatures:
    """常见图片文件头签名"""

    MIME_TYPES: Final[dict[str, str]] = {
        "JPEG": "image/jpeg",
        "PNG": "image/png",
        "GIF": "image/gif",
        "WEBP": "image/webp",
        "BMP": "image/bmp",
    }

    # 未识别格式时使用
    FALLBACK_MIME: Final[str] = "application/octet-stream"


def get_mime_type(format_name: str | None) -> str:
    """获取格式的MIME类型"""
    if not format_name:
        return ImageSignatures.FALLBACK_MIME
    return ImageSignatures.MIME_TYPES.get(
        format_name.upper(), f"image/{format_name.lower()}"
    )
