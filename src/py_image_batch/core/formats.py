"""格式处理器模块。

按压缩方式准备图片色彩模式并生成 Pillow 保存参数。
"""

from typing import Any

from PIL import Image, features

from ..config import get_config
from ..models.settings import CompressionMethod, CompressionSettings
from ..utils.logging_helpers import get_logger


logger = get_logger()

# 每种输出格式依赖的 Pillow 编码能力
_FORMAT_FEATURES: dict[str, tuple[str, str]] = {
    "JPEG": ("codec", "jpg"),
    "PNG": ("codec", "zlib"),
    "WEBP": ("module", "webp"),
}


class FormatProcessor:
    """格式处理器"""

    def __init__(self, jpeg_background: tuple[int, int, int] = (255, 255, 255)):
        """初始化格式处理器

        Args:
            jpeg_background: 透明图片转 JPEG 时的背景色
        """
        self.jpeg_background = jpeg_background

    @staticmethod
    def is_format_supported(format_name: str) -> bool:
        """检查当前 Pillow 构建是否支持该输出格式"""
        kind, name = _FORMAT_FEATURES.get(format_name, ("module", format_name.lower()))
        try:
            if kind == "codec":
                return bool(features.check_codec(name))
            return bool(features.check_module(name))
        except ValueError:
            logger.debug(f"未知的 Pillow 特性: {name}")
            return False

    def prepare_for_format(self, img: Image.Image, target_format: str) -> Image.Image:
        """为目标格式准备图片

        Args:
            img: PIL图片对象
            target_format: 目标格式

        Returns:
            Image.Image: 处理后的图片对象
        """
        match target_format:
            case "JPEG":
                return self._prepare_for_jpeg(img)
            case "PNG":
                return self._prepare_for_png(img)
            case "WEBP":
                return self._prepare_for_webp(img)
            case _:
                return img

    def _prepare_for_jpeg(self, img: Image.Image) -> Image.Image:
        """JPEG不支持透明度，合成到背景色上并转换为RGB"""
        if img.mode == "P":
            # 调色板模式：有透明色时按RGBA处理
            if "transparency" not in img.info:
                return img.convert("RGB")
            img = img.convert("RGBA")

        if img.mode in ("RGBA", "LA"):
            if img.mode == "LA":
                img = img.convert("RGBA")
            background = Image.new("RGB", img.size, self.jpeg_background)
            background.paste(img, mask=img.split()[-1])
            return background

        if img.mode != "RGB":
            # CMYK、灰度、二值等其他模式
            return img.convert("RGB")

        return img

    def _prepare_for_png(self, img: Image.Image) -> Image.Image:
        """PNG支持多种色彩模式，仅转换无法直接保存的模式"""
        if img.mode == "P":
            if "transparency" in img.info:
                return img.convert("RGBA")
            return img.convert("RGB")

        if img.mode == "CMYK":
            return img.convert("RGB")

        return img

    def _prepare_for_webp(self, img: Image.Image) -> Image.Image:
        """WebP支持RGB和RGBA"""
        if img.mode == "P":
            if "transparency" in img.info:
                return img.convert("RGBA")
            return img.convert("RGB")
        if img.mode == "LA":
            return img.convert("RGBA")
        if img.mode not in ("RGB", "RGBA"):
            return img.convert("RGB")

        return img


def get_save_parameters(settings: CompressionSettings) -> dict[str, Any]:
    """根据设置生成 Pillow 保存参数（包含 format）"""
    params: dict[str, Any] = {"format": settings.method.pil_format}

    match settings.method:
        case CompressionMethod.LOSSY:
            params.update(get_jpeg_params(settings.quality))
        case CompressionMethod.LOSSLESS:
            params.update(get_png_params())
        case CompressionMethod.WEBP_LOSSY:
            params.update(get_webp_params(settings.quality))
        case CompressionMethod.WEBP_LOSSLESS:
            params.update(get_webp_params(None))

    return params


def get_jpeg_params(quality: int) -> dict[str, Any]:
    """获取JPEG压缩参数

    - optimize: 额外处理以找到最优编码设置
    - progressive: 渐进式JPEG
    - subsampling: 高质量时使用 4:2:2，否则 4:2:0
    """
    return {
        "quality": quality,
        "optimize": True,
        "progressive": get_config().compression.JPEG_PROGRESSIVE,
        "subsampling": 1 if quality >= 85 else 2,
    }


def get_png_params() -> dict[str, Any]:
    """获取PNG无损压缩参数"""
    return {
        "optimize": True,
        "compress_level": get_config().compression.PNG_COMPRESS_LEVEL,
    }


def get_webp_params(quality: int | None) -> dict[str, Any]:
    """获取WebP压缩参数

    - 无损模式：lossless=True, quality 控制压缩努力程度
    - 有损模式：quality 控制图像质量，alpha_quality 控制透明通道
    """
    method = get_config().compression.WEBP_METHOD

    if quality is None:
        return {
            "lossless": True,
            "quality": 80,
            "method": method,
            "exact": True,  # 保持透明像素的RGB值
        }

    params: dict[str, Any] = {"quality": quality, "method": method}
    if quality >= 85:
        params["alpha_quality"] = 100
    elif quality >= 70:
        params["alpha_quality"] = min(100, quality + 10)
    else:
        params["alpha_quality"] = quality

    return params
