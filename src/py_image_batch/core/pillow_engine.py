"""基于 Pillow 的压缩引擎。

将压缩设置映射为 Pillow 编码参数，输入输出均为内存中的字节。
"""

from io import BytesIO

from PIL import Image, ImageOps

from ..exceptions import EngineUnavailableError, handle_image_errors
from ..models.settings import CompressionSettings
from ..utils.logging_helpers import get_logger
from .formats import FormatProcessor, get_save_parameters


logger = get_logger()


class PillowEngine:
    """Pillow 压缩引擎

    - lossy: JPEG
    - lossless: PNG
    - webp_lossy / webp_lossless: WebP
    """

    def __init__(self, format_processor: FormatProcessor | None = None):
        self.format_processor = format_processor or FormatProcessor()

    def is_available(self, settings: CompressionSettings) -> bool:
        """当前 Pillow 构建是否支持该设置的输出格式"""
        return self.format_processor.is_format_supported(settings.method.pil_format)

    @handle_image_errors("Pillow 编码")
    def compress(self, data: bytes, settings: CompressionSettings) -> bytes:
        """压缩单张图片

        Args:
            data: 原始图片字节
            settings: 压缩设置快照

        Returns:
            bytes: 压缩后的字节
        """
        target_format = settings.method.pil_format
        if not self.is_available(settings):
            raise EngineUnavailableError(f"Pillow 不支持 {target_format} 编码")

        with Image.open(BytesIO(data)) as img:
            img.load()
            # 处理EXIF旋转
            processed = ImageOps.exif_transpose(img)
            processed = self.format_processor.prepare_for_format(processed, target_format)

            buffer = BytesIO()
            processed.save(buffer, **get_save_parameters(settings))

        output = buffer.getvalue()
        logger.debug(
            f"{target_format} 编码完成: {len(data)} → {len(output)} bytes "
            f"({settings.get_summary()})"
        )
        return output
