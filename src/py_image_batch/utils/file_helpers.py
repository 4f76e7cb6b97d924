"""工具函数模块。

提供图像文件查找与文件头识别等实用工具函数。
"""

import os
from collections.abc import Iterable, Iterator
from pathlib import Path

from PIL import Image

from .logging_helpers import get_logger
from .message_formatter import MessageFormatter


logger = get_logger()


def find_image_files(
    paths: Iterable[str | Path],
    recursive: bool = False,
) -> Iterator[Path]:
    """从文件与目录的混合列表中查找图像文件。

    文件按给定顺序输出；目录内的文件按名称排序。

    Args:
        paths: 文件或目录路径
        recursive: 是否递归搜索子目录

    Yields:
        Path: 图像文件路径
    """
    # 获取支持的扩展名（直接使用 Pillow API）
    supported_extensions = set(Image.registered_extensions().keys())

    for raw_path in paths:
        path = Path(raw_path)

        if path.is_file():
            yield path
            continue

        if not path.exists():
            logger.warning(MessageFormatter.file_not_found(path))
            continue

        pattern = "**/*" if recursive else "*"
        try:
            for file_path in sorted(path.glob(pattern)):
                if file_path.is_file() and file_path.suffix.lower() in supported_extensions:
                    yield file_path
        except PermissionError:
            logger.error(MessageFormatter.permission_error(path, "访问目录"))


def sniff_image_format(data: bytes) -> str | None:
    """根据文件头识别常见图片格式

    Args:
        data: 图片字节

    Returns:
        str | None: JPEG/PNG/GIF/WEBP/BMP，无法识别时返回 None
    """
    if data.startswith(b"\xff\xd8\xff"):
        return "JPEG"
    if data.startswith(b"\x89PNG"):
        return "PNG"
    if data.startswith(b"GIF8"):
        return "GIF"
    if data.startswith(b"RIFF") and data[8:12] == b"WEBP":
        return "WEBP"
    if data.startswith(b"BM"):
        return "BMP"
    return None


def is_writable_directory(directory: Path) -> bool:
    """检查目录是否存在且可写"""
    return directory.is_dir() and os.access(directory, os.W_OK | os.X_OK)
