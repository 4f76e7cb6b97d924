"""工具模块包。

提供纯工具函数，不包含业务逻辑。
"""

# 从文件助手模块导入
from .file_helpers import (
    find_image_files,
    is_writable_directory,
    sniff_image_format,
)

# 从日志工具模块导入
from .logging_helpers import configure_logging, get_logger

# 从消息格式化模块导入
from .message_formatter import MessageFormatter

# 从命名助手模块导入
from .naming_helpers import FileNamingStrategy


__all__ = [
    "FileNamingStrategy",
    "MessageFormatter",
    "configure_logging",
    "find_image_files",
    "get_logger",
    "is_writable_directory",
    "sniff_image_format",
]
