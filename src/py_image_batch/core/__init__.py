"""核心压缩引擎模块。

包含压缩引擎接口、格式处理和基于 Pillow 的参考引擎。
"""

from .engine import CompressionEngine, is_engine_available
from .formats import FormatProcessor, get_save_parameters
from .pillow_engine import PillowEngine


__all__ = [
    "CompressionEngine",
    "FormatProcessor",
    "PillowEngine",
    "get_save_parameters",
    "is_engine_available",
]
