"""批量图像压缩库。

将一批图片分发给可配置的压缩引擎，跟踪每个任务的生命周期，
并按索引汇总压缩前后的对比结果。
"""

__version__ = "0.1.0"
__author__ = "crper"
__description__ = "批量图像压缩任务调度与结果汇总"

# 核心功能导出
from .compressor import ImageBatchCompressor
from .core.pillow_engine import PillowEngine
from .engine.orchestrator import JobOrchestrator
from .models import (
    CompressionMethod,
    CompressionResult,
    CompressionSettings,
    IngestBuffer,
    ResultSet,
)
from .settings_store import SettingsStore


__all__ = [
    "CompressionMethod",
    "CompressionResult",
    "CompressionSettings",
    "ImageBatchCompressor",
    "IngestBuffer",
    "JobOrchestrator",
    "PillowEngine",
    "ResultSet",
    "SettingsStore",
    "get_version",
]


def get_version() -> str:
    """获取版本号。"""
    return __version__
