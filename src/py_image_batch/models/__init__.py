"""数据模型包。

定义批量压缩相关的数据结构和模型。
"""

from .batch import IngestBuffer, InputImage
from .compression_result import (
    CompressionResult,
    ExportFailure,
    ExportReport,
    JobFailureKind,
    ResultSet,
    RunOutcome,
)
from .constants import (
    ImageSignatures,
    MethodFormats,
    QualityDefaults,
    get_mime_type,
)
from .job import CompressionJob, JobState
from .settings import CompressionMethod, CompressionSettings


__all__ = [
    # 核心模型
    "CompressionJob",
    "CompressionMethod",
    "CompressionResult",
    "CompressionSettings",
    "ExportFailure",
    "ExportReport",
    # 常量和工具
    "ImageSignatures",
    "IngestBuffer",
    "InputImage",
    "JobFailureKind",
    "JobState",
    "MethodFormats",
    "QualityDefaults",
    "ResultSet",
    # 类型定义
    "RunOutcome",
    "get_mime_type",
]
