"""压缩结果模型。

定义单张图片的压缩结果、按索引对齐的结果集以及导出报告。
"""

import base64
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any, TypedDict

from humanize import naturalsize
from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..utils.file_helpers import is_writable_directory, sniff_image_format
from ..utils.logging_helpers import get_logger
from ..utils.message_formatter import MessageFormatter
from .constants import get_mime_type
from .settings import CompressionMethod, CompressionSettings


logger = get_logger()

# 导出写入能力: (目标路径, 字节) -> None
ExportWriter = Callable[[Path, bytes], Any]


class JobFailureKind(str, Enum):
    """单个任务失败类型"""

    UNSUPPORTED_FORMAT = "UnsupportedFormat"
    ENCODE_ERROR = "EncodeError"
    IO_ERROR = "IOError"
    CANCELLED = "Cancelled"


def format_size(size_bytes: int) -> str:
    """格式化文件大小为人类可读格式"""
    return naturalsize(size_bytes, binary=True)


def _data_uri(data: bytes | None, format_name: str | None) -> str | None:
    if data is None:
        return None
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{get_mime_type(format_name)};base64,{encoded}"


class CompressionResult(BaseModel):
    """单张图片压缩结果

    compressed_size 与 error 有且仅有一个存在。
    """

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0, description="在批次中的位置")
    original_name: str = Field(description="原始文件名")
    compressed_name: str = Field(description="压缩后文件名")
    original_size: int = Field(ge=0, description="原始文件大小（字节）")
    compressed_size: int | None = Field(None, ge=0, description="压缩后文件大小（字节）")

    error: str | None = Field(None, description="错误信息")
    error_kind: JobFailureKind | None = Field(None, description="失败类型")

    # 压缩参数
    method_used: CompressionMethod | None = Field(None, description="使用的压缩方式")
    quality_used: int | None = Field(None, description="使用的质量值")

    # 原图与压缩图字节，用于预览和导出
    original_data: bytes | None = Field(None, repr=False, exclude=True)
    compressed_data: bytes | None = Field(None, repr=False, exclude=True)

    @model_validator(mode="after")
    def validate_outcome(self) -> "CompressionResult":
        if (self.compressed_size is None) == (self.error is None):
            raise ValueError("compressed_size 与 error 必须有且仅有一个")
        if self.error_kind is not None and self.error is None:
            raise ValueError("成功的结果不能带有失败类型")
        return self

    @property
    def success(self) -> bool:
        """是否成功"""
        return self.compressed_size is not None

    @property
    def reduction_percent(self) -> float | None:
        """压缩比例（百分比），失败时为 None；文件变大时为负数"""
        if self.compressed_size is None:
            return None
        if self.original_size == 0:
            return 0.0
        return (self.original_size - self.compressed_size) / self.original_size * 100

    @property
    def size_saved(self) -> int:
        """节省的字节数，失败时为 0，文件变大时为负数"""
        if self.compressed_size is None:
            return 0
        return self.original_size - self.compressed_size

    @property
    def original_preview(self) -> str | None:
        """原图预览（data URI）"""
        fmt = sniff_image_format(self.original_data) if self.original_data else None
        return _data_uri(self.original_data, fmt)

    @property
    def compressed_preview(self) -> str | None:
        """压缩图预览（data URI）"""
        fmt = self.method_used.pil_format if self.method_used else None
        return _data_uri(self.compressed_data, fmt)

    def get_original_size_human(self) -> str:
        """人类可读的原始文件大小"""
        return format_size(self.original_size)

    def get_compressed_size_human(self) -> str | None:
        """人类可读的压缩后文件大小"""
        if self.compressed_size is None:
            return None
        return format_size(self.compressed_size)

    def get_summary(self) -> str:
        """压缩结果摘要"""
        if not self.success:
            kind = self.error_kind.value if self.error_kind else "Error"
            return f"失败 [{kind}]: {self.error}"

        return (
            f"{self.get_original_size_human()} → {self.get_compressed_size_human()} "
            f"({self.reduction_percent:.1f}% 压缩)"
        )

    def to_metadata(self) -> dict[str, Any]:
        """不含字节内容的元数据视图"""
        data = self.model_dump(mode="json")
        data["success"] = self.success
        data["reduction_percent"] = self.reduction_percent
        return data


class ExportFailure(BaseModel):
    """单个文件导出失败"""

    index: int
    compressed_name: str
    error: str


class ExportReport(BaseModel):
    """导出结果报告"""

    destination: Path = Field(description="导出目录")
    written: list[Path] = Field(default_factory=list, description="已写入的文件")
    skipped: int = Field(0, description="因压缩失败而跳过的数量")
    failures: list[ExportFailure] = Field(default_factory=list, description="写入失败")

    @property
    def count(self) -> int:
        """写入成功的文件数"""
        return len(self.written)

    def get_summary(self) -> str:
        summary = f"导出 {self.count} 个文件到 {self.destination}"
        if self.skipped:
            summary += f"，跳过 {self.skipped} 个失败结果"
        if self.failures:
            summary += f"，{len(self.failures)} 个写入失败"
        return summary


def _write_bytes(path: Path, data: bytes) -> None:
    path.write_bytes(data)


class ResultSet(BaseModel):
    """一次运行的结果集

    与批次按索引对齐，运行结束后不可变，下一次运行整体替换。
    """

    model_config = ConfigDict(frozen=True)

    results: tuple[CompressionResult, ...] = Field(description="按索引排列的结果")
    settings: CompressionSettings | None = Field(None, description="本次运行的设置快照")
    cancelled: bool = Field(False, description="运行是否被取消")

    @model_validator(mode="after")
    def validate_alignment(self) -> "ResultSet":
        for position, result in enumerate(self.results):
            if result.index != position:
                raise ValueError(f"结果索引不连续: 位置 {position} 对应索引 {result.index}")
        return self

    def get(self, index: int) -> CompressionResult | None:
        """按索引获取结果，越界返回 None"""
        if 0 <= index < len(self.results):
            return self.results[index]
        return None

    def __len__(self) -> int:
        return len(self.results)

    def successful(self) -> list[CompressionResult]:
        """获取成功的结果项"""
        return [r for r in self.results if r.success]

    def failed(self) -> list[CompressionResult]:
        """获取失败的结果项"""
        return [r for r in self.results if not r.success]

    def get_success_count(self) -> int:
        return len(self.successful())

    def get_failure_count(self) -> int:
        return len(self.failed())

    def get_success_rate(self) -> float:
        """获取成功率（百分比）"""
        if not self.results:
            return 0.0
        return self.get_success_count() / len(self.results) * 100

    def get_total_original_size(self) -> int:
        return sum(r.original_size for r in self.results)

    def get_total_compressed_size(self) -> int:
        return sum(r.compressed_size or 0 for r in self.results)

    def get_total_size_saved(self) -> int:
        """成功结果的总节省字节数"""
        return sum(r.size_saved for r in self.results)

    def get_overall_reduction_percent(self) -> float:
        """成功结果的整体压缩比例"""
        original = sum(r.original_size for r in self.successful())
        if original == 0:
            return 0.0
        return self.get_total_size_saved() / original * 100

    def diagnostics(self) -> str:
        """人类可读的运行摘要，包含失败列表"""
        total = len(self.results)
        succeeded = self.get_success_count()
        lines = [
            f"处理 {succeeded}/{total} 个文件 "
            f"(成功率 {self.get_success_rate():.1f}%), "
            f"总节省 {format_size(self.get_total_size_saved())}"
        ]
        if self.settings is not None:
            lines.append(f"设置: {self.settings.get_summary()}")

        failed = self.failed()
        if failed:
            lines.append(f"失败 {len(failed)} 个:")
            lines.extend(
                f"  - #{r.index} {r.original_name} "
                f"[{r.error_kind.value if r.error_kind else 'Error'}]: {r.error}"
                for r in failed
            )
        if self.cancelled:
            cancelled = sum(
                1 for r in failed if r.error_kind == JobFailureKind.CANCELLED
            )
            lines.append(f"运行已取消，{cancelled} 个任务未执行")
        return "\n".join(lines)

    def to_metadata(self) -> list[dict[str, Any]]:
        """全部结果的元数据视图"""
        return [r.to_metadata() for r in self.results]

    def export(
        self, destination: str | Path, writer: ExportWriter | None = None
    ) -> ExportReport:
        """将成功结果的压缩字节写入目标目录

        失败结果跳过并计数；单个文件写入失败记录在报告中，继续处理其余文件。
        已写入的文件不会回滚。

        Args:
            destination: 导出目录，不存在时创建
            writer: 写入能力，默认直接写文件

        Returns:
            ExportReport: 导出报告

        Raises:
            ExportError: 目标目录不可用
        """
        from ..exceptions import ExportError

        destination = Path(destination)
        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExportError(
                MessageFormatter.operation_failed("创建导出目录", destination, e),
                destination,
            ) from e
        if not is_writable_directory(destination):
            raise ExportError(
                MessageFormatter.permission_error(destination, "写入导出目录"),
                destination,
            )

        write = writer or _write_bytes
        report = ExportReport(destination=destination)

        for result in self.results:
            if not result.success:
                report.skipped += 1
                continue

            target = destination / result.compressed_name
            try:
                if result.compressed_data is None:
                    raise ExportError("缺少压缩数据", target)
                write(target, result.compressed_data)
            except (OSError, ExportError) as e:
                logger.warning(MessageFormatter.format_error("导出文件", target, e))
                report.failures.append(
                    ExportFailure(
                        index=result.index,
                        compressed_name=result.compressed_name,
                        error=str(e),
                    )
                )
            else:
                report.written.append(target)

        logger.info(report.get_summary())
        return report


class RunOutcome(TypedDict):
    """一次运行交给展示层的结果"""

    result_set: ResultSet
    diagnostics: str
