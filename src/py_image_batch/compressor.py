"""批量图像压缩器接口。

组合设置存储、输入缓冲区、任务调度器和导出协调器，
为展示层提供一次运行所需的全部操作。
"""

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from .core.engine import CompressionEngine
from .core.pillow_engine import PillowEngine
from .engine.export import ExportCoordinator
from .engine.orchestrator import JobOrchestrator, ProgressCallback
from .exceptions import ExportError
from .models import (
    CompressionSettings,
    ExportReport,
    IngestBuffer,
    ResultSet,
    RunOutcome,
)
from .models.batch import ImageLike
from .settings_store import SettingsStore
from .utils.logging_helpers import get_logger


logger = get_logger()


class ImageBatchCompressor:
    """批量图像压缩器。

    每次运行生成新的结果集并替换上一次的结果。
    """

    def __init__(
        self,
        engine: CompressionEngine | None = None,
        settings_store: SettingsStore | None = None,
        max_workers: int | None = None,
        on_progress: ProgressCallback | None = None,
    ):
        """初始化压缩器。

        Args:
            engine: 压缩引擎，默认使用 Pillow
            settings_store: 设置存储，默认使用设置文件
            max_workers: 并发运行的工作线程数
            on_progress: 任务完成回调
        """
        self.engine = engine or PillowEngine()
        self.settings_store = settings_store or SettingsStore()
        self.ingest = IngestBuffer()
        self.orchestrator = JobOrchestrator(
            self.engine, max_workers=max_workers, on_progress=on_progress
        )
        self.last_result: ResultSet | None = None

        logger.debug("初始化批量图像压缩器")

    # 输入
    def ingest_images(self, images: Iterable[ImageLike]) -> int:
        """替换当前批次，返回图片数量"""
        return len(self.ingest.set(images))

    def ingest_paths(self, paths: Iterable[str | Path], recursive: bool = False) -> int:
        """从文件或目录读取图片替换当前批次，返回图片数量"""
        return len(self.ingest.load_paths(paths, recursive=recursive))

    # 运行
    def compress(self, concurrency: int | None = None) -> RunOutcome:
        """压缩当前批次

        Args:
            concurrency: 工作线程数，默认使用 max_workers；1 为顺序执行

        Returns:
            RunOutcome: 结果集与诊断摘要

        Examples:
            >>> compressor = ImageBatchCompressor()
            >>> compressor.ingest_paths(["photos/"])
            >>> outcome = compressor.compress()
            >>> print(outcome["diagnostics"])
        """
        batch = self.ingest.require_batch()
        result_set = self.orchestrator.run(
            batch,
            self.settings_store.snapshot(),
            concurrency=(
                self.orchestrator.max_workers if concurrency is None else concurrency
            ),
        )
        self.last_result = result_set
        return RunOutcome(result_set=result_set, diagnostics=result_set.diagnostics())

    def cancel(self) -> bool:
        """取消正在进行的运行"""
        return self.orchestrator.cancel()

    # 导出
    def export(self, destination: str | Path) -> ExportReport:
        """将最近一次运行的成功结果导出到目录

        Raises:
            ExportError: 没有可导出的结果或目录不可用
        """
        if self.last_result is None:
            raise ExportError("没有可导出的结果，请先运行压缩")

        report = ExportCoordinator(lambda: destination).export(self.last_result)
        if report is None:
            raise ExportError("导出已取消")
        return report

    # 设置
    def get_settings(self) -> CompressionSettings:
        return self.settings_store.current

    def save_settings(
        self, settings: CompressionSettings | Mapping[str, Any]
    ) -> CompressionSettings:
        return self.settings_store.save(settings)
