"""任务调度器模块。

将输入批次和设置转换为压缩任务，顺序或并发分发，
并把结果按索引汇总为结果集。
"""

import threading
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass

from ..config import get_config
from ..core.engine import CompressionEngine, is_engine_available
from ..exceptions import (
    EmptyBatchError,
    EngineUnavailableError,
    ErrorHandler,
    InvalidSettingsError,
    OrchestratorBusyError,
)
from ..models.batch import IngestBuffer, InputImage
from ..models.compression_result import CompressionResult, JobFailureKind, ResultSet
from ..models.job import CompressionJob, JobState
from ..models.settings import CompressionSettings
from ..settings_store import SettingsStore
from ..utils.logging_helpers import get_logger
from ..utils.message_formatter import MessageFormatter
from ..utils.naming_helpers import FileNamingStrategy
from .concurrent_executor import ConcurrentExecutor, DispatchQueue


logger = get_logger()


@dataclass(frozen=True)
class RunProgress:
    """运行进度快照"""

    total: int = 0
    completed: int = 0
    succeeded: int = 0
    failed: int = 0
    running: bool = False
    cancelled: bool = False

    @property
    def pending(self) -> int:
        return self.total - self.completed


ProgressCallback = Callable[[RunProgress], None]


class _RunState:
    """单次运行的内部状态"""

    def __init__(
        self,
        jobs: list[CompressionJob],
        settings: CompressionSettings,
        concurrency: int,
    ):
        self.jobs = jobs
        self.settings = settings
        self.concurrency = concurrency
        self.queue = DispatchQueue(len(jobs))
        # 固定大小的结果槽位，每个任务只写自己的槽位
        self.slots: list[CompressionResult | None] = [None] * len(jobs)
        self.cancelled = False
        self._succeeded = 0
        self._failed = 0
        self._lock = threading.Lock()

    def record(self, job: CompressionJob) -> RunProgress:
        """登记一个完成的任务"""
        with self._lock:
            if job.state is JobState.SUCCEEDED:
                self._succeeded += 1
            else:
                self._failed += 1
            return self._progress(running=True)

    def progress(self, running: bool) -> RunProgress:
        with self._lock:
            return self._progress(running)

    def _progress(self, running: bool) -> RunProgress:
        return RunProgress(
            total=len(self.jobs),
            completed=self._succeeded + self._failed,
            succeeded=self._succeeded,
            failed=self._failed,
            running=running,
            cancelled=self.cancelled,
        )


class JobOrchestrator:
    """压缩任务调度器

    顺序与并发运行共用同一实现，concurrency 为 1 即顺序执行。
    同一时间只允许一次运行。
    """

    def __init__(
        self,
        engine: CompressionEngine,
        max_workers: int | None = None,
        on_progress: ProgressCallback | None = None,
    ):
        """初始化调度器

        Args:
            engine: 压缩引擎
            max_workers: 并发运行的默认工作线程数
            on_progress: 每个任务完成后的进度回调（在工作线程中调用）
        """
        self.engine = engine
        self.max_workers = max_workers or get_config().compression.MAX_WORKERS
        if self.max_workers < 1:
            raise InvalidSettingsError(f"max_workers 必须大于 0，得到: {self.max_workers}")
        self.on_progress = on_progress

        self._lock = threading.Lock()
        self._active: _RunState | None = None
        self._last_progress = RunProgress()

    # ------------------------------------------------------------------
    # 公共接口
    # ------------------------------------------------------------------

    def run(
        self,
        batch: IngestBuffer | Iterable[InputImage],
        settings: CompressionSettings | SettingsStore,
        concurrency: int = 1,
    ) -> ResultSet:
        """运行一个批次并返回按索引排列的结果集

        单张图片失败不会中止批次；只有前置条件不满足或引擎不可用时整体失败。

        Raises:
            EmptyBatchError: 批次为空
            InvalidSettingsError: 设置或并发数无效
            EngineUnavailableError: 引擎不可用
            OrchestratorBusyError: 已有运行中的批次
        """
        return self._execute(self._prepare(batch, settings, concurrency))

    def run_sequential(
        self,
        batch: IngestBuffer | Iterable[InputImage],
        settings: CompressionSettings | SettingsStore,
    ) -> ResultSet:
        """按索引顺序逐个压缩"""
        return self.run(batch, settings, concurrency=1)

    def run_parallel(
        self,
        batch: IngestBuffer | Iterable[InputImage],
        settings: CompressionSettings | SettingsStore,
        concurrency: int | None = None,
    ) -> ResultSet:
        """使用最多 concurrency 个工作线程并发压缩"""
        return self.run(
            batch,
            settings,
            concurrency=self.max_workers if concurrency is None else concurrency,
        )

    def start(
        self,
        batch: IngestBuffer | Iterable[InputImage],
        settings: CompressionSettings | SettingsStore,
        concurrency: int = 1,
    ) -> "Future[ResultSet]":
        """在后台线程中运行批次

        前置条件在调用线程中检查并立即抛出；返回的 Future 在全部任务结束后完成。
        """
        state = self._prepare(batch, settings, concurrency)
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pib-run")
        try:
            return executor.submit(self._execute, state)
        except BaseException:
            self._finish(state)
            raise
        finally:
            executor.shutdown(wait=False)

    def cancel(self) -> bool:
        """尽力取消当前运行

        返回时不会再有新任务开始；在途任务继续完成，未分发的任务记为
        Cancelled 失败。需要等待全部结束的调用方应等待 run/start 的返回。

        Returns:
            bool: 是否有运行被取消
        """
        with self._lock:
            state = self._active
        if state is None:
            logger.debug("没有运行中的批次，忽略取消")
            return False

        state.cancelled = True
        state.queue.close()
        logger.info(
            f"已请求取消: {state.queue.dispatched}/{len(state.jobs)} 个任务已分发"
        )
        return True

    def progress(self) -> RunProgress:
        """当前（或最近一次）运行的进度"""
        with self._lock:
            state = self._active
            last = self._last_progress
        if state is None:
            return last
        return state.progress(running=True)

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._active is not None

    # ------------------------------------------------------------------
    # 运行流程
    # ------------------------------------------------------------------

    def _prepare(
        self,
        batch: IngestBuffer | Iterable[InputImage],
        settings: CompressionSettings | SettingsStore,
        concurrency: int,
    ) -> _RunState:
        """检查前置条件、创建任务并登记为当前运行"""
        images = self._snapshot_batch(batch)
        snapshot = self._snapshot_settings(settings)

        if not isinstance(concurrency, int) or concurrency < 1:
            raise InvalidSettingsError(f"并发数必须是大于 0 的整数，得到: {concurrency}")

        if not is_engine_available(self.engine, snapshot):
            raise EngineUnavailableError(
                f"压缩引擎不可用: {type(self.engine).__name__} ({snapshot.get_summary()})"
            )

        jobs = self._create_jobs(images, snapshot)
        state = _RunState(jobs, snapshot, min(concurrency, len(jobs)))

        with self._lock:
            if self._active is not None:
                raise OrchestratorBusyError("已有批次正在运行")
            self._active = state

        logger.info(
            f"开始批次运行: {len(jobs)} 张图片, 并发 {state.concurrency}, "
            f"设置 {snapshot.get_summary()}"
        )
        return state

    def _execute(self, state: _RunState) -> ResultSet:
        """分发任务、等待结束并组装结果集"""
        try:
            executor = ConcurrentExecutor(state.concurrency)
            executor.execute(state.queue, lambda index: self._run_job(state, index))

            # 未分发的任务以 Cancelled 失败
            for job in state.jobs:
                if job.state is JobState.PENDING:
                    job.cancel()
                    state.slots[job.index] = job.to_result()
                    state.record(job)

            result_set = ResultSet(
                results=tuple(self._filled_slots(state)),
                settings=state.settings,
                cancelled=state.cancelled,
            )
        except EngineUnavailableError as e:
            logger.error(MessageFormatter.operation_failed("批次运行", "引擎", e))
            raise
        finally:
            self._finish(state)

        logger.info(
            MessageFormatter.run_finished(
                result_set.get_success_count(), len(result_set), state.cancelled
            )
        )
        return result_set

    def _run_job(self, state: _RunState, index: int) -> None:
        """执行单个任务并写入对应槽位"""
        job = state.jobs[index]
        job.start()

        try:
            output = self.engine.compress(job.input.data, job.settings)
        except EngineUnavailableError:
            job.fail(JobFailureKind.IO_ERROR, "压缩引擎不可用")
            raise
        except Exception as e:
            kind, message = ErrorHandler.handle_job_error(e, index, job.input.filename)
            job.fail(kind, message)
        else:
            if isinstance(output, bytes | bytearray | memoryview):
                job.succeed(bytes(output))
            else:
                logger.warning(
                    MessageFormatter.job_failed(
                        index, job.input.filename, "EncodeError", "引擎返回了非字节数据"
                    )
                )
                job.fail(JobFailureKind.ENCODE_ERROR, "引擎返回了非字节数据")

        state.slots[index] = job.to_result()
        progress = state.record(job)
        if self.on_progress is not None:
            self.on_progress(progress)

    def _finish(self, state: _RunState) -> None:
        with self._lock:
            if self._active is state:
                self._active = None
            self._last_progress = state.progress(running=False)

    # ------------------------------------------------------------------
    # 辅助方法
    # ------------------------------------------------------------------

    @staticmethod
    def _snapshot_batch(
        batch: IngestBuffer | Iterable[InputImage],
    ) -> tuple[InputImage, ...]:
        """取批次快照，保证索引为 0..n-1"""
        if isinstance(batch, IngestBuffer):
            return batch.require_batch()

        images = tuple(batch)
        if not images:
            raise EmptyBatchError()
        return tuple(
            image if image.index == position else image.model_copy(update={"index": position})
            for position, image in enumerate(images)
        )

    @staticmethod
    def _snapshot_settings(
        settings: CompressionSettings | SettingsStore,
    ) -> CompressionSettings:
        """取设置快照并重新校验"""
        if isinstance(settings, SettingsStore):
            settings = settings.snapshot()
        return SettingsStore.validate(settings)

    @staticmethod
    def _create_jobs(
        images: tuple[InputImage, ...], settings: CompressionSettings
    ) -> list[CompressionJob]:
        """每张图片一个任务，输出文件名在分发前按批次顺序分配"""
        names = FileNamingStrategy.assign_batch_names(
            (image.filename for image in images), settings.method.extension
        )
        return [
            CompressionJob(image, settings, name) for image, name in zip(images, names)
        ]

    @staticmethod
    def _filled_slots(state: _RunState) -> list[CompressionResult]:
        results = []
        for index, slot in enumerate(state.slots):
            if slot is None:
                # 排空后仍为空说明任务停在 Running，只可能发生在致命错误之后
                raise RuntimeError(f"结果槽位 #{index} 未填充")
            results.append(slot)
        return results
