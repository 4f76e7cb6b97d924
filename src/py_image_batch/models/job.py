"""压缩任务模型。

单张图片对应一个压缩任务，状态只能单向推进。
"""

from enum import Enum

from .batch import InputImage
from .compression_result import CompressionResult, JobFailureKind
from .settings import CompressionSettings


class JobState(str, Enum):
    """任务状态"""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.SUCCEEDED, JobState.FAILED)


# 允许的状态迁移
_TRANSITIONS: dict[JobState, frozenset[JobState]] = {
    JobState.PENDING: frozenset({JobState.RUNNING, JobState.FAILED}),
    JobState.RUNNING: frozenset({JobState.SUCCEEDED, JobState.FAILED}),
    JobState.SUCCEEDED: frozenset(),
    JobState.FAILED: frozenset(),
}


class CompressionJob:
    """单个压缩任务

    持有自己的设置快照；任务只写入自己的结果槽位。
    """

    def __init__(
        self,
        input_image: InputImage,
        settings: CompressionSettings,
        compressed_name: str,
    ):
        self.input = input_image
        # 冻结模型的副本，运行中修改设置不会影响已创建的任务
        self.settings = settings.model_copy()
        self.compressed_name = compressed_name
        self.state = JobState.PENDING
        self.output: bytes | None = None
        self.error: str | None = None
        self.error_kind: JobFailureKind | None = None

    @property
    def index(self) -> int:
        return self.input.index

    def _transition(self, target: JobState) -> None:
        from ..exceptions import InvalidStateTransition

        if target not in _TRANSITIONS[self.state]:
            raise InvalidStateTransition(self.index, self.state.value, target.value)
        self.state = target

    def start(self) -> None:
        """Pending → Running"""
        self._transition(JobState.RUNNING)

    def succeed(self, output: bytes) -> None:
        """Running → Succeeded"""
        self._transition(JobState.SUCCEEDED)
        self.output = bytes(output)

    def fail(self, kind: JobFailureKind, message: str) -> None:
        """Pending/Running → Failed"""
        self._transition(JobState.FAILED)
        self.error_kind = kind
        self.error = message

    def cancel(self) -> None:
        """未分发的任务以 Cancelled 失败"""
        self.fail(JobFailureKind.CANCELLED, "任务已取消")

    def to_result(self) -> CompressionResult:
        """将终态任务转换为压缩结果"""
        if not self.state.is_terminal:
            from ..exceptions import InvalidStateTransition

            raise InvalidStateTransition(self.index, self.state.value, "result")

        return CompressionResult(
            index=self.index,
            original_name=self.input.filename,
            compressed_name=self.compressed_name,
            original_size=self.input.size,
            compressed_size=len(self.output) if self.output is not None else None,
            error=self.error,
            error_kind=self.error_kind,
            method_used=self.settings.method,
            quality_used=self.settings.effective_quality,
            original_data=self.input.data,
            compressed_data=self.output,
        )

    def __repr__(self) -> str:
        return (
            f"CompressionJob(index={self.index}, "
            f"filename={self.input.filename!r}, state={self.state.value})"
        )
