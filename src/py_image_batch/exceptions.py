"""图像批量压缩异常处理模块。

定义统一的异常类和错误处理机制，包含 Pillow 异常转换装饰器。
"""

from collections.abc import Callable
from functools import wraps
from typing import TYPE_CHECKING, TypeVar

from PIL.Image import DecompressionBombError, UnidentifiedImageError

from .utils.logging_helpers import get_logger
from .utils.message_formatter import MessageFormatter


if TYPE_CHECKING:
    from .models.job import JobFailureKind


logger = get_logger()
T = TypeVar("T")


# 统一的异常类型
class CompressionError(Exception):
    """压缩相关错误基类"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidSettingsError(CompressionError):
    """设置无效 - 运行级前置条件错误，运行在分发前中止"""

    pass


class EmptyBatchError(CompressionError):
    """批次为空，不会创建任何任务"""

    def __init__(self, message: str = "批次为空，没有可压缩的图片"):
        super().__init__(message)


class EngineUnavailableError(CompressionError):
    """压缩引擎不可用 - 运行级错误，快速失败"""

    pass


class OrchestratorBusyError(CompressionError):
    """同一调度器上已有运行中的批次"""

    pass


class InvalidStateTransition(CompressionError):
    """任务状态回退或非法跳转"""

    def __init__(self, index: int, current: str, target: str):
        super().__init__(f"任务 #{index} 状态不能从 {current} 变为 {target}")
        self.index = index
        self.current = current
        self.target = target


class ExportError(CompressionError):
    """导出目标不可用"""

    def __init__(self, message: str, destination: object | None = None):
        super().__init__(message)
        self.destination = destination


class SettingsPersistenceError(CompressionError):
    """设置写入失败"""

    pass


# 引擎侧错误 - 单个任务失败，记录在结果集中
class UnsupportedFormatError(CompressionError):
    """不支持的格式错误"""

    pass


class EncodeError(CompressionError):
    """编码失败"""

    pass


class EngineIOError(CompressionError, OSError):
    """引擎读写失败"""

    pass


# Pillow 异常转换装饰器
def handle_image_errors(operation_name: str = "图像编码"):
    """将 Pillow 抛出的异常转换为引擎错误类型

    Args:
        operation_name: 操作名称，用于日志记录
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except CompressionError:
                raise
            except UnidentifiedImageError as e:
                logger.debug(f"{operation_name} - 无法识别图像格式: {e}")
                raise UnsupportedFormatError(f"不支持的图像格式: {e}") from e
            except DecompressionBombError as e:
                logger.debug(f"{operation_name} - 图像过大: {e}")
                raise EncodeError(f"图像文件过大，可能存在安全风险: {e}") from e
            except OSError as e:
                logger.debug(f"{operation_name} - 读写失败: {e}")
                raise EngineIOError(f"读写失败: {e}") from e
            except (ValueError, TypeError, KeyError) as e:
                logger.debug(f"{operation_name} - 编码参数错误: {e}")
                raise EncodeError(f"编码失败: {e}") from e

        return wrapper

    return decorator


class ErrorHandler:
    """统一错误处理器

    提供任务失败分类和标准化的错误日志记录。
    """

    @staticmethod
    def _log_error(
        operation: str, target: str, error: Exception, level: str = "error"
    ) -> None:
        """标准化的错误日志记录

        Args:
            operation: 操作名称（如"图像压缩"、"文件导出"等）
            target: 相关对象描述
            error: 异常对象
            level: 日志级别 ("error", "warning", "debug")
        """
        log_msg = MessageFormatter.format_error(operation, target, error)
        getattr(logger, level, logger.error)(log_msg)

    @staticmethod
    def classify(error: BaseException) -> "JobFailureKind":
        """将单个任务的异常归类为失败类型"""
        from .models.job import JobFailureKind

        match error:
            case UnsupportedFormatError():
                return JobFailureKind.UNSUPPORTED_FORMAT
            case EncodeError():
                return JobFailureKind.ENCODE_ERROR
            case OSError():
                return JobFailureKind.IO_ERROR
            case _:
                return JobFailureKind.ENCODE_ERROR

    @staticmethod
    def describe(error: BaseException) -> str:
        """提取用于结果展示的错误消息"""
        if isinstance(error, CompressionError):
            return error.message
        return str(error) or type(error).__name__

    @staticmethod
    def handle_job_error(
        error: Exception, index: int, filename: str
    ) -> tuple["JobFailureKind", str]:
        """记录任务失败并返回 (失败类型, 错误消息)"""
        kind = ErrorHandler.classify(error)
        message = ErrorHandler.describe(error)
        # 未预期的异常类型按错误级别记录
        level = (
            "warning" if isinstance(error, (CompressionError, OSError)) else "error"
        )
        ErrorHandler._log_error(
            f"图像压缩 ({kind.value})",
            MessageFormatter.job_target(index, filename),
            error,
            level,
        )
        return kind, message
