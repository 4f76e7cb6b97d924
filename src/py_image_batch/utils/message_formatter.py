"""消息格式化工具模块。

提供统一的错误消息、运行消息格式化功能。
"""

from pathlib import Path
from typing import Any


class MessageFormatter:
    """统一的消息格式化器"""

    @staticmethod
    def file_not_found(file_path: str | Path) -> str:
        """文件不存在错误消息"""
        return f"文件不存在: {file_path}"

    @staticmethod
    def permission_error(path: str | Path, operation: str = "访问") -> str:
        """权限错误消息"""
        return f"权限错误，无法{operation}: {path}"

    @staticmethod
    def operation_failed(
        operation: str, target: Any, error: Exception | None = None
    ) -> str:
        """操作失败消息"""
        msg = f"{operation}失败: {target}"
        if error:
            msg += f" - {error}"
        return msg

    @staticmethod
    def format_error(operation: str, target: str | Path, error: Exception) -> str:
        """格式化通用错误消息"""
        return f"{operation}失败 [{target}]: {error}"

    @staticmethod
    def job_target(index: int, filename: str) -> str:
        """任务标识：索引 + 文件名"""
        return f"#{index} {filename}"

    @staticmethod
    def job_failed(index: int, filename: str, kind: str, error: Any) -> str:
        """单个任务失败消息"""
        return f"任务失败 [{MessageFormatter.job_target(index, filename)}] {kind}: {error}"

    @staticmethod
    def run_finished(succeeded: int, total: int, cancelled: bool = False) -> str:
        """批次运行结束消息"""
        msg = f"批次运行结束: 成功 {succeeded}/{total}"
        if cancelled:
            msg += " (已取消)"
        return msg
