"""批量压缩处理引擎模块。

包含任务调度、并发执行和结果导出等核心处理逻辑。
"""

from .concurrent_executor import ConcurrentExecutor, DispatchQueue
from .export import ExportCoordinator
from .orchestrator import JobOrchestrator, RunProgress


__all__ = [
    "ConcurrentExecutor",
    "DispatchQueue",
    "ExportCoordinator",
    "JobOrchestrator",
    "RunProgress",
]
