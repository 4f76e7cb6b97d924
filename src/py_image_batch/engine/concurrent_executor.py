"""并发执行器模块。

提供有界的拉取式工作池：每个工作线程从分发队列中取下一个任务索引执行，
队列关闭后不再有新任务开始。
"""

import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

from ..utils.logging_helpers import get_logger


logger = get_logger()


class DispatchQueue:
    """按索引顺序分发任务的队列

    take 与 close 使用同一把锁，close 返回后不会再分发新的索引。
    """

    def __init__(self, count: int):
        self.count = count
        self._next = 0
        self._closed = False
        self._lock = threading.Lock()

    def take(self) -> int | None:
        """取下一个未分发的索引，队列关闭或耗尽时返回 None"""
        with self._lock:
            if self._closed or self._next >= self.count:
                return None
            index = self._next
            self._next += 1
            return index

    def close(self) -> None:
        """停止分发"""
        with self._lock:
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def dispatched(self) -> int:
        """已分发的任务数"""
        return self._next


class ConcurrentExecutor:
    """有界并发执行器

    max_workers 为 1 时在调用线程中顺序执行。
    """

    def __init__(self, max_workers: int = 4):
        """初始化并发执行器

        Args:
            max_workers: 最大并发数
        """
        if max_workers < 1:
            raise ValueError(f"max_workers 必须大于 0，得到: {max_workers}")
        self.max_workers = max_workers

    def execute(self, queue: DispatchQueue, task: Callable[[int], None]) -> None:
        """执行队列中的全部任务，等待所有工作线程结束

        任一任务抛出的异常会关闭队列，等在途任务完成后重新抛出。

        Args:
            queue: 分发队列
            task: 接收任务索引的函数
        """
        if self.max_workers == 1:
            self._worker(queue, task)
            return

        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="pib-worker"
        ) as executor:
            futures = [
                executor.submit(self._worker, queue, task)
                for _ in range(self.max_workers)
            ]

        errors = [f.exception() for f in futures if f.exception() is not None]
        if errors:
            if len(errors) > 1:
                logger.debug(f"{len(errors)} 个工作线程异常退出，抛出第一个")
            raise errors[0]

    @staticmethod
    def _worker(queue: DispatchQueue, task: Callable[[int], None]) -> None:
        """工作线程循环：取索引、执行，直到队列关闭或耗尽"""
        while (index := queue.take()) is not None:
            try:
                task(index)
            except BaseException:
                queue.close()
                raise
