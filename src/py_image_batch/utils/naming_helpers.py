"""文件命名工具模块。

提供压缩输出的文件命名策略。
"""

import itertools
from collections.abc import Iterable
from pathlib import PurePath

from ..config import get_config


class FileNamingStrategy:
    """文件命名策略类"""

    @staticmethod
    def generate_output_name(
        original_name: str, extension: str, suffix: str | None = None
    ) -> str:
        """生成输出文件名：``{stem}{suffix}{ext}``

        Args:
            original_name: 原始文件名
            extension: 输出扩展名（含点）
            suffix: 自定义后缀，默认 ``_compressed``

        Returns:
            str: 生成的文件名（不含路径）
        """
        if suffix is None:
            suffix = get_config().processing.COMPRESSED_SUFFIX
        # 只取文件名部分，避免输入中携带目录
        stem = PurePath(original_name).stem or "image"
        return f"{stem}{suffix}{extension}"

    @staticmethod
    def deduplicate(name: str, taken: set[str]) -> str:
        """若名称已被占用，追加 _1、_2 … 直到唯一，并登记到 taken"""
        if name not in taken:
            taken.add(name)
            return name

        path = PurePath(name)
        for counter in itertools.count(1):
            candidate = f"{path.stem}_{counter}{path.suffix}"
            if candidate not in taken:
                taken.add(candidate)
                return candidate

        # 理论上永远不会到达这里，但为了类型检查器
        return name  # pragma: no cover

    @staticmethod
    def assign_batch_names(
        original_names: Iterable[str], extension: str
    ) -> list[str]:
        """按批次顺序为每个输入分配唯一的输出文件名"""
        taken: set[str] = set()
        return [
            FileNamingStrategy.deduplicate(
                FileNamingStrategy.generate_output_name(name, extension), taken
            )
            for name in original_names
        ]
