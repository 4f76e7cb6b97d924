"""输入批次模型。

定义待压缩的输入图片以及持有当前批次的缓冲区。
"""

from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..utils.file_helpers import find_image_files, sniff_image_format
from ..utils.logging_helpers import get_logger


logger = get_logger()


class InputImage(BaseModel):
    """批次中的单张输入图片"""

    model_config = ConfigDict(frozen=True)

    filename: str = Field(description="原始文件名")
    data: bytes = Field(repr=False, description="原始字节")
    index: int = Field(0, ge=0, description="在批次中的位置")

    @property
    def size(self) -> int:
        """原始大小（字节）"""
        return len(self.data)

    @property
    def detected_format(self) -> str | None:
        """根据文件头识别的格式"""
        return sniff_image_format(self.data)


ImageLike = InputImage | tuple[str, bytes] | Mapping[str, Any]


class IngestBuffer:
    """当前批次缓冲区

    批次整体替换；每次写入都从 0 重新编号。数据为空的图片被跳过，
    文件名记录在 skipped 中。
    """

    def __init__(self, images: Iterable[ImageLike] | None = None):
        self._images: tuple[InputImage, ...] = ()
        self.skipped: tuple[str, ...] = ()
        if images is not None:
            self.set(images)

    def set(self, images: Iterable[ImageLike]) -> tuple[InputImage, ...]:
        """整体替换当前批次

        Args:
            images: InputImage、(文件名, 字节) 或 {"filename", "data"} 映射

        Returns:
            tuple[InputImage, ...]: 重新编号后的批次
        """
        batch: list[InputImage] = []
        skipped: list[str] = []
        for item in images:
            filename, data = self._unpack(item)
            if not data:
                logger.warning(f"图片数据为空，已跳过: {filename}")
                skipped.append(filename)
                continue
            if sniff_image_format(data) is None:
                logger.warning(f"无法识别的图片格式，仍尝试处理: {filename}")
            batch.append(InputImage(filename=filename, data=bytes(data), index=len(batch)))

        self._images = tuple(batch)
        self.skipped = tuple(skipped)
        logger.debug(f"批次已更新: {len(self._images)} 张图片")
        return self._images

    def load_paths(
        self, paths: Iterable[str | Path], recursive: bool = False
    ) -> tuple[InputImage, ...]:
        """读取文件或目录中的图片并替换当前批次"""
        files = list(find_image_files(paths, recursive=recursive))
        return self.set((path.name, path.read_bytes()) for path in files)

    def clear(self) -> None:
        """清空批次，不影响已分发的任务"""
        self._images = ()
        self.skipped = ()

    def snapshot(self) -> tuple[InputImage, ...]:
        """交给一次运行的批次快照"""
        return self._images

    def require_batch(self) -> tuple[InputImage, ...]:
        """返回批次快照，批次为空时抛出 EmptyBatchError"""
        from ..exceptions import EmptyBatchError

        if not self._images:
            raise EmptyBatchError()
        return self._images

    @property
    def is_empty(self) -> bool:
        return not self._images

    def __len__(self) -> int:
        return len(self._images)

    def __iter__(self) -> Iterator[InputImage]:
        return iter(self._images)

    def __getitem__(self, index: int) -> InputImage:
        return self._images[index]

    @staticmethod
    def _unpack(item: ImageLike) -> tuple[str, bytes]:
        match item:
            case InputImage(filename=filename, data=data):
                return filename, data
            case (str() as filename, bytes() | bytearray() | memoryview() as data):
                return filename, bytes(data)
            case Mapping():
                return str(item["filename"]), bytes(item["data"])
            case _:
                raise TypeError(f"无法识别的输入图片: {item!r}")
