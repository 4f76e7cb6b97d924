"""压缩引擎接口。

调度器只依赖这里定义的能力：给定图片字节和设置，返回压缩后的字节。
"""

from typing import Protocol, runtime_checkable

from ..models.settings import CompressionSettings


@runtime_checkable
class CompressionEngine(Protocol):
    """压缩引擎能力

    compress 失败时抛出 UnsupportedFormatError、EncodeError 或 OSError；
    引擎整体不可用时抛出 EngineUnavailableError。
    """

    def compress(self, data: bytes, settings: CompressionSettings) -> bytes: ...


def is_engine_available(engine: object, settings: CompressionSettings) -> bool:
    """检查引擎是否可以处理给定设置，未实现 is_available 的引擎视为可用"""
    if not callable(getattr(engine, "compress", None)):
        return False
    probe = getattr(engine, "is_available", None)
    if probe is None:
        return True
    return bool(probe(settings))
