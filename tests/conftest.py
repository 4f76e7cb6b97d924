"""测试配置文件。

提供测试所需的fixtures和配置。
"""

import tempfile
import threading
import time
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image, ImageDraw

from py_image_batch.models import InputImage
from py_image_batch.settings_store import MemorySettingsBackend, SettingsStore


def make_image_bytes(
    format: str = "PNG", size: tuple[int, int] = (120, 90), mode: str = "RGB"
) -> bytes:
    """生成带图案的测试图片字节"""
    color = (0, 0, 0, 0) if mode == "RGBA" else "white"
    img = Image.new(mode, size, color=color)
    draw = ImageDraw.Draw(img)
    for i in range(12):
        x, y = (i * 17) % size[0], (i * 11) % size[1]
        fill = (i * 20 % 256, i * 35 % 256, i * 50 % 256)
        if mode == "RGBA":
            fill = (*fill, 100 + i * 10)
        draw.rectangle([x, y, x + 25, y + 20], fill=fill)

    buffer = BytesIO()
    img.save(buffer, format=format)
    return buffer.getvalue()


class ScriptedEngine:
    """按输入字节返回预设结果的压缩引擎

    outcomes 的值为 bytes 时返回该值，为异常时抛出；未登记的输入原样返回。
    """

    def __init__(
        self,
        outcomes: dict[bytes, bytes | Exception] | None = None,
        delays: dict[bytes, float] | None = None,
        available: bool = True,
    ):
        self.outcomes = outcomes or {}
        self.delays = delays or {}
        self.available = available
        self.calls: list[tuple[bytes, object]] = []
        self._lock = threading.Lock()

    def is_available(self, settings) -> bool:
        return self.available

    def compress(self, data: bytes, settings) -> bytes:
        with self._lock:
            self.calls.append((data, settings))
        if data in self.delays:
            time.sleep(self.delays[data])
        outcome = self.outcomes.get(data, data)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def temp_dir():
    """临时目录fixture"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def sample_images() -> list[tuple[str, bytes]]:
    """三张真实图片：PNG、JPEG、带透明度的PNG"""
    return [
        ("photo.png", make_image_bytes("PNG")),
        ("photo.jpg", make_image_bytes("JPEG")),
        ("logo.png", make_image_bytes("PNG", mode="RGBA")),
    ]


@pytest.fixture
def sized_batch() -> tuple[InputImage, ...]:
    """大小分别为 1000、2000、3000 字节的批次"""
    return tuple(
        InputImage(filename=f"img{i}.png", data=bytes([65 + i]) * size, index=i)
        for i, size in enumerate((1000, 2000, 3000))
    )


@pytest.fixture
def memory_store() -> SettingsStore:
    """使用内存后端的设置存储"""
    return SettingsStore(MemorySettingsBackend())
