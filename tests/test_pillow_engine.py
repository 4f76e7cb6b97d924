"""Pillow 引擎测试"""

from io import BytesIO

import pytest
from PIL import Image

from py_image_batch.core import FormatProcessor, PillowEngine, get_save_parameters
from py_image_batch.exceptions import UnsupportedFormatError
from py_image_batch.models import CompressionMethod, CompressionSettings
from tests.conftest import make_image_bytes


webp_supported = pytest.mark.skipif(
    not FormatProcessor.is_format_supported("WEBP"), reason="Pillow 未编译 WebP 支持"
)


def _open(data: bytes) -> Image.Image:
    img = Image.open(BytesIO(data))
    img.load()
    return img


class TestPillowEngine:
    """Pillow 引擎"""

    @pytest.mark.parametrize(
        ("method", "expected"),
        [
            (CompressionMethod.LOSSY, "JPEG"),
            (CompressionMethod.LOSSLESS, "PNG"),
            pytest.param(CompressionMethod.WEBP_LOSSY, "WEBP", marks=webp_supported),
            pytest.param(CompressionMethod.WEBP_LOSSLESS, "WEBP", marks=webp_supported),
        ],
    )
    def test_output_format(self, method, expected):
        engine = PillowEngine()
        output = engine.compress(
            make_image_bytes("PNG"), CompressionSettings(quality=60, method=method)
        )
        assert _open(output).format == expected

    def test_transparent_to_jpeg(self):
        engine = PillowEngine()
        output = engine.compress(
            make_image_bytes("PNG", mode="RGBA"),
            CompressionSettings(quality=80, method=CompressionMethod.LOSSY),
        )
        assert _open(output).mode == "RGB"

    def test_lower_quality_is_smaller(self):
        engine = PillowEngine()
        data = make_image_bytes("PNG", size=(300, 200))
        high = engine.compress(data, CompressionSettings(quality=95, method="lossy"))
        low = engine.compress(data, CompressionSettings(quality=10, method="lossy"))
        assert len(low) < len(high)

    def test_garbage_input(self):
        with pytest.raises(UnsupportedFormatError):
            PillowEngine().compress(
                b"definitely not an image",
                CompressionSettings(method=CompressionMethod.LOSSLESS),
            )

    def test_availability(self):
        engine = PillowEngine()
        assert engine.is_available(CompressionSettings(method=CompressionMethod.LOSSLESS))


class TestSaveParameters:
    """保存参数"""

    def test_lossless_webp_ignores_quality(self):
        params = get_save_parameters(
            CompressionSettings(quality=10, method=CompressionMethod.WEBP_LOSSLESS)
        )
        assert params["format"] == "WEBP"
        assert params["lossless"] is True

    def test_jpeg_quality(self):
        params = get_save_parameters(
            CompressionSettings(quality=42, method=CompressionMethod.LOSSY)
        )
        assert params["format"] == "JPEG"
        assert params["quality"] == 42

    def test_png_has_no_quality(self):
        params = get_save_parameters(
            CompressionSettings(quality=42, method=CompressionMethod.LOSSLESS)
        )
        assert "quality" not in params
