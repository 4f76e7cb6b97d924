"""数据模型测试。

测试设置、输入批次、任务状态和压缩结果模型。
"""

import pytest
from pydantic import ValidationError

from py_image_batch.exceptions import InvalidStateTransition
from py_image_batch.models import (
    CompressionJob,
    CompressionMethod,
    CompressionResult,
    CompressionSettings,
    IngestBuffer,
    InputImage,
    JobFailureKind,
    JobState,
)
from py_image_batch.utils import FileNamingStrategy, sniff_image_format
from tests.conftest import make_image_bytes


class TestCompressionSettings:
    """压缩设置测试"""

    def test_defaults(self):
        settings = CompressionSettings()
        assert settings.quality == 75
        assert settings.method is CompressionMethod.WEBP_LOSSY

    def test_wire_format(self):
        """持久化格式字段名固定"""
        settings = CompressionSettings(quality=60, method=CompressionMethod.LOSSY)
        assert settings.to_wire() == {"compression_quality": 60, "method": "lossy"}

    def test_populate_by_wire_name(self):
        settings = CompressionSettings.model_validate(
            {"compression_quality": 40, "method": "webp_lossless"}
        )
        assert settings.quality == 40
        assert settings.method is CompressionMethod.WEBP_LOSSLESS

    @pytest.mark.parametrize("quality", [0, 101])
    def test_quality_out_of_range_rejected(self, quality):
        with pytest.raises(ValidationError):
            CompressionSettings(quality=quality)

    def test_clamped(self):
        """宽松构建：浮点取整、越界限制、未知方式回退"""
        assert CompressionSettings.clamped(75.4, "lossy").quality == 75
        assert CompressionSettings.clamped(0, "lossy").quality == 1
        assert CompressionSettings.clamped(250, "lossy").quality == 100
        assert (
            CompressionSettings.clamped(50, "gif").method is CompressionMethod.WEBP_LOSSY
        )

    @pytest.mark.parametrize("quality", [float("inf"), float("nan"), "high", None])
    def test_clamped_rejects_non_finite(self, quality):
        with pytest.raises(ValueError):
            CompressionSettings.clamped(quality, "lossy")

    def test_effective_quality(self):
        assert CompressionSettings(quality=30, method="lossy").effective_quality == 30
        assert CompressionSettings(quality=30, method="lossless").effective_quality is None

    @pytest.mark.parametrize(
        ("method", "extension", "bearing"),
        [
            (CompressionMethod.LOSSY, ".jpg", True),
            (CompressionMethod.LOSSLESS, ".png", False),
            (CompressionMethod.WEBP_LOSSY, ".webp", True),
            (CompressionMethod.WEBP_LOSSLESS, ".webp", False),
        ],
    )
    def test_method_properties(self, method, extension, bearing):
        assert method.extension == extension
        assert method.is_quality_bearing is bearing


class TestCompressionResult:
    """压缩结果测试"""

    def _result(self, **kwargs) -> CompressionResult:
        defaults = {
            "index": 0,
            "original_name": "a.png",
            "compressed_name": "a_compressed.webp",
            "original_size": 1000,
        }
        defaults.update(kwargs)
        return CompressionResult(**defaults)

    def test_size_xor_error(self):
        with pytest.raises(ValidationError):
            self._result()
        with pytest.raises(ValidationError):
            self._result(compressed_size=500, error="boom")

    def test_reduction_percent(self):
        assert self._result(compressed_size=500).reduction_percent == 50.0
        assert self._result(compressed_size=1000).reduction_percent == 0.0

    def test_reduction_negative_when_larger(self):
        """压缩后变大时如实记录为负数"""
        result = self._result(compressed_size=1500)
        assert result.reduction_percent == -50.0
        assert result.size_saved == -500

    def test_reduction_absent_on_failure(self):
        result = self._result(error="boom", error_kind=JobFailureKind.ENCODE_ERROR)
        assert not result.success
        assert result.reduction_percent is None
        assert result.compressed_size is None
        assert "EncodeError" in result.get_summary()

    def test_zero_original_size(self):
        assert self._result(original_size=0, compressed_size=0).reduction_percent == 0.0

    def test_previews(self):
        png = make_image_bytes("PNG", size=(8, 8))
        result = self._result(
            original_size=len(png),
            compressed_size=3,
            method_used=CompressionMethod.WEBP_LOSSY,
            original_data=png,
            compressed_data=b"abc",
        )
        assert result.original_preview.startswith("data:image/png;base64,")
        assert result.compressed_preview == "data:image/webp;base64,YWJj"

    def test_metadata_excludes_bytes(self):
        result = self._result(compressed_size=3, compressed_data=b"abc")
        metadata = result.to_metadata()
        assert "compressed_data" not in metadata
        assert metadata["success"] is True
        assert metadata["reduction_percent"] == pytest.approx(99.7)


class TestIngestBuffer:
    """输入缓冲区测试"""

    def test_set_renumbers_from_zero(self):
        buffer = IngestBuffer()
        buffer.set([("a.png", b"\x89PNGa"), ("b.png", b"\x89PNGb")])
        buffer.set([("c.png", b"\x89PNGc"), {"filename": "d.png", "data": b"\x89PNGd"}])
        assert [img.index for img in buffer] == [0, 1]
        assert [img.filename for img in buffer] == ["c.png", "d.png"]

    def test_accepts_input_images_and_reindexes(self):
        image = InputImage(filename="x.jpg", data=b"\xff\xd8\xffx", index=7)
        buffer = IngestBuffer([image])
        assert buffer[0].index == 0
        assert buffer[0].data == image.data

    def test_clear_and_require(self):
        from py_image_batch.exceptions import EmptyBatchError

        buffer = IngestBuffer([("a.png", b"\x89PNG")])
        snapshot = buffer.snapshot()
        buffer.clear()
        assert buffer.is_empty
        assert len(snapshot) == 1
        with pytest.raises(EmptyBatchError):
            buffer.require_batch()

    def test_empty_image_skipped(self):
        """数据为空的图片被跳过，其余图片照常编号"""
        buffer = IngestBuffer()
        batch = buffer.set(
            [("a.png", b"\x89PNGa"), ("empty.png", b""), ("c.png", b"\x89PNGc")]
        )
        assert [(img.index, img.filename) for img in batch] == [(0, "a.png"), (1, "c.png")]
        assert buffer.skipped == ("empty.png",)

        buffer.clear()
        assert buffer.skipped == ()

    def test_load_paths_skips_empty_file(self, temp_dir):
        (temp_dir / "a.png").write_bytes(make_image_bytes("PNG"))
        (temp_dir / "b.png").write_bytes(b"")

        buffer = IngestBuffer()
        assert len(buffer.load_paths([temp_dir])) == 1
        assert buffer.skipped == ("b.png",)

    def test_load_paths(self, temp_dir):
        (temp_dir / "b.png").write_bytes(make_image_bytes("PNG"))
        (temp_dir / "a.jpg").write_bytes(make_image_bytes("JPEG"))
        (temp_dir / "notes.txt").write_text("not an image")

        buffer = IngestBuffer()
        batch = buffer.load_paths([temp_dir])
        assert [img.filename for img in batch] == ["a.jpg", "b.png"]
        assert batch[0].detected_format == "JPEG"


class TestCompressionJob:
    """任务状态测试"""

    def _job(self) -> CompressionJob:
        image = InputImage(filename="a.png", data=b"x" * 10, index=0)
        return CompressionJob(image, CompressionSettings(), "a_compressed.webp")

    def test_success_path(self):
        job = self._job()
        job.start()
        job.succeed(b"yy")
        result = job.to_result()
        assert job.state is JobState.SUCCEEDED
        assert result.compressed_size == 2
        assert result.reduction_percent == 80.0

    def test_cancel_pending(self):
        job = self._job()
        job.cancel()
        result = job.to_result()
        assert result.error_kind is JobFailureKind.CANCELLED

    def test_no_regression(self):
        job = self._job()
        job.start()
        job.fail(JobFailureKind.IO_ERROR, "disk")
        with pytest.raises(InvalidStateTransition):
            job.start()
        with pytest.raises(InvalidStateTransition):
            job.succeed(b"late")

    def test_result_requires_terminal_state(self):
        with pytest.raises(InvalidStateTransition):
            self._job().to_result()

    def test_settings_snapshot_is_copy(self):
        settings = CompressionSettings(quality=10)
        job = CompressionJob(InputImage(filename="a", data=b"a"), settings, "a")
        assert job.settings == settings
        assert job.settings is not settings


class TestHelpers:
    """工具函数测试"""

    def test_batch_names_deduplicated(self):
        names = FileNamingStrategy.assign_batch_names(
            ["photo.png", "photo.jpg", "dir/photo.gif", "other.bmp"], ".webp"
        )
        assert names == [
            "photo_compressed.webp",
            "photo_compressed_1.webp",
            "photo_compressed_2.webp",
            "other_compressed.webp",
        ]

    @pytest.mark.parametrize(
        ("fmt", "expected"), [("PNG", "PNG"), ("JPEG", "JPEG"), ("GIF", "GIF"), ("BMP", "BMP")]
    )
    def test_sniff_image_format(self, fmt, expected):
        assert sniff_image_format(make_image_bytes(fmt, size=(4, 4))) == expected

    def test_sniff_unknown(self):
        assert sniff_image_format(b"hello") is None
        assert sniff_image_format(b"RIFF\x00\x00\x00\x00WEBPVP8 ") == "WEBP"
