"""设置存储测试"""

import json

import pytest

from py_image_batch.config import reset_config
from py_image_batch.exceptions import InvalidSettingsError, SettingsPersistenceError
from py_image_batch.models import CompressionMethod, CompressionSettings
from py_image_batch.settings_store import (
    FileSettingsBackend,
    MemorySettingsBackend,
    SettingsStore,
)


class _FailingBackend:
    """读写都失败的后端"""

    def read(self) -> bytes | None:
        raise PermissionError("denied")

    def write(self, data: bytes) -> None:
        raise OSError("disk full")


class TestLoad:
    """读取设置"""

    def test_missing_returns_defaults(self, memory_store):
        settings = memory_store.load()
        assert settings.quality == 75
        assert settings.method is CompressionMethod.WEBP_LOSSY

    @pytest.mark.parametrize(
        "raw",
        [
            b"not json",
            b"[1, 2]",
            b'{"method": "lossy"}',
            b"\xff\xfe",
            b'{"compression_quality": 1e999, "method": "lossy"}',
            b'{"compression_quality": Infinity, "method": "lossy"}',
            b'{"compression_quality": NaN, "method": "lossy"}',
            b'{"compression_quality": "high", "method": "lossy"}',
        ],
    )
    def test_corrupt_returns_defaults(self, raw):
        store = SettingsStore(MemorySettingsBackend(raw))
        assert store.load() == CompressionSettings()

    def test_read_error_returns_defaults(self):
        assert SettingsStore(_FailingBackend()).load() == CompressionSettings()

    def test_backend_exception_returns_defaults(self):
        """自定义后端抛出任意异常时同样回退到默认设置"""

        class _BrokenBackend:
            def read(self) -> bytes | None:
                raise RuntimeError("connection lost")

            def write(self, data: bytes) -> None:
                pass

        assert SettingsStore(_BrokenBackend()).load() == CompressionSettings()

    def test_float_quality_clamped(self):
        raw = json.dumps({"compression_quality": 150.7, "method": "lossy"}).encode()
        settings = SettingsStore(MemorySettingsBackend(raw)).load()
        assert settings.quality == 100
        assert settings.method is CompressionMethod.LOSSY

    def test_unknown_method_falls_back(self):
        raw = json.dumps({"compression_quality": 40, "method": "avif"}).encode()
        settings = SettingsStore(MemorySettingsBackend(raw)).load()
        assert settings.quality == 40
        assert settings.method is CompressionMethod.WEBP_LOSSY


class TestSave:
    """保存设置"""

    @pytest.mark.parametrize("quality", [1, 100])
    def test_boundaries_accepted(self, memory_store, quality):
        saved = memory_store.save({"compression_quality": quality, "method": "lossy"})
        assert saved.quality == quality
        assert memory_store.load().quality == quality

    @pytest.mark.parametrize("quality", [0, 101, -5])
    def test_out_of_range_rejected(self, memory_store, quality):
        with pytest.raises(InvalidSettingsError):
            memory_store.save({"compression_quality": quality, "method": "lossy"})
        # 校验失败不写入
        assert memory_store.backend.data is None

    def test_invalid_method_rejected(self, memory_store):
        with pytest.raises(InvalidSettingsError):
            memory_store.save({"compression_quality": 50, "method": "gif"})

    def test_constructed_invalid_settings_rejected(self, memory_store):
        invalid = CompressionSettings.model_construct(
            compression_quality=0, method=CompressionMethod.LOSSY
        )
        with pytest.raises(InvalidSettingsError):
            memory_store.save(invalid)

    def test_wire_format_on_disk(self, temp_dir):
        path = temp_dir / "nested" / "settings.json"
        store = SettingsStore(FileSettingsBackend(path))
        store.save(CompressionSettings(quality=60, method=CompressionMethod.LOSSLESS))

        assert json.loads(path.read_text()) == {
            "compression_quality": 60,
            "method": "lossless",
        }
        assert SettingsStore(FileSettingsBackend(path)).load().quality == 60

    def test_write_failure(self):
        store = SettingsStore(_FailingBackend())
        with pytest.raises(SettingsPersistenceError):
            store.save(CompressionSettings())

    def test_current_and_snapshot(self, memory_store):
        assert memory_store.current == CompressionSettings()
        memory_store.save({"compression_quality": 33, "method": "webp_lossless"})

        snapshot = memory_store.snapshot()
        assert snapshot.quality == 33
        memory_store.save({"compression_quality": 90, "method": "lossy"})
        # 快照不受之后的保存影响
        assert snapshot.quality == 33
        assert memory_store.current.quality == 90


class TestEnvironmentDefaults:
    """环境变量覆盖默认设置"""

    @pytest.fixture(autouse=True)
    def _restore_config(self):
        yield
        reset_config()

    def test_default_overrides(self, monkeypatch, temp_dir):
        monkeypatch.setenv("PIB_DEFAULT_QUALITY", "60")
        monkeypatch.setenv("PIB_DEFAULT_METHOD", "LOSSY")
        monkeypatch.setenv("PIB_SETTINGS_PATH", str(temp_dir / "custom.json"))
        reset_config()

        assert SettingsStore(MemorySettingsBackend()).load() == CompressionSettings(
            quality=60, method=CompressionMethod.LOSSY
        )
        assert FileSettingsBackend().path == temp_dir / "custom.json"
