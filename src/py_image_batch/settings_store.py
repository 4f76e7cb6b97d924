"""设置存储模块。

持有当前生效的压缩设置，通过可替换的持久化后端读写。
"""

import json
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError as PydanticValidationError

from .config import get_config
from .exceptions import InvalidSettingsError, SettingsPersistenceError
from .models.settings import CompressionSettings
from .utils.logging_helpers import get_logger
from .utils.message_formatter import MessageFormatter


logger = get_logger()


class SettingsBackend(Protocol):
    """设置持久化后端"""

    def read(self) -> bytes | None:
        """读取原始字节，不存在时返回 None"""
        ...

    def write(self, data: bytes) -> None:
        """写入原始字节"""
        ...


class FileSettingsBackend:
    """基于 JSON 文件的持久化后端"""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path is not None else get_config().settings_path

    def read(self) -> bytes | None:
        if not self.path.exists():
            return None
        return self.path.read_bytes()

    def write(self, data: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(data)


class MemorySettingsBackend:
    """进程内后端，用于测试和嵌入式使用"""

    def __init__(self, data: bytes | None = None):
        self.data = data

    def read(self) -> bytes | None:
        return self.data

    def write(self, data: bytes) -> None:
        self.data = bytes(data)


class SettingsStore:
    """压缩设置存储

    首次访问时加载，保存时整体替换。
    """

    def __init__(self, backend: SettingsBackend | None = None):
        self.backend: SettingsBackend = backend or FileSettingsBackend()
        self._current: CompressionSettings | None = None
        self._lock = threading.Lock()

    def load(self) -> CompressionSettings:
        """读取持久化的设置

        读取失败（不存在、后端异常、损坏、内容无效）时返回默认设置，不向调用方抛出。
        """
        try:
            raw = self.backend.read()
        except Exception as e:
            logger.warning(MessageFormatter.operation_failed("读取设置", "backend", e))
            return self._remember(CompressionSettings.defaults())

        if raw is None:
            logger.debug("未找到设置，使用默认设置")
            return self._remember(CompressionSettings.defaults())

        try:
            payload = json.loads(raw)
            settings = self._from_payload(payload)
        except (ValueError, TypeError, KeyError, OverflowError) as e:
            # json.JSONDecodeError 与 UnicodeDecodeError 均为 ValueError
            logger.warning(f"设置内容无效，使用默认设置: {e}")
            settings = CompressionSettings.defaults()

        return self._remember(settings)

    def save(self, settings: CompressionSettings | Mapping[str, Any]) -> CompressionSettings:
        """校验并持久化设置

        Args:
            settings: 设置对象，或持久化格式的映射

        Returns:
            CompressionSettings: 已保存的设置

        Raises:
            InvalidSettingsError: 质量不在 1-100 或方式无效
            SettingsPersistenceError: 写入失败
        """
        validated = self.validate(settings)

        try:
            self.backend.write(validated.to_json_bytes())
        except OSError as e:
            raise SettingsPersistenceError(
                MessageFormatter.operation_failed("保存设置", "backend", e)
            ) from e

        logger.info(f"设置已保存: {validated.get_summary()}")
        return self._remember(validated)

    @staticmethod
    def validate(settings: CompressionSettings | Mapping[str, Any]) -> CompressionSettings:
        """严格校验设置，失败时抛出 InvalidSettingsError"""
        payload = (
            settings.model_dump(by_alias=True)
            if isinstance(settings, CompressionSettings)
            else dict(settings)
        )
        try:
            return CompressionSettings.model_validate(payload)
        except PydanticValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise InvalidSettingsError(f"设置无效 - {errors}") from e

    @property
    def current(self) -> CompressionSettings:
        """当前生效的设置"""
        if self._current is None:
            return self.load()
        return self._current

    def snapshot(self) -> CompressionSettings:
        """交给一次运行的设置快照"""
        return self.current.model_copy()

    def _remember(self, settings: CompressionSettings) -> CompressionSettings:
        with self._lock:
            self._current = settings
        return settings

    @staticmethod
    def _from_payload(payload: Any) -> CompressionSettings:
        if not isinstance(payload, dict):
            raise TypeError(f"设置格式错误: {type(payload).__name__}")
        quality = payload.get("compression_quality", payload.get("quality"))
        if quality is None:
            raise KeyError("compression_quality")
        return CompressionSettings.clamped(quality, payload.get("method"))
