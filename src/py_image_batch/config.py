"""统一配置管理模块。

提供应用程序的全局配置管理，包括默认值、环境变量支持等。
"""

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CompressionDefaults:
    """压缩相关的默认配置"""

    # 与设置持久化格式保持一致的默认值
    DEFAULT_QUALITY: int = 75
    DEFAULT_METHOD: str = "webp_lossy"

    # 并发设置
    MAX_WORKERS: int = 4

    # 编码器参数
    WEBP_METHOD: int = 6
    PNG_COMPRESS_LEVEL: int = 9
    JPEG_PROGRESSIVE: bool = True


@dataclass(frozen=True)
class ProcessingDefaults:
    """处理相关的默认配置"""

    # 压缩后文件名后缀
    COMPRESSED_SUFFIX: str = "_compressed"

    # 设置文件位置
    SETTINGS_PATH: str = str(Path.home() / ".py_image_batch" / "settings.json")


@dataclass(frozen=True)
class LoggingDefaults:
    """日志相关的默认配置"""

    # 日志级别
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # 文件日志
    ENABLE_FILE_LOGGING: bool = False
    LOG_FILE_PATH: str = "py_image_batch.log"
    LOG_FILE_MAX_SIZE: int = 10 * 1024 * 1024  # 10MB
    LOG_FILE_BACKUP_COUNT: int = 5


class AppConfig:
    """应用程序配置管理器

    支持环境变量覆盖默认配置
    """

    def __init__(self):
        self.compression = CompressionDefaults()
        self.processing = ProcessingDefaults()
        self.logging = LoggingDefaults()

        # 从环境变量加载配置
        self._load_from_env()

    def _load_from_env(self):
        """从环境变量加载配置"""
        # 压缩配置
        if quality := os.getenv("PIB_DEFAULT_QUALITY"):
            object.__setattr__(self.compression, "DEFAULT_QUALITY", int(quality))

        if method := os.getenv("PIB_DEFAULT_METHOD"):
            object.__setattr__(self.compression, "DEFAULT_METHOD", method.lower())

        if max_workers := os.getenv("PIB_MAX_WORKERS"):
            object.__setattr__(self.compression, "MAX_WORKERS", int(max_workers))

        # 处理配置
        if settings_path := os.getenv("PIB_SETTINGS_PATH"):
            object.__setattr__(self.processing, "SETTINGS_PATH", settings_path)

        # 日志配置
        if log_level := os.getenv("PIB_LOG_LEVEL"):
            object.__setattr__(self.logging, "LOG_LEVEL", log_level.upper())

        if enable_file_log := os.getenv("PIB_ENABLE_FILE_LOGGING"):
            object.__setattr__(
                self.logging,
                "ENABLE_FILE_LOGGING",
                enable_file_log.lower() in ("true", "1", "yes"),
            )

    @property
    def settings_path(self) -> Path:
        """设置文件路径"""
        return Path(self.processing.SETTINGS_PATH).expanduser()


# 全局配置实例
config = AppConfig()


def get_config() -> AppConfig:
    """获取全局配置实例"""
    return config


def reset_config():
    """重置配置（主要用于测试）"""
    global config
    config = AppConfig()
