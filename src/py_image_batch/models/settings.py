"""压缩设置模型。

定义压缩质量与压缩方式，以及与设置文件共享的序列化格式。
"""

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..config import get_config
from .constants import MethodFormats, QualityDefaults


class CompressionMethod(str, Enum):
    """压缩方式枚举，值即持久化格式中的标记"""

    LOSSY = "lossy"  # JPEG 有损
    LOSSLESS = "lossless"  # PNG 无损
    WEBP_LOSSY = "webp_lossy"  # WebP 有损（推荐）
    WEBP_LOSSLESS = "webp_lossless"  # WebP 无损

    @property
    def is_quality_bearing(self) -> bool:
        """质量参数是否对该方式生效"""
        return self.value in MethodFormats.QUALITY_BEARING

    @property
    def pil_format(self) -> str:
        """对应的 Pillow 输出格式"""
        return MethodFormats.PIL_FORMATS[self.value]

    @property
    def extension(self) -> str:
        """输出文件扩展名"""
        return MethodFormats.EXTENSIONS[self.pil_format]

    @classmethod
    def parse(
        cls, token: Any, fallback: "CompressionMethod | None" = None
    ) -> "CompressionMethod":
        """解析方式标记，未知标记时返回 fallback（未提供则抛出 ValueError）"""
        if isinstance(token, cls):
            return token
        try:
            return cls(str(token).strip().lower())
        except ValueError:
            if fallback is not None:
                return fallback
            raise


class CompressionSettings(BaseModel):
    """压缩设置

    持久化格式固定为 ``{"compression_quality": 75, "method": "webp_lossy"}``，
    与设置界面共享，不可更改字段名。
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    quality: int = Field(
        75,
        ge=QualityDefaults.MIN_QUALITY,
        le=QualityDefaults.MAX_QUALITY,
        alias="compression_quality",
        description="压缩质量 1-100",
    )
    method: CompressionMethod = Field(
        CompressionMethod.WEBP_LOSSY, description="压缩方式"
    )

    @property
    def effective_quality(self) -> int | None:
        """对编码器生效的质量值，无损方式返回 None"""
        return self.quality if self.method.is_quality_bearing else None

    @classmethod
    def clamped(cls, quality: Any, method: Any) -> "CompressionSettings":
        """宽松构建：质量取整并限制在 1-100，未知方式回退到 WebP 有损

        Raises:
            ValueError: 质量不是有限数值（包括 NaN 与无穷大）
        """
        try:
            numeric = round(float(quality))
        except (TypeError, OverflowError) as e:
            raise ValueError(f"质量不是有限数值: {quality!r}") from e
        numeric = max(QualityDefaults.MIN_QUALITY, min(QualityDefaults.MAX_QUALITY, numeric))
        return cls(
            quality=numeric,
            method=CompressionMethod.parse(method, fallback=CompressionMethod.WEBP_LOSSY),
        )

    @classmethod
    def defaults(cls) -> "CompressionSettings":
        """默认设置，可被 PIB_DEFAULT_* 环境变量覆盖"""
        compression = get_config().compression
        return cls.clamped(compression.DEFAULT_QUALITY, compression.DEFAULT_METHOD)

    def to_wire(self) -> dict[str, Any]:
        """转换为持久化格式"""
        return self.model_dump(mode="json", by_alias=True)

    def to_json_bytes(self) -> bytes:
        """序列化为 JSON 字节"""
        return json.dumps(self.to_wire(), indent=2).encode("utf-8")

    def get_summary(self) -> str:
        """设置摘要"""
        if self.method.is_quality_bearing:
            return f"{self.method.value} (质量 {self.quality})"
        return f"{self.method.value}"
