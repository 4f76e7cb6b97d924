"""导出协调器模块。

向用户获取导出目录并委托结果集写入，不做重试。
"""

from collections.abc import Callable
from pathlib import Path

from ..models.compression_result import ExportReport, ExportWriter, ResultSet
from ..utils.logging_helpers import get_logger


logger = get_logger()

# 目录选择器：返回 None 表示用户取消
DestinationProvider = Callable[[], str | Path | None]


class ExportCoordinator:
    """导出协调器"""

    def __init__(
        self,
        choose_destination: DestinationProvider,
        writer: ExportWriter | None = None,
    ):
        """初始化导出协调器

        Args:
            choose_destination: 目录选择器
            writer: 写入能力，默认直接写文件
        """
        self.choose_destination = choose_destination
        self.writer = writer

    def export(self, result_set: ResultSet) -> ExportReport | None:
        """导出结果集

        Returns:
            ExportReport | None: 导出报告，用户取消选择目录时返回 None

        Raises:
            ExportError: 目标目录不可用
        """
        destination = self.choose_destination()
        if destination is None:
            logger.info("用户取消了导出")
            return None

        report = result_set.export(destination, writer=self.writer)
        for failure in report.failures:
            logger.warning(
                f"导出失败 [#{failure.index} {failure.compressed_name}]: {failure.error}"
            )
        return report
