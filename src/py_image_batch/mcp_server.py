"""批量图像压缩 MCP 服务器。

将批量压缩、设置读写暴露为 MCP 工具。
"""

from typing import Any

from fastmcp import FastMCP

from .compressor import ImageBatchCompressor
from .exceptions import (
    CompressionError,
    EmptyBatchError,
    ExportError,
    InvalidSettingsError,
)
from .models import ResultSet
from .utils.logging_helpers import configure_logging, get_logger
from .utils.message_formatter import MessageFormatter


# MCP 服务器响应类型定义
MCPResponse = dict[str, Any]


class MCPResponseBuilder:
    """MCP 服务器响应构建器，专门用于构建符合 MCP 协议的响应格式。"""

    @staticmethod
    def error(
        message: str,
        error_type: str = "general",
        details: dict[str, Any] | None = None,
    ) -> MCPResponse:
        """构建错误结果。

        Args:
            message: 错误消息
            error_type: 错误类型
            details: 额外的错误详情

        Returns:
            dict: 标准化的错误响应
        """
        result: MCPResponse = {
            "success": False,
            "error": message,
            "error_type": error_type,
        }

        if details:
            result["details"] = details

        return result

    @staticmethod
    def validation_error(message: str, field: str | None = None) -> MCPResponse:
        """构建验证错误结果。"""
        details = {"field": field} if field else None
        return MCPResponseBuilder.error(message, "validation", details)

    @staticmethod
    def export_error(message: str, destination: str | None = None) -> MCPResponse:
        """构建导出错误结果。"""
        details = {"destination": destination} if destination else None
        return MCPResponseBuilder.error(message, "export", details)

    @staticmethod
    def processing_error(message: str, operation: str | None = None) -> MCPResponse:
        """构建处理错误结果。"""
        details = {"operation": operation} if operation else None
        return MCPResponseBuilder.error(message, "processing", details)


# 配置日志
configure_logging()
logger = get_logger(__name__)

# 创建MCP应用
mcp: FastMCP[Any] = FastMCP("批量图像压缩服务")

# 全局压缩器实例
compressor = ImageBatchCompressor()


# ============================================================================
# 压缩工具
# ============================================================================


@mcp.tool()
def compress_images(
    paths: list[str] | str,
    concurrency: int | None = None,
    export_dir: str | None = None,
    recursive: bool = False,
    include_previews: bool = False,
) -> MCPResponse:
    """批量压缩图片，使用当前保存的压缩设置

    Args:
        paths: 图片文件或目录路径（单个或列表）
        concurrency: 并发数，1 为顺序执行，默认使用配置的工作线程数
        export_dir: 导出目录（可选），提供时将成功结果写入该目录
        recursive: 目录是否递归读取
        include_previews: 是否在结果中包含 base64 预览

    Returns:
        dict: 每张图片的结果、诊断摘要和导出信息
    """
    path_list = [paths] if isinstance(paths, str) else list(paths)

    try:
        compressor.ingest_paths(path_list, recursive=recursive)
        outcome = compressor.compress(concurrency=concurrency)
    except EmptyBatchError as e:
        return MCPResponseBuilder.validation_error(e.message, "paths")
    except InvalidSettingsError as e:
        return MCPResponseBuilder.validation_error(e.message, "settings")
    except CompressionError as e:
        logger.error(MessageFormatter.operation_failed("批量压缩", path_list, e))
        return MCPResponseBuilder.processing_error(e.message, "批量压缩")
    except OSError as e:
        logger.error(MessageFormatter.operation_failed("读取图片", path_list, e))
        return MCPResponseBuilder.processing_error(str(e), "读取图片")

    response: MCPResponse = {
        "success": True,
        "diagnostics": outcome["diagnostics"],
        "skipped": list(compressor.ingest.skipped),
        "result": _format_result_set(outcome["result_set"], include_previews),
    }

    if export_dir:
        try:
            report = compressor.export(export_dir)
        except ExportError as e:
            response["export"] = MCPResponseBuilder.export_error(e.message, export_dir)
        else:
            response["export"] = {
                "success": True,
                "destination": str(report.destination),
                "count": report.count,
                "skipped": report.skipped,
                "failures": [f.model_dump() for f in report.failures],
            }

    return response


def _format_result_set(result_set: ResultSet, include_previews: bool) -> dict[str, Any]:
    """格式化结果集为MCP响应格式"""
    items = []
    for result in result_set.results:
        item = result.to_metadata()
        item["summary"] = result.get_summary()
        if include_previews:
            item["original_preview"] = result.original_preview
            item["compressed_preview"] = result.compressed_preview
        items.append(item)

    return {
        "total_files": len(result_set),
        "successful_files": result_set.get_success_count(),
        "failed_files": result_set.get_failure_count(),
        "success_rate": result_set.get_success_rate(),
        "total_size_saved": result_set.get_total_size_saved(),
        "cancelled": result_set.cancelled,
        "results": items,
    }


# ============================================================================
# 设置工具
# ============================================================================


@mcp.tool()
def get_settings() -> MCPResponse:
    """读取当前压缩设置"""
    return {"success": True, "settings": compressor.get_settings().to_wire()}


@mcp.tool()
def save_settings(compression_quality: int, method: str) -> MCPResponse:
    """保存压缩设置

    Args:
        compression_quality: 压缩质量 1-100
        method: lossy / lossless / webp_lossy / webp_lossless
    """
    try:
        saved = compressor.save_settings(
            {"compression_quality": compression_quality, "method": method}
        )
    except InvalidSettingsError as e:
        return MCPResponseBuilder.validation_error(e.message, "settings")
    except CompressionError as e:
        logger.error(MessageFormatter.operation_failed("保存设置", "settings", e))
        return MCPResponseBuilder.processing_error(e.message, "保存设置")

    return {"success": True, "settings": saved.to_wire()}


# ============================================================================
# 应用入口
# ============================================================================


def main() -> None:
    """启动 MCP 服务器"""
    logger.info("启动批量图像压缩 MCP 服务器")
    mcp.run()


if __name__ == "__main__":
    main()
