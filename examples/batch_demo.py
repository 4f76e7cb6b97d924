#!/usr/bin/env python3
"""批量压缩演示脚本。

展示 py_image_batch 库的核心功能，包括：
- 生成演示图片并读入批次
- 四种压缩方式对比
- 顺序与并发运行
- 取消运行
- 导出成功结果
"""

import threading
from io import BytesIO
from pathlib import Path

from PIL import Image, ImageDraw

from py_image_batch import (
    CompressionMethod,
    CompressionSettings,
    ImageBatchCompressor,
    IngestBuffer,
    JobOrchestrator,
    PillowEngine,
)
from py_image_batch.settings_store import MemorySettingsBackend, SettingsStore


def get_output_dir(subdir: str = "") -> Path:
    """获取输出目录 - 使用项目的 tmp 目录"""
    project_root = Path(__file__).parent.parent
    output_dir = project_root / "tmp" / "examples"
    if subdir:
        output_dir = output_dir / subdir
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def create_demo_images(count: int = 6) -> list[tuple[str, bytes]]:
    """生成带渐变和色块的演示图片"""
    images = []
    for i in range(count):
        img = Image.new("RGB", (640, 480))
        draw = ImageDraw.Draw(img)
        for y in range(480):
            draw.line([(0, y), (640, y)], fill=(y % 256, (y + i * 40) % 256, 200))
        draw.ellipse([100 + i * 20, 80, 400 + i * 20, 380], fill=(255, 120, 0))

        buffer = BytesIO()
        img.save(buffer, format="PNG")
        images.append((f"demo_{i}.png", buffer.getvalue()))
    return images


def demo_methods(images: list[tuple[str, bytes]]):
    """四种压缩方式对比"""
    print("=== 压缩方式对比 ===")

    compressor = ImageBatchCompressor(
        settings_store=SettingsStore(MemorySettingsBackend())
    )
    compressor.ingest_images(images[:2])

    for method in CompressionMethod:
        compressor.save_settings(CompressionSettings(quality=70, method=method))
        outcome = compressor.compress()
        print(f"\n🔧 {method.value}:")
        for result in outcome["result_set"].results:
            print(f"  {result.compressed_name}: {result.get_summary()}")


def demo_batch_and_export(images: list[tuple[str, bytes]]):
    """并发运行并导出"""
    print("\n=== 并发运行与导出 ===")

    progress_lock = threading.Lock()

    def on_progress(progress):
        with progress_lock:
            print(f"  进度: {progress.completed}/{progress.total}")

    compressor = ImageBatchCompressor(
        settings_store=SettingsStore(MemorySettingsBackend()),
        max_workers=3,
        on_progress=on_progress,
    )
    compressor.ingest_images(images)
    outcome = compressor.compress()
    print(outcome["diagnostics"])

    report = compressor.export(get_output_dir("batch"))
    print(f"📁 {report.get_summary()}")


def demo_cancel(images: list[tuple[str, bytes]]):
    """第一个任务完成后取消"""
    print("\n=== 取消运行 ===")

    orchestrator = None

    def on_progress(progress):
        if progress.completed == 1:
            orchestrator.cancel()

    orchestrator = JobOrchestrator(PillowEngine(), on_progress=on_progress)
    result_set = orchestrator.run_sequential(IngestBuffer(images), CompressionSettings())
    print(result_set.diagnostics())


def main():
    """主函数"""
    print("🖼️  批量图像压缩演示")
    print("=" * 50)

    images = create_demo_images()
    try:
        demo_methods(images)
        demo_batch_and_export(images)
        demo_cancel(images)

        print("\n✅ 所有演示完成！")

    except Exception as e:
        print(f"\n❌ 演示过程中出现错误: {e}")
        raise


if __name__ == "__main__":
    main()
