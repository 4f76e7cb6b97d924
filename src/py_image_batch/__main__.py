"""Entry point for python -m py_image_batch.

默认启动 MCP 服务器；``--settings`` 打印当前保存的压缩设置。
"""

import json
import sys


def main(argv: list[str] | None = None) -> int:
    """主入口函数"""
    args = sys.argv[1:] if argv is None else argv
    flag = args[0] if args else None

    match flag:
        case "--version" | "-v":
            from . import __version__

            print(f"py-image-batch {__version__}")
        case "--settings":
            from .settings_store import SettingsStore

            print(json.dumps(SettingsStore().load().to_wire(), ensure_ascii=False))
        case None:
            # 启动 MCP 服务器
            from .mcp_server import main as server_main

            server_main()
        case _:
            print(f"未知参数: {flag}（可用: --version, --settings）", file=sys.stderr)
            return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
