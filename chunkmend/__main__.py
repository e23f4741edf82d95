"""Command line entry point for chunkmend."""

from __future__ import annotations

import sys  # sys 用于访问 argv 与退出状态

from .cli import main as cli_main  # CLI 主函数


def main(argv: list[str] | None = None) -> int:
    """入口函数，供 python -m chunkmend 调用。"""
    return cli_main(argv)  # 解析参数、加载配置与日志均在 CLI 中完成


if __name__ == "__main__":
    sys.exit(main())  # 将返回值作为进程退出码
