"""Logging helper used by the chunkmend CLI."""

from __future__ import annotations

import logging  # 标准库 logging 提供灵活的日志框架
from pathlib import Path  # Path 便于跨平台处理文件路径
from typing import Optional  # Optional 用于类型提示

from rich.console import Console  # Console 负责面向操作者的输出
from rich.logging import RichHandler  # RichHandler 提供彩色控制台输出

_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def init_logging(level: str, logfile: Optional[str] = None) -> None:
    """初始化 chunkmend 的日志系统。

    控制台日志写到 stderr，stdout 留给 manifest 与修复命令。
    """
    resolved_level = level.upper()
    unsupported = resolved_level not in _LEVELS
    if unsupported:
        # 非法级别回退到 INFO，配置完成后再给出警告
        resolved_level = "INFO"
    handlers: list[logging.Handler] = [
        RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_time=True, show_path=False)
    ]
    if logfile:
        log_path = Path(logfile)
        # 创建父目录但在已存在时不报错
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"))
        handlers.append(file_handler)
    logging.basicConfig(
        level=getattr(logging, resolved_level, logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,  # force 确保多次调用时覆盖旧配置
    )
    if unsupported:
        logging.getLogger(__name__).warning("Unsupported log level %r, fallback to INFO", level)


def operator_console() -> Console:
    """返回写向 stdout 的 Console，用于打印 manifest 与修复命令。"""
    # 关闭高亮、emoji 替换与自动换行，保证输出可以直接复制执行
    return Console(highlight=False, soft_wrap=True, emoji=False)
