"""Path normalization utilities for chunkmend."""

from __future__ import annotations

from pathlib import Path  # Path 提供跨平台路径操作


def normalize_path(base: Path | str, p: Path | str) -> Path:
    """将输入路径规范化；相对路径基于 base 解析。"""
    base_path = Path(base).expanduser().resolve()  # 展开用户目录并转换为绝对路径
    candidate = Path(p).expanduser()  # 先展开用户目录以处理 ~
    if candidate.is_absolute():  # 如果用户提供绝对路径
        return candidate.resolve()  # 直接返回规范化后的绝对路径
    return (base_path / candidate).resolve()  # 对相对路径拼接后再解析


def display_path(p: Path | str, base: Path | str | None = None) -> str:
    """在 base（默认当前目录）之下时返回相对路径，便于输出给操作者。"""
    path = Path(p)
    root = Path(base) if base is not None else Path.cwd()
    try:
        return path.resolve().relative_to(root.resolve()).as_posix()  # 位于 base 内则返回相对路径
    except ValueError:
        return str(path)  # 否则保留原样
