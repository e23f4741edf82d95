from __future__ import annotations

from pathlib import Path

import pytest

# 测试使用 16 字节作为一个块大小单位
UNIT = 16


def pattern_bytes(size: int, seed: int = 0) -> bytes:
    """生成确定性的非重复字节序列。"""
    return bytes((i * 7 + seed) % 251 for i in range(size))


@pytest.fixture
def make_file(tmp_path: Path):
    def _make(name: str, data: bytes) -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return _make
