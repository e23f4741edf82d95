"""Digest helpers that hash one byte window of a file at a time."""

from __future__ import annotations

import hashlib  # hashlib 提供 md5/sha 系列实现
from typing import Any, BinaryIO, Callable, Dict  # 类型提示

import xxhash  # xxhash 提供更快的非加密摘要

from .constants import DEFAULT_ALGORITHM, READ_CHUNK_SIZE
from .errors import ShortReadError, UnsupportedAlgorithmError

# 标签 -> 哈希器工厂；标签会原样写入 manifest 的 SUM 行
_ALGORITHMS: Dict[str, Callable[[], Any]] = {
    "md5": hashlib.md5,
    "sha1": hashlib.sha1,
    "sha256": hashlib.sha256,
    "xxh64": xxhash.xxh64,
    "xxh128": xxhash.xxh128,
}


def available_algorithms() -> list[str]:
    """返回支持的算法标签列表。"""

    return sorted(_ALGORITHMS)


def new_hasher(algorithm: str = DEFAULT_ALGORITHM) -> Any:
    """按标签创建哈希上下文。"""

    factory = _ALGORITHMS.get(algorithm.lower())
    if factory is None:
        raise UnsupportedAlgorithmError(
            f"unsupported digest algorithm {algorithm!r}; choose one of {', '.join(available_algorithms())}"
        )
    return factory()


def digest_size_hex(algorithm: str) -> int:
    """十六进制摘要的字符数，用于校验 manifest 条目。"""

    return new_hasher(algorithm).digest_size * 2


def digest_range(
    handle: BinaryIO,
    offset: int,
    length: int,
    algorithm: str = DEFAULT_ALGORITHM,
) -> str:
    """计算文件中一段字节的十六进制摘要。

    Args:
        handle: 以二进制模式打开且支持 seek 的文件对象。
        offset: 起始字节位置。
        length: 需要读取的字节数。
        algorithm: 算法标签。

    Returns:
        十六进制摘要字符串。

    Raises:
        ShortReadError: 文件在读满 ``length`` 字节前结束。
    """

    hasher = new_hasher(algorithm)
    if handle.tell() != offset:
        handle.seek(offset)
    remaining = length
    while remaining > 0:
        data = handle.read(min(READ_CHUNK_SIZE, remaining))
        if not data:
            raise ShortReadError(offset, length, length - remaining)
        hasher.update(data)
        remaining -= len(data)
    return hasher.hexdigest()
