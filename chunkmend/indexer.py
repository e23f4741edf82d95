"""Manifest builder: digest every chunk of a file in offset order."""

from __future__ import annotations

import logging  # logging 用于输出进度信息
from pathlib import Path  # Path 提供跨平台路径操作
from typing import Iterator, Tuple  # 类型提示

from .chunker import ChunkLayout, ChunkSpan
from .constants import DEFAULT_ALGORITHM, MIB
from .errors import InputError
from .hash_policy import digest_range, new_hasher
from .manifest_store import Manifest, ManifestEntry

LOGGER = logging.getLogger(__name__)


def file_size(path: Path) -> int:
    """查询文件大小，缺失或不是普通文件时抛出 InputError。"""

    try:
        stat_result = path.stat()
    except FileNotFoundError as exc:
        raise InputError(f"file {path} not found") from exc
    except OSError as exc:
        raise InputError(f"cannot stat {path}: {exc}") from exc
    if not path.is_file():
        raise InputError(f"{path} is not a regular file")
    return stat_result.st_size


def iter_chunk_digests(
    path: str | Path,
    chunk_mib: int,
    algorithm: str = DEFAULT_ALGORITHM,
    *,
    unit: int = MIB,
) -> Tuple[ChunkLayout, Iterator[Tuple[ChunkSpan, str]]]:
    """返回文件的块布局以及按偏移顺序产出摘要的迭代器。

    Args:
        path: 待扫描的文件。
        chunk_mib: 块大小（单位数）。
        algorithm: 摘要算法标签。
        unit: 每个单位的字节数，默认 1 MiB。

    Returns:
        ``(layout, iterator)``；迭代器产出 ``(span, hex_digest)``。
    """

    source = Path(path).expanduser().resolve()
    layout = ChunkLayout(chunk_mib, file_size(source), unit)
    # 先校验算法，避免在迭代过程中才失败
    new_hasher(algorithm)

    def _generate() -> Iterator[Tuple[ChunkSpan, str]]:
        try:
            with source.open("rb") as handle:
                for span in layout.spans():
                    yield span, digest_range(handle, span.start, span.length, algorithm)
        except InputError:
            raise
        except OSError as exc:
            raise InputError(f"cannot read {source}: {exc}") from exc

    return layout, _generate()


def build_manifest(
    path: str | Path,
    chunk_mib: int,
    algorithm: str = DEFAULT_ALGORITHM,
    *,
    unit: int = MIB,
) -> Manifest:
    """扫描文件并生成完整 manifest。"""

    layout, digests = iter_chunk_digests(path, chunk_mib, algorithm, unit=unit)
    entries = tuple(ManifestEntry(digest=digest, offset=span.offset) for span, digest in digests)
    LOGGER.info(
        "digested %s: %d bytes in %d chunk(s) of %d MiB",
        path,
        layout.total_size,
        layout.count,
        chunk_mib,
    )
    return Manifest(
        chunk_mib=chunk_mib,
        total_size=layout.total_size,
        algorithm=algorithm.lower(),
        entries=entries,
    )
