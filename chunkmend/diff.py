"""Chunk-by-chunk comparison of a manifest against a reference file."""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Tuple

from .chunker import format_offsets
from .constants import DEFAULT_PROGRAM, MIB
from .errors import AlgorithmMismatchError, ChunkSizeMismatchError
from .indexer import iter_chunk_digests
from .manifest_store import Manifest

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DiffResult:
    """比较结果；也是下一步修复所需的指令。

    ``mismatched`` 是两边都存在但摘要不同的块，``appended`` 是参考文件
    超出 manifest 长度后多出的块。``truncate_to`` 仅在参考文件更短时设置。
    """

    chunk_mib: int
    damaged_size: int
    reference_size: int
    compared: int
    matched: int
    mismatched: Tuple[int, ...]
    appended: Tuple[int, ...]
    truncate_to: int | None

    @property
    def whole_file_mismatch(self) -> bool:
        return self.compared > 0 and self.matched == 0

    @property
    def offsets(self) -> Tuple[int, ...]:
        return self.mismatched + self.appended

    @property
    def is_identical(self) -> bool:
        return not self.offsets and self.truncate_to is None


def compare_digests(
    manifest: Manifest,
    reference_digests: Iterable[str],
    reference_size: int,
) -> DiffResult:
    """按位置比较 manifest 与参考文件的摘要序列。

    Args:
        manifest: 受损文件的摘要清单。
        reference_digests: 参考文件按偏移顺序的摘要。
        reference_size: 参考文件字节数。

    Returns:
        不可变的 :class:`DiffResult`。
    """

    recorded = manifest.digests
    mismatched: list[int] = []
    appended: list[int] = []
    matched = 0
    compared = 0
    for offset, digest in enumerate(reference_digests):
        if offset >= len(recorded):
            appended.append(offset)
            continue
        compared += 1
        if recorded[offset] == digest:
            matched += 1
        else:
            mismatched.append(offset)
    truncate_to = reference_size if reference_size < manifest.total_size else None
    return DiffResult(
        chunk_mib=manifest.chunk_mib,
        damaged_size=manifest.total_size,
        reference_size=reference_size,
        compared=compared,
        matched=matched,
        mismatched=tuple(mismatched),
        appended=tuple(appended),
        truncate_to=truncate_to,
    )


def diff_reference(
    manifest: Manifest,
    reference_path: str | Path,
    chunk_mib: int,
    algorithm: str | None = None,
    *,
    unit: int = MIB,
) -> DiffResult:
    """重新计算参考文件摘要并与 manifest 比较。

    Args:
        manifest: 已解析的 manifest。
        reference_path: 完好的参考文件。
        chunk_mib: 本次运行请求的块大小，必须与 manifest 一致。
        algorithm: 显式请求的算法；为 ``None`` 时沿用 manifest 记录的算法。
        unit: 每个块大小单位的字节数。

    Raises:
        ChunkSizeMismatchError: 块大小与 manifest 不一致。
        AlgorithmMismatchError: 请求的算法与 manifest 不一致。
    """

    if chunk_mib != manifest.chunk_mib:
        raise ChunkSizeMismatchError(chunk_mib, manifest.chunk_mib)
    if algorithm is not None and algorithm.lower() != manifest.algorithm:
        raise AlgorithmMismatchError(algorithm, manifest.algorithm)
    layout, digests = iter_chunk_digests(reference_path, chunk_mib, manifest.algorithm, unit=unit)
    result = compare_digests(manifest, (digest for _, digest in digests), layout.total_size)
    for offset in result.mismatched:
        LOGGER.debug("chunk %d differs", offset)
    if result.appended:
        LOGGER.info(
            "reference is %d bytes longer than the damaged copy; %d trailing chunk(s) will be sent as new data",
            result.reference_size - result.damaged_size,
            len(result.appended),
        )
    elif result.reference_size > result.damaged_size:
        LOGGER.info("damaged copy is shorter than the reference; its last chunk will be replaced")
    LOGGER.info(
        "compared %d chunk(s): %d matched, %d mismatched",
        result.compared,
        result.matched,
        len(result.mismatched),
    )
    return result


def repair_command(
    result: DiffResult,
    target: str | Path,
    *,
    program: str = DEFAULT_PROGRAM,
) -> str | None:
    """生成受损端需要执行的修复命令；无需修复或无法增量修复时返回 None。"""

    if result.whole_file_mismatch or result.is_identical:
        return None
    parts = [program, "-m", str(result.chunk_mib)]
    if result.truncate_to is not None:
        parts += ["-t", str(result.truncate_to)]
    if result.offsets:
        parts += ["-i", format_offsets(list(result.offsets))]
    parts.append(str(target))
    return " ".join(shlex.quote(part) for part in parts)
