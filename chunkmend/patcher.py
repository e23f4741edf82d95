"""Chunk artifact extraction (reference side) and in-place injection (damaged side)."""

from __future__ import annotations

import logging  # 日志记录
import os  # os.replace / os.truncate
from pathlib import Path  # 路径处理
from typing import BinaryIO, Iterable, List  # 类型提示

from .chunker import ChunkLayout
from .constants import DEFAULT_BLOCK_PREFIX, MIB, READ_CHUNK_SIZE
from .errors import BlockSizeError, InputError, MissingBlockError, ShortReadError, ValidationError
from .indexer import file_size

LOGGER = logging.getLogger(__name__)


def block_path(block_dir: str | Path, offset: int, prefix: str = DEFAULT_BLOCK_PREFIX) -> Path:
    """返回指定偏移的块文件路径，例如 ``BLOCK_3``。"""

    return Path(block_dir) / f"{prefix}{offset}"


def _copy_range(source: BinaryIO, dest: BinaryIO, start: int, length: int) -> None:
    """从 source 的 start 处复制 length 字节到 dest 当前位置。"""

    source.seek(start)
    remaining = length
    while remaining > 0:
        data = source.read(min(READ_CHUNK_SIZE, remaining))
        if not data:
            raise ShortReadError(start, length, length - remaining)
        dest.write(data)
        remaining -= len(data)


def extract_blocks(
    reference_path: str | Path,
    offsets: Iterable[int],
    chunk_mib: int,
    block_dir: str | Path,
    *,
    prefix: str = DEFAULT_BLOCK_PREFIX,
    unit: int = MIB,
) -> List[Path]:
    """把参考文件中指定偏移的块各自写成独立文件。

    Args:
        reference_path: 完好的参考文件。
        offsets: 需要提取的块偏移。
        chunk_mib: 块大小（单位数）。
        block_dir: 块文件输出目录，不存在时自动创建。
        prefix: 块文件名前缀。
        unit: 每个单位的字节数。

    Returns:
        已写入的块文件路径列表，顺序与 ``offsets`` 一致。
    """

    source_path = Path(reference_path).expanduser().resolve()
    layout = ChunkLayout(chunk_mib, file_size(source_path), unit)
    out_dir = Path(block_dir).expanduser()
    written: List[Path] = []
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        with source_path.open("rb") as source:
            for offset in offsets:
                span = layout.span(offset)
                target = block_path(out_dir, offset, prefix)
                tmp_path = target.with_name(target.name + ".part")
                try:
                    with tmp_path.open("wb") as dest:
                        _copy_range(source, dest, span.start, span.length)
                    # 同名旧块直接覆盖
                    os.replace(tmp_path, target)
                except BaseException:
                    tmp_path.unlink(missing_ok=True)
                    raise
                LOGGER.info("extracted chunk %d (%d bytes) to %s", offset, span.length, target)
                written.append(target)
    except InputError:
        raise
    except OSError as exc:
        raise InputError(f"cannot extract chunks into {out_dir}: {exc}") from exc
    return written


def _check_blocks(
    offsets: List[int],
    block_dir: Path,
    prefix: str,
    chunk_bytes: int,
) -> List[tuple[int, Path, int]]:
    """在修改目标文件之前确认所有块文件存在且不超过一个块。"""

    plan = []
    for offset in offsets:
        path = block_path(block_dir, offset, prefix)
        if not path.is_file():
            raise MissingBlockError(offset, path)
        size = path.stat().st_size
        if size > chunk_bytes:
            raise BlockSizeError(
                f"{path} holds {size} bytes but chunks are {chunk_bytes} bytes; wrong chunk size?"
            )
        plan.append((offset, path, size))
    return plan


def inject_blocks(
    target_path: str | Path,
    offsets: Iterable[int],
    chunk_mib: int,
    block_dir: str | Path,
    *,
    prefix: str = DEFAULT_BLOCK_PREFIX,
    unit: int = MIB,
) -> int:
    """把块文件原地写回目标文件的对应偏移，其他字节保持不变。

    Args:
        target_path: 受损文件。
        offsets: 需要注入的块偏移。
        chunk_mib: 块大小（单位数）。
        block_dir: 块文件所在目录。
        prefix: 块文件名前缀。
        unit: 每个单位的字节数。

    Returns:
        写入的总字节数。

    Raises:
        MissingBlockError: 任一偏移缺少块文件；此时目标文件尚未被修改。
    """

    target = Path(target_path).expanduser().resolve()
    current_size = file_size(target)
    chunk_bytes = ChunkLayout(chunk_mib, current_size, unit).chunk_bytes
    plan = _check_blocks(list(offsets), Path(block_dir).expanduser(), prefix, chunk_bytes)
    written = 0
    try:
        with target.open("r+b") as dest:
            for offset, path, size in plan:
                start = offset * chunk_bytes
                if start > current_size:
                    LOGGER.warning(
                        "chunk %d starts past the end of %s; the gap will be zero-filled", offset, target
                    )
                with path.open("rb") as source:
                    dest.seek(start)
                    _copy_range(source, dest, 0, size)
                current_size = max(current_size, start + size)
                written += size
                LOGGER.info("injected chunk %d (%d bytes) at byte %d", offset, size, start)
    except InputError:
        raise
    except OSError as exc:
        raise InputError(f"cannot write to {target}: {exc}") from exc
    return written


def truncate_file(target_path: str | Path, size: int) -> int:
    """将目标文件缩短到 size 字节；从不扩展文件。

    Returns:
        被截掉的字节数。
    """

    target = Path(target_path).expanduser().resolve()
    current = file_size(target)
    if size < 0:
        raise ValidationError(f"truncation length cannot be negative, got {size}")
    if size > current:
        raise ValidationError(
            f"refusing to extend {target} from {current} to {size} bytes; truncation only shrinks"
        )
    if size == current:
        LOGGER.info("%s is already %d bytes; nothing to truncate", target, size)
        return 0
    try:
        os.truncate(target, size)
    except OSError as exc:
        raise InputError(f"cannot truncate {target}: {exc}") from exc
    LOGGER.info("truncated %s from %d to %d bytes", target, current, size)
    return current - size


def remove_blocks(
    offsets: Iterable[int],
    block_dir: str | Path,
    *,
    prefix: str = DEFAULT_BLOCK_PREFIX,
) -> int:
    """删除已经注入的块文件，返回删除数量。"""

    removed = 0
    for offset in offsets:
        path = block_path(Path(block_dir).expanduser(), offset, prefix)
        if not path.exists():
            continue
        try:
            path.unlink()
        except OSError as exc:
            raise InputError(f"cannot remove chunk artifact {path}: {exc}") from exc
        removed += 1
    return removed
