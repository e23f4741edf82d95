"""Read and write the line-oriented chunk digest manifest.

Format::

    CHUNK_MiB 100
    TOTAL 262144000
    SUM md5
    <hex digest> 0
    <hex digest> 1
    <hex digest> 2
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from .chunker import ChunkLayout
from .constants import MIB
from .errors import InputError, ManifestFormatError, UnsupportedAlgorithmError
from .hash_policy import digest_size_hex

LOGGER = logging.getLogger(__name__)

_CHUNK_RE = re.compile(r"^CHUNK_MiB ([1-9][0-9]*)$")
_TOTAL_RE = re.compile(r"^TOTAL (0|[1-9][0-9]*)$")
_SUM_RE = re.compile(r"^SUM ([a-z0-9]+)$")
_ENTRY_RE = re.compile(r"^([0-9a-f]+) (0|[1-9][0-9]*)$")


@dataclass(frozen=True, slots=True)
class ManifestEntry:
    """单个块的摘要记录。"""

    digest: str
    offset: int


@dataclass(frozen=True, slots=True)
class Manifest:
    """一个文件状态的完整块摘要清单。"""

    chunk_mib: int
    total_size: int
    algorithm: str
    entries: Tuple[ManifestEntry, ...]

    @property
    def digests(self) -> list[str]:
        return [entry.digest for entry in self.entries]


def format_manifest(manifest: Manifest) -> str:
    """将 manifest 序列化为文本。"""

    lines = [
        f"CHUNK_MiB {manifest.chunk_mib}",
        f"TOTAL {manifest.total_size}",
        f"SUM {manifest.algorithm}",
    ]
    lines.extend(f"{entry.digest} {entry.offset}" for entry in manifest.entries)
    return "\n".join(lines) + "\n"


def write_manifest(manifest: Manifest, path: str | Path) -> Path:
    """整体覆盖写入 manifest，先写临时文件再替换。

    Args:
        manifest: 待写入的清单。
        path: 目标路径。

    Returns:
        写入后的绝对路径。
    """

    target = Path(path).expanduser().resolve()
    tmp_path = target.with_name(target.name + ".tmp")
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with tmp_path.open("w", encoding="ascii", newline="\n") as handle:
            handle.write(format_manifest(manifest))
        os.replace(tmp_path, target)
    except OSError as exc:
        if tmp_path.exists():
            tmp_path.unlink()
        raise InputError(f"cannot write manifest {target}: {exc}") from exc
    LOGGER.debug("wrote manifest with %d entries to %s", len(manifest.entries), target)
    return target


def parse_manifest(text: str, *, unit: int = MIB) -> Manifest:
    """严格解析 manifest 文本。

    Args:
        text: 文件内容，末尾换行可有可无。
        unit: 每个块大小单位的字节数，用于核对条目数。

    Returns:
        结构化的 :class:`Manifest`。

    Raises:
        ManifestFormatError: 任一行格式不符或条目与头部不一致。
    """

    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    if len(lines) < 3:
        raise ManifestFormatError("header must have CHUNK_MiB, TOTAL and SUM lines")
    chunk_match = _CHUNK_RE.match(lines[0])
    if chunk_match is None:
        raise ManifestFormatError(f"expected 'CHUNK_MiB <positive integer>', got {lines[0]!r}", line=1)
    total_match = _TOTAL_RE.match(lines[1])
    if total_match is None:
        raise ManifestFormatError(f"expected 'TOTAL <bytes>', got {lines[1]!r}", line=2)
    sum_match = _SUM_RE.match(lines[2])
    if sum_match is None:
        raise ManifestFormatError(f"expected 'SUM <algorithm>', got {lines[2]!r}", line=3)
    chunk_mib = int(chunk_match.group(1))
    total_size = int(total_match.group(1))
    algorithm = sum_match.group(1)
    try:
        hex_len = digest_size_hex(algorithm)
    except UnsupportedAlgorithmError as exc:
        raise ManifestFormatError(str(exc), line=3) from exc
    expected_count = ChunkLayout(chunk_mib, total_size, unit).count
    body = lines[3:]
    if len(body) != expected_count:
        raise ManifestFormatError(
            f"TOTAL {total_size} with {chunk_mib} MiB chunks needs {expected_count} entries, found {len(body)}"
        )
    entries = []
    for index, line in enumerate(body):
        line_no = index + 4
        match = _ENTRY_RE.match(line)
        if match is None:
            raise ManifestFormatError(f"expected '<hex digest> <offset>', got {line!r}", line=line_no)
        digest, offset = match.group(1), int(match.group(2))
        if len(digest) != hex_len:
            raise ManifestFormatError(
                f"{algorithm} digest must be {hex_len} hex characters, got {len(digest)}", line=line_no
            )
        if offset != index:
            raise ManifestFormatError(f"expected offset {index}, got {offset}", line=line_no)
        entries.append(ManifestEntry(digest=digest, offset=offset))
    return Manifest(chunk_mib=chunk_mib, total_size=total_size, algorithm=algorithm, entries=tuple(entries))


def read_manifest(path: str | Path, *, unit: int = MIB) -> Manifest:
    """从磁盘读取并解析 manifest。"""

    source = Path(path).expanduser()
    try:
        raw = source.read_bytes()
    except FileNotFoundError as exc:
        raise InputError(f"manifest {source} not found") from exc
    except OSError as exc:
        raise InputError(f"cannot read manifest {source}: {exc}") from exc
    try:
        text = raw.decode("ascii")
    except UnicodeDecodeError as exc:
        raise ManifestFormatError("file is not ASCII text") from exc
    # 兼容在 Windows 上编辑过的文件
    return parse_manifest(text.replace("\r\n", "\n"), unit=unit)
