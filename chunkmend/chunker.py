"""Fixed-size chunk layout arithmetic.

A file of ``total_size`` bytes is split into windows of ``chunk_mib`` units
(one unit is a MiB unless a caller passes ``unit``)::

    offset 0        offset 1        offset 2
    [-- chunk_bytes --][-- chunk_bytes --][-- remainder --]

Offsets are chunk indices, never byte positions. Manifests, artifact names and
repair commands all address chunks this way.
"""

from __future__ import annotations

from dataclasses import dataclass  # 不可变的布局描述
from typing import Iterator, List  # 类型提示

from .constants import MIB
from .errors import UsageError, ValidationError


@dataclass(frozen=True, slots=True)
class ChunkSpan:
    """One chunk: its offset (index) and the byte range it covers."""

    offset: int
    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length


@dataclass(frozen=True, slots=True)
class ChunkLayout:
    """Partition of ``[0, total_size)`` into fixed-size chunks.

    Parameters
    ----------
    chunk_mib:
        Chunk size in units; must be strictly positive.
    total_size:
        File length in bytes.
    unit:
        Bytes per chunk-size unit. Defaults to one MiB.
    """

    chunk_mib: int
    total_size: int
    unit: int = MIB

    def __post_init__(self) -> None:
        if self.chunk_mib <= 0:
            raise ValidationError(f"chunk size must be a positive integer, got {self.chunk_mib}")
        if self.unit <= 0:
            raise ValidationError(f"chunk unit must be positive, got {self.unit}")
        if self.total_size < 0:
            raise ValidationError(f"total size cannot be negative, got {self.total_size}")

    @property
    def chunk_bytes(self) -> int:
        return self.chunk_mib * self.unit

    @property
    def count(self) -> int:
        # 向上取整；正好整除时不会产生空的尾块
        return -(-self.total_size // self.chunk_bytes)

    def span(self, offset: int) -> ChunkSpan:
        """返回指定偏移的块范围。"""

        if offset < 0 or offset >= self.count:
            raise IndexError(f"chunk offset {offset} outside [0, {self.count})")
        start = offset * self.chunk_bytes
        length = min(self.chunk_bytes, self.total_size - start)
        return ChunkSpan(offset=offset, start=start, length=length)

    def spans(self) -> Iterator[ChunkSpan]:
        """按偏移递增顺序产出全部块。"""

        for offset in range(self.count):
            yield self.span(offset)


def parse_offsets(raw: str) -> List[int]:
    """解析逗号分隔的块偏移列表，保持顺序并去重。

    Args:
        raw: 形如 ``"1,4,7"`` 的字符串。

    Returns:
        非负整数偏移列表。

    Raises:
        UsageError: 出现空项、非数字或负数时抛出。
    """

    offsets: List[int] = []
    seen: set[int] = set()
    for item in raw.split(","):
        token = item.strip()
        if not token.isdigit():
            raise UsageError(f"invalid chunk offset {token!r} in {raw!r}")
        value = int(token)
        if value in seen:
            continue
        seen.add(value)
        offsets.append(value)
    return offsets


def format_offsets(offsets: List[int]) -> str:
    """将偏移列表转换为逗号分隔字符串。"""

    return ",".join(str(offset) for offset in offsets)
