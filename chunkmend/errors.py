"""Exception hierarchy shared by every chunkmend pass."""

from __future__ import annotations

from .constants import EXIT_INPUT, EXIT_UNSUPPORTED, EXIT_USAGE, EXIT_VALIDATION


class ChunkMendError(Exception):
    """所有可预期失败的基类，携带进程退出码。"""

    exit_code = EXIT_VALIDATION


class UsageError(ChunkMendError):
    """参数缺失或互斥选项同时出现。"""

    exit_code = EXIT_USAGE


class ValidationError(ChunkMendError, ValueError):
    """输入内容不满足协议约束。"""

    exit_code = EXIT_VALIDATION


class ConfigError(ValidationError):
    """配置文件内容非法。"""


class ManifestFormatError(ValidationError):
    """manifest 文件不是合法的校验清单。"""

    def __init__(self, message: str, *, line: int | None = None) -> None:
        self.line = line
        prefix = "not a valid manifest"
        if line is not None:
            prefix = f"{prefix} (line {line})"
        super().__init__(f"{prefix}: {message}")


class ChunkSizeMismatchError(ValidationError):
    """两端使用的块大小不一致。"""

    def __init__(self, requested_mib: int, required_mib: int) -> None:
        self.requested_mib = requested_mib
        self.required_mib = required_mib
        super().__init__(
            f"manifest was generated with {required_mib} MiB chunks but {requested_mib} MiB was "
            f"requested; re-run with -m {required_mib}"
        )


class AlgorithmMismatchError(ValidationError):
    """manifest 记录的算法与本次请求的算法不同。"""

    def __init__(self, requested: str, recorded: str) -> None:
        self.requested = requested
        self.recorded = recorded
        super().__init__(
            f"manifest digests use {recorded!r} but {requested!r} was requested; re-run with -a {recorded}"
        )


class BlockSizeError(ValidationError):
    """块文件长度超过一个块，注入会覆盖相邻数据。"""


class InputError(ChunkMendError, OSError):
    """输入文件缺失或无法读取。"""

    exit_code = EXIT_INPUT


class MissingBlockError(InputError):
    """注入时找不到请求偏移对应的块文件。"""

    def __init__(self, offset: int, path: object) -> None:
        self.offset = offset
        self.path = path
        super().__init__(f"chunk artifact for offset {offset} not found: {path}")


class ShortReadError(InputError):
    """读取到的字节数少于预期。"""

    def __init__(self, offset: int, expected: int, actual: int) -> None:
        self.offset = offset
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"short read at byte {offset}: expected {expected} bytes, got {actual}"
        )


class UnsupportedAlgorithmError(ChunkMendError, ValueError):
    """宿主环境不支持请求的摘要算法。"""

    exit_code = EXIT_UNSUPPORTED
