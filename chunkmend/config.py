"""Configuration loading and validation for chunkmend."""

from __future__ import annotations

from dataclasses import dataclass, field  # dataclass 用于定义结构化配置对象
from pathlib import Path  # Path 提供跨平台路径处理

import yaml  # PyYAML 用于解析配置文件

from .constants import (
    DEFAULT_ALGORITHM,
    DEFAULT_BLOCK_PREFIX,
    DEFAULT_CHUNK_MIB,
    DEFAULT_CONFIG_FILE,
    DEFAULT_MANIFEST_SUFFIX,
    DEFAULT_PROGRAM,
)
from .errors import ConfigError, InputError
from .hash_policy import available_algorithms
from .utils.pathing import normalize_path  # 相对路径按配置文件目录解析


@dataclass(slots=True)
class RepairConfig:
    """修复协议参数。"""

    chunk_mib: int = DEFAULT_CHUNK_MIB  # 块大小，单位 MiB
    algorithm: str = DEFAULT_ALGORITHM  # 摘要算法标签
    manifest: Path | None = None  # 显式 manifest 路径
    block_dir: Path = field(default_factory=lambda: Path("."))  # 块文件目录
    block_prefix: str = DEFAULT_BLOCK_PREFIX  # 块文件名前缀
    program: str = DEFAULT_PROGRAM  # 修复命令中使用的程序名

    def manifest_for(self, target: str | Path) -> Path:
        """返回目标文件对应的 manifest 路径。"""

        if self.manifest is not None:
            return self.manifest
        return Path.cwd() / f"{Path(target).name}{DEFAULT_MANIFEST_SUFFIX}"


@dataclass(slots=True)
class LoggingConfig:
    """日志配置。"""

    level: str = "info"  # 日志级别
    file: Path | None = None  # 日志文件


@dataclass(slots=True)
class AuditConfig:
    """审计日志配置，dir 为空时关闭。"""

    dir: Path | None = None


@dataclass(slots=True)
class ChunkMendConfig:
    """聚合所有配置段的顶层对象。"""

    repair: RepairConfig = field(default_factory=RepairConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    audit: AuditConfig = field(default_factory=AuditConfig)


def _load_yaml(path: Path) -> dict:
    """辅助函数：读取 YAML 文件并返回字典。"""
    try:
        with path.open("r", encoding="utf-8") as f:  # 打开文件，使用 UTF-8 编码
            data = yaml.safe_load(f) or {}  # 安全解析 YAML，空文件回退为空字典
    except yaml.YAMLError as exc:  # 语法错误
        raise ConfigError(f"cannot parse {path}: {exc}") from exc
    except OSError as exc:  # 目录、权限不足等无法读取的情况
        raise InputError(f"cannot read config {path}: {exc}") from exc
    if not isinstance(data, dict):  # 若顶层不是 dict 则抛错
        raise ConfigError("Configuration root must be a mapping")  # 提示错误结构
    return data  # 返回解析结果


def _section(raw: dict, name: str) -> dict:
    """取出一个配置段，缺失时返回空字典。"""
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"{name} section must be a mapping")
    return value


def _positive_int(value: object, name: str) -> int:
    """把配置值转换为正整数。"""
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc
    if number <= 0:
        raise ConfigError(f"{name} must be positive")
    return number


def load_config(config_path: str | Path | None = None) -> ChunkMendConfig:
    """加载并校验配置文件。

    未指定路径且默认文件不存在时返回内置默认值；显式指定的文件缺失则报错。
    """
    explicit = config_path is not None
    path = Path(config_path or DEFAULT_CONFIG_FILE).expanduser().resolve()  # 解析配置文件路径
    if not path.exists():  # 若文件不存在
        if explicit:
            raise InputError(f"Config file {path} not found")  # 抛出文件不存在错误
        return ChunkMendConfig()  # 使用默认配置
    raw = _load_yaml(path)  # 读取原始字典
    repair_raw = _section(raw, "repair")  # 获取 repair 段
    logging_raw = _section(raw, "logging")  # 获取 logging 段
    audit_raw = _section(raw, "audit")  # 获取 audit 段
    repair = RepairConfig(  # 构造 RepairConfig
        chunk_mib=_positive_int(repair_raw.get("chunk_mib", DEFAULT_CHUNK_MIB), "repair.chunk_mib"),
        algorithm=str(repair_raw.get("algorithm", DEFAULT_ALGORITHM) or DEFAULT_ALGORITHM).lower(),
        manifest=normalize_path(path.parent, repair_raw["manifest"]) if repair_raw.get("manifest") else None,
        block_dir=normalize_path(path.parent, repair_raw.get("block_dir") or "."),
        block_prefix=str(repair_raw.get("block_prefix", DEFAULT_BLOCK_PREFIX) or ""),
        program=str(repair_raw.get("program", DEFAULT_PROGRAM) or DEFAULT_PROGRAM),
    )
    logging_config = LoggingConfig(  # 构造 LoggingConfig
        level=str(logging_raw.get("level", "info")),
        file=normalize_path(path.parent, logging_raw["file"]) if logging_raw.get("file") else None,
    )
    audit = AuditConfig(
        dir=normalize_path(path.parent, audit_raw["dir"]) if audit_raw.get("dir") else None,
    )
    # 校验算法与块文件前缀
    if repair.algorithm not in available_algorithms():
        raise ConfigError(
            f"repair.algorithm must be one of {'/'.join(available_algorithms())}, got {repair.algorithm!r}"
        )
    if not repair.block_prefix:
        raise ConfigError("repair.block_prefix cannot be empty")
    if "/" in repair.block_prefix or "\\" in repair.block_prefix:
        raise ConfigError("repair.block_prefix cannot contain path separators")
    return ChunkMendConfig(repair=repair, logging=logging_config, audit=audit)
