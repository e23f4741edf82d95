"""Command line interface for chunkmend.

Three passes, run one per invocation::

    damaged site:    chunkmend big.iso                 # write big.iso.chunksums
    reference site:  chunkmend -c big.iso              # extract BLOCK_<n> files
    damaged site:    chunkmend -m 100 -i 1,7 big.iso   # inject, optionally -t <bytes>
"""

from __future__ import annotations

import argparse  # argparse 用于解析命令行参数
import logging  # logging 提供日志支持
from pathlib import Path  # Path 便于处理文件系统
from typing import Iterable  # Iterable 类型提示

from . import __version__
from .audit import log_event
from .chunker import parse_offsets
from .config import ChunkMendConfig, load_config  # 导入配置加载逻辑
from .constants import EXIT_OK
from .diff import diff_reference, repair_command
from .errors import ChunkMendError, UsageError, ValidationError
from .hash_policy import available_algorithms
from .indexer import build_manifest
from .logging_setup import init_logging, operator_console
from .manifest_store import format_manifest, read_manifest, write_manifest
from .patcher import extract_blocks, inject_blocks, remove_blocks, truncate_file
from .utils.pathing import display_path

LOGGER = logging.getLogger(__name__)  # 获取模块级日志记录器


def _chunk_mib(args: argparse.Namespace, cfg: ChunkMendConfig) -> int:
    """命令行优先于配置；非正数属于校验错误。"""

    chunk_mib = cfg.repair.chunk_mib if args.chunk_mib is None else args.chunk_mib
    if chunk_mib <= 0:
        raise ValidationError(f"chunk size must be a positive integer, got {chunk_mib}")
    return chunk_mib


def _non_negative_int(value: str) -> int:
    """argparse 类型：非负整数。"""

    if not value.isdigit():
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value!r}")
    return int(value)


def _offset_list(value: str) -> list[int]:
    """argparse 类型：逗号分隔的块偏移。"""

    try:
        return parse_offsets(value)
    except UsageError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _mode(args: argparse.Namespace) -> str:
    """根据参数判断本次执行哪一个阶段。"""

    if args.compare:
        return "compare"
    if args.inject is not None or args.truncate is not None:
        return "repair"
    return "generate"


def _audit(cfg: ChunkMendConfig, action: str, target: str, status: str, **fields: object) -> None:
    """配置了审计目录时追加一条记录。"""

    if cfg.audit.dir is None:
        return
    log_event(
        action,
        target,
        status,
        chunk_mib=int(fields.get("chunk_mib", cfg.repair.chunk_mib)),  # type: ignore[arg-type]
        offsets=int(fields.get("offsets", 0)),  # type: ignore[arg-type]
        detail=str(fields.get("detail", "")),
        base_dir=cfg.audit.dir,
    )


def command_generate(args: argparse.Namespace, cfg: ChunkMendConfig) -> int:
    """受损端：生成 manifest。"""

    chunk_mib = _chunk_mib(args, cfg)
    algorithm = args.algorithm or cfg.repair.algorithm
    manifest_path = Path(args.sums) if args.sums else cfg.repair.manifest_for(args.file)
    manifest = build_manifest(args.file, chunk_mib, algorithm)
    written = write_manifest(manifest, manifest_path)
    console = operator_console()
    console.print(format_manifest(manifest), end="", markup=False)
    LOGGER.info(
        "manifest written to %s; copy it next to the intact file and run: %s -c -m %d %s",
        display_path(written),
        cfg.repair.program,
        chunk_mib,
        Path(args.file).name,
    )
    _audit(cfg, "generate", args.file, "ok", chunk_mib=chunk_mib, offsets=len(manifest.entries))
    return EXIT_OK


def command_compare(args: argparse.Namespace, cfg: ChunkMendConfig) -> int:
    """参考端：比较并提取差异块。"""

    chunk_mib = _chunk_mib(args, cfg)
    manifest_path = Path(args.sums) if args.sums else cfg.repair.manifest_for(args.file)
    block_dir = Path(args.block_dir) if args.block_dir else cfg.repair.block_dir
    manifest = read_manifest(manifest_path)
    result = diff_reference(manifest, args.file, chunk_mib, args.algorithm)
    console = operator_console()
    if result.is_identical:
        console.print(f"{args.file} matches the manifest; nothing to repair.", markup=False)
        _audit(cfg, "compare", args.file, "identical", chunk_mib=chunk_mib)
        return EXIT_OK
    if result.whole_file_mismatch:
        console.print(
            f"none of the {result.compared} compared chunk(s) match; "
            "incremental repair is not possible, transfer the whole file instead.",
            markup=False,
        )
        _audit(cfg, "compare", args.file, "whole-file-mismatch", chunk_mib=chunk_mib, offsets=result.compared)
        return EXIT_OK
    written = extract_blocks(
        args.file,
        result.offsets,
        chunk_mib,
        block_dir,
        prefix=cfg.repair.block_prefix,
    )
    if result.mismatched:
        console.print(f"mismatched chunks: {len(result.mismatched)}", markup=False)
    if result.appended:
        console.print(f"new trailing chunks: {len(result.appended)}", markup=False)
    if result.truncate_to is not None:
        console.print(
            f"damaged copy is {result.damaged_size - result.reference_size} bytes too long; "
            f"truncate to {result.truncate_to}",
            markup=False,
        )
    if written:
        console.print(
            f"copy {len(written)} file(s) {cfg.repair.block_prefix}* from {display_path(block_dir)} "
            "to the damaged site, then run:",
            markup=False,
        )
    else:
        console.print("then run at the damaged site:", markup=False)
    command = repair_command(result, Path(args.file).name, program=cfg.repair.program)
    console.print(command, markup=False)
    _audit(cfg, "compare", args.file, "ok", chunk_mib=chunk_mib, offsets=len(result.offsets))
    return EXIT_OK


def command_repair(args: argparse.Namespace, cfg: ChunkMendConfig) -> int:
    """受损端：注入块并按需截断。"""

    chunk_mib = _chunk_mib(args, cfg)
    block_dir = Path(args.block_dir) if args.block_dir else cfg.repair.block_dir
    offsets = args.inject or []
    console = operator_console()
    if offsets:
        written = inject_blocks(args.file, offsets, chunk_mib, block_dir, prefix=cfg.repair.block_prefix)
        console.print(f"injected {len(offsets)} chunk(s), {written} bytes", markup=False)
    if args.truncate is not None:
        removed = truncate_file(args.file, args.truncate)
        console.print(f"truncated {removed} trailing bytes", markup=False)
    if args.remove_blocks and offsets:
        count = remove_blocks(offsets, block_dir, prefix=cfg.repair.block_prefix)
        LOGGER.info("removed %d consumed chunk artifact(s)", count)
    _audit(
        cfg,
        "repair",
        args.file,
        "ok",
        chunk_mib=chunk_mib,
        offsets=len(offsets),
        detail="" if args.truncate is None else f"truncate={args.truncate}",
    )
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    """构建命令行解析器。"""

    parser = argparse.ArgumentParser(
        prog="chunkmend",
        description="Repair a damaged copy of a large file by exchanging only per-chunk digests and differing chunks.",
    )
    parser.add_argument("file", help="target file (damaged copy, or the intact reference with -c)")
    parser.add_argument("-c", "--compare", action="store_true", help="compare FILE against a manifest and extract differing chunks")
    parser.add_argument("-s", "--sums", help="manifest path (default: <file name>.chunksums in the working directory)")
    parser.add_argument("-m", "--chunk-mib", type=int, help="chunk size in MiB; must match on both sites")
    parser.add_argument("-a", "--algorithm", choices=available_algorithms(), help="digest algorithm")
    parser.add_argument("-i", "--inject", type=_offset_list, metavar="OFFSETS", help="comma-separated chunk offsets to inject")
    parser.add_argument("-t", "--truncate", type=_non_negative_int, metavar="BYTES", help="truncate FILE to BYTES after injecting")
    parser.add_argument("-d", "--block-dir", help="directory holding chunk artifacts")
    parser.add_argument("--remove-blocks", action="store_true", help="delete chunk artifacts after injecting them")
    parser.add_argument("--config", help="path to config file (default: chunkmend.yaml if present)")
    parser.add_argument("--log-level", help="override logging level")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


_HANDLERS = {
    "generate": command_generate,
    "compare": command_compare,
    "repair": command_repair,
}


def main(argv: Iterable[str] | None = None) -> int:
    """CLI 主入口。"""

    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.compare and (args.inject is not None or args.truncate is not None):
        parser.error("-c/--compare cannot be combined with -i/--inject or -t/--truncate")
    if args.remove_blocks and args.inject is None:
        parser.error("--remove-blocks requires -i/--inject")
    try:
        cfg = load_config(args.config)
    except ChunkMendError as exc:
        init_logging(args.log_level or "info")
        LOGGER.error("configuration error: %s", exc)
        return exc.exit_code
    log_file = str(cfg.logging.file) if cfg.logging.file else None
    init_logging(args.log_level or cfg.logging.level, log_file)
    mode = _mode(args)
    try:
        return _HANDLERS[mode](args, cfg)
    except ChunkMendError as exc:
        LOGGER.error("%s", exc)
        chunk_mib = cfg.repair.chunk_mib if args.chunk_mib is None else args.chunk_mib
        try:
            _audit(cfg, mode, args.file, "failed", chunk_mib=chunk_mib, detail=type(exc).__name__)
        except ChunkMendError as audit_exc:
            LOGGER.error("%s", audit_exc)
        return exc.exit_code
