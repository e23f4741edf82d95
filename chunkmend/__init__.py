"""Repair damaged copies of large files by exchanging per-chunk digests."""

from .chunker import ChunkLayout, ChunkSpan
from .diff import DiffResult, compare_digests, diff_reference, repair_command
from .indexer import build_manifest
from .manifest_store import Manifest, ManifestEntry, read_manifest, write_manifest
from .patcher import extract_blocks, inject_blocks, truncate_file

__version__ = "0.1.0"

__all__ = [
    "ChunkLayout",
    "ChunkSpan",
    "DiffResult",
    "Manifest",
    "ManifestEntry",
    "build_manifest",
    "compare_digests",
    "diff_reference",
    "extract_blocks",
    "inject_blocks",
    "read_manifest",
    "repair_command",
    "truncate_file",
    "write_manifest",
]
