"""Audit logging helpers for repair passes."""

from __future__ import annotations

import datetime as _dt  # 日期时间格式化
from pathlib import Path  # Path 处理路径

from .errors import InputError


def log_event(
    action: str,
    file: str,
    status: str,
    *,
    chunk_mib: int,
    offsets: int = 0,
    detail: str = "",
    base_dir: Path = Path("logs/repairs"),
) -> Path:
    """Append an audit entry to the daily repair log and return its path."""

    now = _dt.datetime.now(_dt.timezone.utc)
    timestamp = now.replace(tzinfo=None).isoformat(timespec="seconds") + "Z"
    log_dir = Path(base_dir)
    log_path = log_dir / f"{now.date().isoformat()}.log"
    line = (
        f"[{timestamp}] action={action} file={file} status={status} "
        f"chunk_mib={chunk_mib} offsets={offsets}"
    )
    if detail:
        line += f" detail={detail}"
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        with log_path.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")
            handle.flush()
    except OSError as exc:
        raise InputError(f"cannot write audit log {log_path}: {exc}") from exc
    return log_path
