from __future__ import annotations

from pathlib import Path

import pytest

from chunkmend.config import load_config
from chunkmend.constants import DEFAULT_CHUNK_MIB
from chunkmend.errors import ConfigError, InputError


def test_missing_default_config_falls_back_to_builtins(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    cfg = load_config()

    assert cfg.repair.chunk_mib == DEFAULT_CHUNK_MIB
    assert cfg.repair.algorithm == "md5"
    assert cfg.repair.block_prefix == "BLOCK_"
    assert cfg.audit.dir is None
    assert cfg.repair.manifest_for("/data/big.iso") == tmp_path / "big.iso.chunksums"


def test_explicit_missing_config_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(InputError):
        load_config(tmp_path / "nope.yaml")


def test_unreadable_config_path_is_an_input_error(tmp_path: Path) -> None:
    with pytest.raises(InputError):
        load_config(tmp_path)


def test_relative_paths_resolve_against_config_directory(tmp_path: Path) -> None:
    config = tmp_path / "conf" / "chunkmend.yaml"
    config.parent.mkdir()
    config.write_text(
        "repair:\n  block_dir: blocks\n  manifest: ../m.sums\nlogging:\n  level: debug\n  file: logs/run.log\n",
        encoding="utf-8",
    )

    cfg = load_config(config)

    assert cfg.repair.block_dir == (tmp_path / "conf" / "blocks").resolve()
    assert cfg.repair.manifest == (tmp_path / "m.sums").resolve()
    assert cfg.logging.file == (tmp_path / "conf" / "logs" / "run.log").resolve()
    assert cfg.logging.level == "debug"


@pytest.mark.parametrize(
    "body",
    [
        "repair:\n  chunk_mib: 0\n",
        "repair:\n  chunk_mib: big\n",
        "repair:\n  algorithm: crc32\n",
        "repair:\n  block_prefix: a/b\n",
        "repair: [1, 2]\n",
        "- just\n- a list\n",
        "repair: {chunk_mib: 1\n",
    ],
)
def test_invalid_values_raise_config_error(tmp_path: Path, body: str) -> None:
    config = tmp_path / "chunkmend.yaml"
    config.write_text(body, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(config)
