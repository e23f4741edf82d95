from __future__ import annotations

from pathlib import Path

import pytest

from chunkmend.cli import main
from chunkmend.constants import EXIT_INPUT, EXIT_OK, EXIT_USAGE, EXIT_VALIDATION, MIB


def _payload(size: int, seed: int = 0) -> bytes:
    block = bytes((i + seed) % 256 for i in range(256))
    return (block * (size // 256 + 1))[:size]


@pytest.fixture
def sites(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> tuple[Path, Path]:
    damaged_site = tmp_path / "damaged"
    reference_site = tmp_path / "reference"
    damaged_site.mkdir()
    reference_site.mkdir()
    original = _payload(2 * MIB + MIB // 2)
    (reference_site / "big.bin").write_bytes(original)
    broken = bytearray(original)
    broken[MIB + 10 : MIB + 20] = b"\x00" * 10
    (damaged_site / "big.bin").write_bytes(bytes(broken) + b"garbage")
    monkeypatch.chdir(damaged_site)
    return damaged_site, reference_site


def test_three_pass_repair(sites: tuple[Path, Path], monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    damaged_site, reference_site = sites

    assert main(["-m", "1", "big.bin"]) == EXIT_OK
    out = capsys.readouterr().out
    assert out.startswith(f"CHUNK_MiB 1\nTOTAL {2 * MIB + MIB // 2 + 7}\nSUM md5\n")
    manifest = damaged_site / "big.bin.chunksums"
    assert manifest.exists()

    (reference_site / manifest.name).write_bytes(manifest.read_bytes())
    monkeypatch.chdir(reference_site)
    assert main(["-c", "-m", "1", "big.bin"]) == EXIT_OK
    out = capsys.readouterr().out
    assert f"chunkmend -m 1 -t {2 * MIB + MIB // 2} -i 1,2 big.bin" in out
    assert (reference_site / "BLOCK_1").stat().st_size == MIB
    assert (reference_site / "BLOCK_2").stat().st_size == MIB // 2
    assert not (reference_site / "BLOCK_0").exists()

    for name in ("BLOCK_1", "BLOCK_2"):
        (damaged_site / name).write_bytes((reference_site / name).read_bytes())
    monkeypatch.chdir(damaged_site)
    argv = ["-m", "1", "-t", str(2 * MIB + MIB // 2), "-i", "1,2", "--remove-blocks", "big.bin"]
    assert main(argv) == EXIT_OK
    assert (damaged_site / "big.bin").read_bytes() == (reference_site / "big.bin").read_bytes()
    assert not (damaged_site / "BLOCK_1").exists()


def test_identical_file_needs_no_repair(sites: tuple[Path, Path], capsys: pytest.CaptureFixture[str]) -> None:
    damaged_site, _ = sites

    assert main(["-m", "1", "big.bin"]) == EXIT_OK
    assert main(["-c", "-m", "1", "big.bin"]) == EXIT_OK

    assert "nothing to repair" in capsys.readouterr().out
    assert not (damaged_site / "BLOCK_0").exists()


def test_whole_file_mismatch_extracts_nothing(sites: tuple[Path, Path], capsys: pytest.CaptureFixture[str]) -> None:
    damaged_site, _ = sites
    assert main(["-m", "1", "big.bin"]) == EXIT_OK
    (damaged_site / "big.bin").write_bytes(_payload(2 * MIB + MIB // 2, seed=1))

    assert main(["-c", "-m", "1", "big.bin"]) == EXIT_OK

    assert "incremental repair is not possible" in capsys.readouterr().out
    assert list(damaged_site.glob("BLOCK_*")) == []


def test_chunk_size_mismatch_is_a_validation_error(sites: tuple[Path, Path]) -> None:
    assert main(["-m", "1", "big.bin"]) == EXIT_OK

    assert main(["-c", "-m", "2", "big.bin"]) == EXIT_VALIDATION


def test_compare_cannot_be_combined_with_inject(sites: tuple[Path, Path]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["-c", "-i", "1", "big.bin"])

    assert excinfo.value.code == EXIT_USAGE


@pytest.mark.parametrize("argv", [["-i", "1,x", "big.bin"], ["-t", "-5", "big.bin"], []])
def test_bad_arguments_are_usage_errors(sites: tuple[Path, Path], argv: list[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(argv)

    assert excinfo.value.code == EXIT_USAGE


@pytest.mark.parametrize("chunk_mib", ["0", "-5"])
def test_non_positive_chunk_size_is_a_validation_error(sites: tuple[Path, Path], chunk_mib: str) -> None:
    damaged_site, _ = sites

    assert main(["-m", chunk_mib, "big.bin"]) == EXIT_VALIDATION
    assert not (damaged_site / "big.bin.chunksums").exists()


def test_missing_target_is_an_input_error(sites: tuple[Path, Path]) -> None:
    assert main(["-m", "1", "absent.bin"]) == EXIT_INPUT


def test_missing_artifact_is_an_input_error(sites: tuple[Path, Path]) -> None:
    damaged_site, _ = sites
    before = (damaged_site / "big.bin").read_bytes()

    assert main(["-m", "1", "-i", "1", "big.bin"]) == EXIT_INPUT
    assert (damaged_site / "big.bin").read_bytes() == before


def test_config_file_supplies_defaults_and_audit_log(sites: tuple[Path, Path], capsys: pytest.CaptureFixture[str]) -> None:
    damaged_site, _ = sites
    (damaged_site / "chunkmend.yaml").write_text(
        "repair:\n"
        "  chunk_mib: 1\n"
        "  algorithm: sha256\n"
        "  manifest: sums/state.txt\n"
        "audit:\n"
        "  dir: audit\n",
        encoding="utf-8",
    )

    assert main(["big.bin"]) == EXIT_OK

    assert "SUM sha256" in capsys.readouterr().out
    assert (damaged_site / "sums" / "state.txt").exists()
    logs = list((damaged_site / "audit").glob("*.log"))
    assert len(logs) == 1
    assert "action=generate" in logs[0].read_text(encoding="utf-8")
    assert "status=ok" in logs[0].read_text(encoding="utf-8")


def test_block_dir_that_is_a_file_is_an_input_error(sites: tuple[Path, Path], monkeypatch: pytest.MonkeyPatch) -> None:
    damaged_site, reference_site = sites
    assert main(["-m", "1", "big.bin"]) == EXIT_OK
    manifest = damaged_site / "big.bin.chunksums"
    (reference_site / manifest.name).write_bytes(manifest.read_bytes())
    (reference_site / "blocks").write_text("not a directory", encoding="utf-8")
    monkeypatch.chdir(reference_site)

    assert main(["-c", "-m", "1", "-d", "blocks", "big.bin"]) == EXIT_INPUT
    assert (reference_site / "blocks").read_text(encoding="utf-8") == "not a directory"


def test_unwritable_audit_dir_is_an_input_error(sites: tuple[Path, Path]) -> None:
    damaged_site, _ = sites
    (damaged_site / "audit").write_text("", encoding="utf-8")
    (damaged_site / "chunkmend.yaml").write_text("repair:\n  chunk_mib: 1\naudit:\n  dir: audit\n", encoding="utf-8")

    assert main(["big.bin"]) == EXIT_INPUT
    assert main(["-i", "1", "big.bin"]) == EXIT_INPUT


def test_file_names_are_printed_verbatim(sites: tuple[Path, Path], capsys: pytest.CaptureFixture[str]) -> None:
    damaged_site, _ = sites
    (damaged_site / "big.bin").rename(damaged_site / "x:fire:.bin")

    assert main(["-m", "1", "x:fire:.bin"]) == EXIT_OK
    assert main(["-c", "-m", "1", "x:fire:.bin"]) == EXIT_OK

    assert "x:fire:.bin matches the manifest" in capsys.readouterr().out
