from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import List, Tuple

import pytest

import housekeep.backup as backup
from apps.cli import cli_backup, cli_pattern_rename, cli_prune_empty_dirs, cli_rename_by_date


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    return tmp_path / "logs" / "run.log"


def test_cli_pattern_rename_defaults(tmp_path: Path, log_path: Path) -> None:
    work = tmp_path / "work"
    work.mkdir()
    (work / "My Photo.jpg").write_text("x", encoding="utf-8")

    code = cli_pattern_rename(["--path", str(work), "--log-path", str(log_path)])

    assert code == 0
    assert (work / "My-Photo.jpg").exists()
    content = log_path.read_text(encoding="utf-8")
    assert "Renamed: My Photo.jpg → My-Photo.jpg" in content


def test_cli_pattern_rename_custom_pattern(tmp_path: Path, log_path: Path) -> None:
    work = tmp_path / "work"
    work.mkdir()
    (work / "a_b_c.txt").write_text("x", encoding="utf-8")

    code = cli_pattern_rename(
        ["--path", str(work), "--pattern", "_", "--replacement", " ", "--log-path", str(log_path)]
    )

    assert code == 0
    assert (work / "a b c.txt").exists()


def test_cli_pattern_rename_bad_regex_exits_non_zero(tmp_path: Path, log_path: Path) -> None:
    target = tmp_path / "a b.txt"
    target.write_text("x", encoding="utf-8")

    code = cli_pattern_rename(["--path", str(target), "--pattern", "[", "--log-path", str(log_path)])

    assert code == 1
    assert target.exists()
    assert "ERROR: Invalid pattern" in log_path.read_text(encoding="utf-8")


def test_cli_pattern_rename_bad_replacement_exits_non_zero(tmp_path: Path, log_path: Path) -> None:
    work = tmp_path / "work"
    work.mkdir()
    (work / "a b.txt").write_text("x", encoding="utf-8")

    code = cli_pattern_rename(["--path", str(work), "--replacement", r"\2", "--log-path", str(log_path)])

    assert code == 1
    assert sorted(p.name for p in work.iterdir()) == ["a b.txt"]
    assert "ERROR: Invalid pattern" in log_path.read_text(encoding="utf-8")


def test_cli_prune_empty_dirs(tmp_path: Path, log_path: Path) -> None:
    root = tmp_path / "root"
    (root / "a" / "b" / "c").mkdir(parents=True)

    code = cli_prune_empty_dirs(["--path", str(root), "--log-path", str(log_path)])

    assert code == 0
    assert not root.exists()
    assert "Removed empty directory" in log_path.read_text(encoding="utf-8")


def test_cli_prune_missing_root(tmp_path: Path, log_path: Path) -> None:
    code = cli_prune_empty_dirs(["--path", str(tmp_path / "missing"), "--log-path", str(log_path)])
    assert code == 1
    assert "ERROR: Path not found" in log_path.read_text(encoding="utf-8")


def test_cli_rename_by_date_colocates_log(tmp_path: Path) -> None:
    work = tmp_path / "photos"
    work.mkdir()
    photo = work / "IMG_0001.JPG"
    photo.write_text("x", encoding="utf-8")
    ts = datetime(2024, 3, 5, 14, 22, 10).timestamp()
    os.utime(photo, (ts, ts))

    code = cli_rename_by_date(["--path", str(work)])

    assert code == 0
    assert (work / "2024-03-05_142210.JPG").exists()
    logs = list(work.glob("rename_by_date_*.log"))
    assert len(logs) == 1
    content = logs[0].read_text(encoding="utf-8")
    assert "using last-write time" in content
    assert "Final name: 2024-03-05_142210.JPG" in content


def test_cli_rename_by_date_keeps_earlier_run_logs(tmp_path: Path) -> None:
    work = tmp_path / "photos"
    work.mkdir()
    photo = work / "IMG_0001.JPG"
    photo.write_text("x", encoding="utf-8")
    ts = datetime(2024, 3, 5, 14, 22, 10).timestamp()
    os.utime(photo, (ts, ts))
    earlier = work / "rename_by_date_20240101_000000.log"
    earlier.write_text("[2024-01-01 00:00:00] earlier run\n", encoding="utf-8")

    assert cli_rename_by_date(["--path", str(work)]) == 0
    assert cli_rename_by_date(["--path", str(work)]) == 0

    names = sorted(p.name for p in work.iterdir())
    assert "2024-03-05_142210.JPG" in names
    assert earlier.name in names
    assert all(name == "2024-03-05_142210.JPG" or name.startswith("rename_by_date_") for name in names)


def test_cli_backup_missing_source(tmp_path: Path, log_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def fail(cmd):  # pragma: no cover - must not be reached
        raise AssertionError("copy utility invoked")

    monkeypatch.setattr(backup, "run_command", fail)
    destination = tmp_path / "dst"

    code = cli_backup(
        ["--source", str(tmp_path / "missing"), "--destination", str(destination), "--log-path", str(log_path)]
    )

    assert code == 1
    assert not destination.exists()


@pytest.mark.parametrize("robocopy_code,expected", [(0, 0), (3, 0), (8, 8), (16, 16), (127, 127), (-9, 1)])
def test_cli_backup_exit_codes(
    tmp_path: Path,
    log_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    robocopy_code: int,
    expected: int,
) -> None:
    calls: List[List[str]] = []

    def fake_run(cmd: List[str]) -> Tuple[int, str]:
        calls.append(cmd)
        return robocopy_code, ""

    monkeypatch.setattr(backup, "run_command", fake_run)
    source = tmp_path / "src"
    source.mkdir()

    code = cli_backup(
        [
            "--source", str(source),
            "--destination", str(tmp_path / "dst"),
            "--exclude-files", "*.tmp", "*.bak",
            "--exclude-dirs", "cache",
            "--retries", "1",
            "--log-path", str(log_path),
        ]
    )

    assert code == expected
    cmd = calls[0]
    assert "/R:1" in cmd
    assert cmd[-6:] == ["/XF", "*.tmp", "/XF", "*.bak", "/XD", "cache"]
    assert f"/LOG+:{log_path.with_name('run_robocopy.log')}" in cmd


def test_cli_backup_reads_config(tmp_path: Path, log_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    calls: List[List[str]] = []

    def fake_run(cmd: List[str]) -> Tuple[int, str]:
        calls.append(cmd)
        return 1, ""

    monkeypatch.setattr(backup, "run_command", fake_run)
    source = tmp_path / "src"
    source.mkdir()
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        "tools:\n"
        "  backup:\n"
        f"    source: '{source}'\n"
        f"    destination: '{tmp_path / 'dst'}'\n"
        "    wait: 0\n"
        "    executable: robocopy.exe\n",
        encoding="utf-8",
    )

    code = cli_backup(["--config", str(cfg), "--log-path", str(log_path)])

    assert code == 0
    assert calls[0][0] == "robocopy.exe"
    assert "/W:0" in calls[0]
