"""Filesystem helper utilities shared across common modules."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator


def ensure_dir(path: Path | str) -> Path:
    p = Path(path).expanduser()
    p.mkdir(parents=True, exist_ok=True)
    return p


def path_depth(path: Path | str) -> int:
    return len(Path(path).parts)


def iter_files(target: Path, recursive: bool = False) -> Iterator[Path]:
    """Yield files for ``target``: the file itself, or the files beneath a directory."""
    if target.is_file():
        yield target
        return
    candidates = target.rglob("*") if recursive else target.iterdir()
    for candidate in sorted(candidates):
        if candidate.is_file():
            yield candidate
