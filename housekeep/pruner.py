"""
housekeep.pruner

Deepest-first removal of empty directories.

Every subdirectory is visited before its parent, so a parent emptied only by
the removal of its children is still removed in the same pass. The root is
re-checked last and removed too when nothing is left inside it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Set, Tuple

from common.base.fs import path_depth
from common.base.logging import get_logger
from common.base.ops import remove_empty_dir

log = get_logger(__name__)


@dataclass
class PruneSummary:
    root: Path
    removed: List[Path] = field(default_factory=list)
    failed: List[Tuple[Path, str]] = field(default_factory=list)
    inspected: int = 0
    dry_run: bool = False

    @property
    def root_removed(self) -> bool:
        return self.root in self.removed


def collect_subdirectories(root: Path) -> List[Path]:
    """All directories beneath ``root`` (not following symlinks), deepest first."""

    def _on_error(exc: OSError) -> None:
        log.error(f"Cannot list {exc.filename}: {exc.strerror or exc}")

    found: List[Path] = []
    for dirpath, dirnames, _ in os.walk(root, onerror=_on_error):
        base = Path(dirpath)
        found.extend(base / name for name in dirnames if not (base / name).is_symlink())
    return sorted(found, key=path_depth, reverse=True)


def _is_empty(directory: Path, removed: Set[Path]) -> bool:
    # Entries already pruned in a dry run are still on disk; count them as gone.
    with os.scandir(directory) as entries:
        return all(Path(entry.path) in removed for entry in entries)


def _prune_one(directory: Path, summary: PruneSummary, removed: Set[Path]) -> None:
    summary.inspected += 1
    try:
        if not _is_empty(directory, removed):
            return
        remove_empty_dir(directory, dry_run=summary.dry_run)
    except OSError as exc:
        reason = exc.strerror or str(exc)
        summary.failed.append((directory, reason))
        log.error(f"Failed to remove {directory}: {reason}")
        return
    removed.add(directory)
    summary.removed.append(directory)
    log.info(f"Removed empty directory: {directory}")


def prune_empty_dirs(root: Path, dry_run: bool = False) -> PruneSummary:
    """
    Remove every empty directory under ``root``, then ``root`` itself if emptied.

    Raises:
        FileNotFoundError: ``root`` does not exist.
        NotADirectoryError: ``root`` is not a directory.
    """
    root = Path(root).expanduser()
    if not root.exists():
        raise FileNotFoundError(f"Path not found: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Path is not a directory: {root}")

    summary = PruneSummary(root=root, dry_run=dry_run)
    removed: Set[Path] = set()
    directories = collect_subdirectories(root)
    log.info(f"🧹 Inspecting {len(directories)} subdirectories under {root}")

    for directory in directories:
        _prune_one(directory, summary, removed)
    _prune_one(root, summary, removed)

    prefix = "[DRY-RUN] " if dry_run else ""
    log.info(
        f"{prefix}Removed: {len(summary.removed)}  Failed: {len(summary.failed)}  "
        f"Inspected: {summary.inspected}"
    )
    return summary
