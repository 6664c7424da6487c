"""
housekeep.naming

Collision-avoiding destination names and the shared rename bookkeeping used by
both rename tools.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set

from common.base.logging import get_logger
from common.base.ops import rename_path

log = get_logger(__name__)

STATUS_RENAMED = "renamed"
STATUS_UNCHANGED = "unchanged"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"


def _key(path: Path) -> str:
    return str(path).casefold()


def _same_entry(a: Path, b: Path) -> bool:
    try:
        return os.path.samefile(a, b)
    except OSError:
        return False


def _is_taken(candidate: Path, reserved: Set[str], source: Optional[Path]) -> bool:
    if _key(candidate) in reserved:
        return True
    if not (candidate.exists() or candidate.is_symlink()):
        return False
    return source is None or not _same_entry(candidate, source)


def unique_path(
    candidate: Path,
    reserved: Optional[Set[str]] = None,
    source: Optional[Path] = None,
) -> Path:
    """
    Return ``candidate`` or the first free ``<stem>_<k><suffix>`` sibling.

    Args:
        candidate: Desired destination.
        reserved: Case-folded destinations already claimed in this run.
        source: The file being renamed; it never collides with itself.
    """
    taken = reserved if reserved is not None else set()
    if not _is_taken(candidate, taken, source):
        return candidate

    stem, suffix = candidate.stem, candidate.suffix
    k = 1
    while True:
        option = candidate.with_name(f"{stem}_{k}{suffix}")
        if not _is_taken(option, taken, source):
            return option
        k += 1


@dataclass
class RenameOutcome:
    source: Path
    destination: Optional[Path]
    status: str
    message: str = ""


@dataclass
class RenameSummary:
    outcomes: List[RenameOutcome] = field(default_factory=list)
    dry_run: bool = False

    def _with_status(self, status: str) -> List[RenameOutcome]:
        return [o for o in self.outcomes if o.status == status]

    @property
    def renamed(self) -> List[RenameOutcome]:
        return self._with_status(STATUS_RENAMED)

    @property
    def unchanged(self) -> List[RenameOutcome]:
        return self._with_status(STATUS_UNCHANGED)

    @property
    def skipped(self) -> List[RenameOutcome]:
        return self._with_status(STATUS_SKIPPED)

    @property
    def failed(self) -> List[RenameOutcome]:
        return self._with_status(STATUS_FAILED)

    def log_totals(self) -> None:
        prefix = "[DRY-RUN] " if self.dry_run else ""
        log.info(
            f"{prefix}Renamed: {len(self.renamed)}  Unchanged: {len(self.unchanged)}  "
            f"Skipped: {len(self.skipped)}  Failed: {len(self.failed)}"
        )


class SafeRenamer:
    """Apply renames for one run, never overwriting and never double-booking a name."""

    def __init__(self, summary: RenameSummary, dry_run: bool = False) -> None:
        self.summary = summary
        self.dry_run = dry_run
        self._reserved: Set[str] = set()

    def rename(self, source: Path, desired_name: str) -> RenameOutcome:
        if desired_name == source.name:
            outcome = RenameOutcome(source, None, STATUS_UNCHANGED, "name already matches")
            log.info(f"No change: {source.name}")
            self.summary.outcomes.append(outcome)
            return outcome

        destination = unique_path(source.with_name(desired_name), self._reserved, source)
        if destination == source:
            outcome = RenameOutcome(source, None, STATUS_UNCHANGED, "name already matches")
            log.info(f"No change: {source.name}")
            self.summary.outcomes.append(outcome)
            return outcome

        try:
            rename_path(source, destination, dry_run=self.dry_run)
        except OSError as exc:
            outcome = RenameOutcome(source, None, STATUS_FAILED, str(exc))
            log.error(f"Rename failed {source} → {destination.name}: {exc}")
        else:
            self._reserved.add(_key(destination))
            outcome = RenameOutcome(source, destination, STATUS_RENAMED)
            log.info(f"Renamed: {source.name} → {destination.name}")
        self.summary.outcomes.append(outcome)
        return outcome

    def skip(self, source: Path, reason: str) -> RenameOutcome:
        outcome = RenameOutcome(source, None, STATUS_SKIPPED, reason)
        log.warning(f"Skipped {source}: {reason}")
        self.summary.outcomes.append(outcome)
        return outcome
