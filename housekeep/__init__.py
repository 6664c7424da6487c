"""File-system housekeeping tools: backup, date rename, pattern rename, pruning."""

from .backup import BackupError, BackupResult, run_backup  # noqa: F401
from .date_renamer import rename_by_date  # noqa: F401
from .pattern_renamer import pattern_rename  # noqa: F401
from .pruner import PruneSummary, prune_empty_dirs  # noqa: F401

__all__ = [
    "BackupError",
    "BackupResult",
    "PruneSummary",
    "pattern_rename",
    "prune_empty_dirs",
    "rename_by_date",
    "run_backup",
]
