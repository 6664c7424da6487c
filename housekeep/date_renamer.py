"""
housekeep.date_renamer

Rename files to ``yyyy-MM-dd_HHmmss[_k].ext`` from their "date taken" metadata,
falling back to the last-write time.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Sequence

from common.base.fs import iter_files
from common.base.logging import get_logger
from common.shared.utils import Progress

from .metadata import DATE_FORMATS, MetadataProvider, default_metadata_provider, resolve_timestamp
from .naming import RenameSummary, SafeRenamer

log = get_logger(__name__)

TIMESTAMP_NAME_FORMAT = "%Y-%m-%d_%H%M%S"


def timestamp_name(path: Path, provider: MetadataProvider, formats: Sequence[str] = DATE_FORMATS) -> str:
    resolved = resolve_timestamp(path, provider, formats)
    return resolved.value.strftime(TIMESTAMP_NAME_FORMAT) + path.suffix


def rename_by_date(
    target: Path,
    provider: Optional[MetadataProvider] = None,
    *,
    recursive: bool = False,
    dry_run: bool = False,
    exclude: Iterable[Path] = (),
    formats: Sequence[str] = DATE_FORMATS,
) -> RenameSummary:
    """
    Rename ``target`` (a file, or the files in a directory) by timestamp.

    Raises:
        FileNotFoundError: ``target`` does not exist.
    """
    target = Path(target).expanduser()
    if not target.exists():
        raise FileNotFoundError(f"Path not found: {target}")

    provider = provider or default_metadata_provider()
    excluded = {p.resolve() for p in exclude}
    files = [f for f in iter_files(target, recursive) if f.resolve() not in excluded]
    log.info(f"🕒 Renaming {len(files)} file(s) by date under {target}")

    summary = RenameSummary(dry_run=dry_run)
    renamer = SafeRenamer(summary, dry_run=dry_run)
    for path in Progress(files, desc="Renaming"):
        try:
            desired = timestamp_name(path, provider, formats)
        except OSError as exc:
            renamer.skip(path, f"cannot read timestamp: {exc}")
            continue
        outcome = renamer.rename(path, desired)
        if outcome.destination is not None:
            log.info(f"Final name: {outcome.destination.name}")

    summary.log_totals()
    return summary
