"""
housekeep.pattern_renamer

Regex substitution over file names. The pattern applies to the stem only; the
extension is carried over untouched.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable

from common.base.fs import iter_files
from common.base.logging import get_logger
from common.shared.utils import Progress

from .naming import RenameSummary, SafeRenamer

log = get_logger(__name__)

DEFAULT_PATTERN = r"\s+"
DEFAULT_REPLACEMENT = "-"


def substitute_name(name: str, regex: "re.Pattern[str]", replacement: str) -> str:
    path = Path(name)
    stem = regex.sub(replacement, path.stem)
    return f"{stem}{path.suffix}" if stem else ""


def pattern_rename(
    target: Path,
    pattern: str = DEFAULT_PATTERN,
    replacement: str = DEFAULT_REPLACEMENT,
    *,
    recursive: bool = False,
    dry_run: bool = False,
    exclude: Iterable[Path] = (),
) -> RenameSummary:
    """
    Rename ``target`` (a file, or the files in a directory) with ``re.sub``.

    Raises:
        FileNotFoundError: ``target`` does not exist.
        re.error: ``pattern`` is not a valid regular expression, or
            ``replacement`` refers to a group the pattern does not define.
    """
    target = Path(target).expanduser()
    if not target.exists():
        raise FileNotFoundError(f"Path not found: {target}")
    regex = re.compile(pattern)
    # Template errors surface here, before any file is touched.
    regex.sub(replacement, "")

    excluded = {p.resolve() for p in exclude}
    files = [f for f in iter_files(target, recursive) if f.resolve() not in excluded]
    log.info(f"🔤 Applying /{pattern}/ → '{replacement}' to {len(files)} file(s) under {target}")

    summary = RenameSummary(dry_run=dry_run)
    renamer = SafeRenamer(summary, dry_run=dry_run)
    for path in Progress(files, desc="Renaming"):
        try:
            desired = substitute_name(path.name, regex, replacement)
        except (re.error, IndexError) as exc:
            renamer.skip(path, f"substitution failed: {exc}")
            continue
        if not desired:
            renamer.skip(path, "substitution produced an empty name")
            continue
        if any(sep in desired for sep in ("/", "\\")):
            renamer.skip(path, f"substitution produced a path, not a name: {desired}")
            continue
        renamer.rename(path, desired)

    summary.log_totals()
    return summary
