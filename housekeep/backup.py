"""
housekeep.backup

Bulk copy through ``robocopy``.

Robocopy's exit code is a bit field: 1 files copied, 2 extra files at the
destination, 4 mismatches. Anything from 8 upwards means at least one copy
failed, so codes below ``ROBOCOPY_FAILURE_THRESHOLD`` count as success.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from common.base.fs import ensure_dir
from common.base.logging import get_logger
from common.base.ops import run_command

log = get_logger(__name__)

ROBOCOPY = "robocopy"
ROBOCOPY_FAILURE_THRESHOLD = 8
DEFAULT_RETRIES = 3
DEFAULT_WAIT_SECONDS = 5

# Data, attributes, timestamps, security (ACLs) and owner. Auditing (U) needs
# SeSecurityPrivilege, so it stays out.
COPY_FLAGS = "/COPY:DATSO"
DIRECTORY_COPY_FLAGS = "/DCOPY:DAT"


class BackupError(RuntimeError):
    """Raised when the copy utility reports a failure-range exit code."""

    def __init__(self, message: str, exit_code: int) -> None:
        super().__init__(message)
        self.exit_code = exit_code


@dataclass(frozen=True)
class BackupResult:
    command: List[str]
    exit_code: int
    log_file: Optional[Path] = None

    @property
    def succeeded(self) -> bool:
        return is_success(self.exit_code)


def is_success(exit_code: int) -> bool:
    return 0 <= exit_code < ROBOCOPY_FAILURE_THRESHOLD


def describe_exit_code(exit_code: int) -> str:
    if exit_code == 0:
        return "no changes; source and destination already in sync"
    if not is_success(exit_code):
        return "one or more files or directories could not be copied"
    parts = []
    if exit_code & 1:
        parts.append("files copied")
    if exit_code & 2:
        parts.append("extra files present at destination")
    if exit_code & 4:
        parts.append("mismatched files or directories detected")
    return ", ".join(parts)


def build_robocopy_command(
    source: Path,
    destination: Path,
    *,
    exclude_files: Sequence[str] = (),
    exclude_dirs: Sequence[str] = (),
    retries: int = DEFAULT_RETRIES,
    wait: int = DEFAULT_WAIT_SECONDS,
    log_file: Optional[Path] = None,
    executable: str = ROBOCOPY,
    list_only: bool = False,
) -> List[str]:
    cmd = [
        executable,
        str(source),
        str(destination),
        "/E",
        COPY_FLAGS,
        DIRECTORY_COPY_FLAGS,
        f"/R:{retries}",
        f"/W:{wait}",
        "/NP",
        "/TEE",
    ]
    if log_file is not None:
        cmd.append(f"/LOG+:{log_file}")
    if list_only:
        cmd.append("/L")
    for pattern in exclude_files:
        cmd.extend(["/XF", pattern])
    for pattern in exclude_dirs:
        cmd.extend(["/XD", pattern])
    return cmd


def run_backup(
    source: Path,
    destination: Path,
    *,
    exclude_files: Sequence[str] = (),
    exclude_dirs: Sequence[str] = (),
    retries: int = DEFAULT_RETRIES,
    wait: int = DEFAULT_WAIT_SECONDS,
    log_file: Optional[Path] = None,
    executable: str = ROBOCOPY,
    dry_run: bool = False,
) -> BackupResult:
    """
    Copy ``source`` into ``destination`` and check robocopy's exit code.

    Raises:
        FileNotFoundError: ``source`` does not exist (nothing is created).
        BackupError: robocopy exited with a failure-range code.
    """
    source = Path(source).expanduser()
    destination = Path(destination).expanduser()
    if not source.exists():
        raise FileNotFoundError(f"Source path not found: {source}")

    if destination.exists():
        log.info(f"Destination exists: {destination}")
    else:
        ensure_dir(destination)
        log.info(f"📁 Created destination: {destination}")

    cmd = build_robocopy_command(
        source,
        destination,
        exclude_files=exclude_files,
        exclude_dirs=exclude_dirs,
        retries=retries,
        wait=wait,
        log_file=log_file,
        executable=executable,
        list_only=dry_run,
    )
    log.info(f"💾 Backing up {source} → {destination}")
    if dry_run:
        log.info("[DRY-RUN] robocopy runs in list-only mode; nothing is copied")
    log.info("Command: " + " ".join(cmd))

    exit_code, _ = run_command(cmd)
    result = BackupResult(command=cmd, exit_code=exit_code, log_file=log_file)
    if not result.succeeded:
        raise BackupError(
            f"Backup failed with exit code {exit_code}: {describe_exit_code(exit_code)}",
            exit_code,
        )

    log.info(f"✅ Backup finished with exit code {exit_code}: {describe_exit_code(exit_code)}")
    return result
