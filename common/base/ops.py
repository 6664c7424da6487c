"""
common.base.ops

Unified operational helpers for Housekeep Tools.

 - Non-overwriting rename with dry-run support
 - Single-directory removal that never recurses
 - Subprocess execution streaming output into the run log
"""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .logging import get_logger

log = get_logger(__name__)

COMMAND_NOT_FOUND = 127
COMMAND_TIMEOUT = 124


# ----------------------------------------------------------------------
# FILESYSTEM OPERATIONS
# ----------------------------------------------------------------------

def rename_path(src: Path, dst: Path, dry_run: bool = False) -> None:
    """
    Rename ``src`` to ``dst`` without ever replacing an existing entry.

    Raises:
        FileNotFoundError: The source is gone.
        FileExistsError: Something already occupies the destination.
    """
    src, dst = Path(src), Path(dst)
    if not src.exists():
        raise FileNotFoundError(f"Source not found: {src}")
    # A case-only rename resolves to the same entry on case-insensitive volumes.
    if dst.exists() and not _same_entry(src, dst):
        raise FileExistsError(f"Destination exists: {dst}")

    if dry_run:
        log.info(f"[DRY-RUN] Would rename {src} → {dst}")
        return

    src.rename(dst)
    log.debug(f"Renamed {src} → {dst}")


def _same_entry(a: Path, b: Path) -> bool:
    try:
        return os.path.samefile(a, b)
    except OSError:
        return False


def remove_empty_dir(path: Path | str, dry_run: bool = False) -> None:
    """
    Remove a single empty directory.

    Raises:
        OSError: The directory is not empty, is inaccessible, or vanished.
    """
    p = Path(path)
    if dry_run:
        log.info(f"[DRY-RUN] Would delete empty directory: {p}")
        return
    p.rmdir()
    log.debug(f"🗑️ Deleted directory: {p}")


# ----------------------------------------------------------------------
# SHELL / SUBPROCESS HELPERS
# ----------------------------------------------------------------------

def run_command(
    cmd: Union[str, List[str]],
    cwd: Optional[Path | str] = None,
    timeout: Optional[int] = None,
) -> Tuple[int, str]:
    """
    Execute a command, forwarding each output line to the logger.

    The logger fans out to the console and the run's log file, so the child's
    output lands in both without a second sink.

    Args:
        cmd: Command string or list
        cwd: Working directory
        timeout: Max seconds before killing process

    Returns:
        tuple: (exit_code, combined stdout/stderr)
    """
    shell_mode = isinstance(cmd, str)
    log.debug(f"▶️ Running command: {cmd} (cwd={cwd})")

    try:
        process = subprocess.Popen(
            cmd,
            cwd=str(cwd) if cwd else None,
            shell=shell_mode,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            bufsize=1,
        )
    except FileNotFoundError as e:
        log.error(f"❌ Command not found: {e.filename or cmd}")
        return (COMMAND_NOT_FOUND, "")
    except OSError as e:
        log.error(f"🚨 Error running {cmd}: {e}")
        return (1, "")

    output_lines: List[str] = []
    assert process.stdout is not None
    with process.stdout:
        for line in process.stdout:
            text = line.rstrip()
            if text:
                log.info(text)
            output_lines.append(text)
    try:
        process.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()
        log.error(f"⏱️ Command timed out: {cmd}")
        return (COMMAND_TIMEOUT, "\n".join(output_lines))

    if process.returncode == 0:
        log.debug(f"✅ Command OK: {cmd}")
    else:
        log.debug(f"Command returned {process.returncode}: {cmd}")
    return (process.returncode, "\n".join(output_lines))
