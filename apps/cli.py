"""Command-line entry points for Housekeep Tools.

Each tool is installed as a ``console_scripts`` entry and supports shell
auto-completion via ``argcomplete``. Values resolve in the order
command-line flag, then ``configs/config.yaml`` (or ``--config``), then
built-in defaults.
"""

from __future__ import annotations

import argparse
import re
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

import argcomplete

from common.base.logging import get_logger, log_session, normalize_use_rich
from common.shared.loader import load_tool_config
from housekeep.backup import DEFAULT_RETRIES, DEFAULT_WAIT_SECONDS, ROBOCOPY, BackupError, run_backup
from housekeep.date_renamer import rename_by_date
from housekeep.metadata import DATE_FORMATS
from housekeep.naming import RenameSummary
from housekeep.pattern_renamer import DEFAULT_PATTERN, DEFAULT_REPLACEMENT, pattern_rename
from housekeep.pruner import prune_empty_dirs

log = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


# ----------------------------------------------------------------------
# SHARED PLUMBING
# ----------------------------------------------------------------------

def _build_parser(description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--config", "-c", help="Path to configuration YAML (defaults to repo config).")
    parser.add_argument("--log-path", help="Log file to append to (defaults to a timestamped file).")
    parser.add_argument("--log-level", choices=LOG_LEVELS, help="Logging verbosity (default: INFO).")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without touching the file system.",
    )
    return parser


def _parse(parser: argparse.ArgumentParser, argv: Optional[Iterable[str]]) -> argparse.Namespace:
    argcomplete.autocomplete(parser)
    return parser.parse_args(list(argv) if argv is not None else None)


def _run_tool(
    tool: str,
    args: argparse.Namespace,
    action: Callable[[Dict[str, Any]], int],
    *,
    default_log_dir: Optional[Path] = None,
) -> int:
    """
    Load config, open the run's log, execute ``action`` and map errors to exit codes.

    The log is closed on every path out of this function.
    """
    try:
        cfg = load_tool_config(tool, args.config)
    except (OSError, ValueError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    logging_cfg = cfg.pop("__logging__", {}) or {}
    log_dir = logging_cfg.get("log_dir") or default_log_dir
    file_prefix = logging_cfg.get("file_prefix") or tool
    with log_session(
        level=args.log_level or logging_cfg.get("level"),
        use_rich=normalize_use_rich(logging_cfg.get("use_rich")),
        log_dir=log_dir,
        file_prefix=file_prefix,
        log_file=args.log_path,
    ) as session_log:
        session_log.info(f"🚀 Running {tool}")
        if cfg.get("__config_path__"):
            session_log.debug(f"Configuration: {cfg['__config_path__']}")
        cfg["__log_file__"] = session_log.log_file
        cfg["__log_prefix__"] = file_prefix
        try:
            return action(cfg)
        except KeyboardInterrupt:
            session_log.warning("⚠️ Operation cancelled by user.")
            return EXIT_INTERRUPTED
        except (FileNotFoundError, NotADirectoryError) as exc:
            session_log.error(str(exc))
            return EXIT_FAILURE
        except re.error as exc:
            session_log.error(f"Invalid pattern: {exc}")
            return EXIT_FAILURE
        except BackupError as exc:
            session_log.error(str(exc))
            return exc.exit_code if exc.exit_code > 0 else EXIT_FAILURE
        except Exception as exc:
            session_log.error(f"❌ Unexpected error: {exc}", exc_info=True)
            return EXIT_FAILURE


def _rename_exit_code(summary: RenameSummary) -> int:
    return EXIT_FAILURE if summary.failed else EXIT_OK


def _own_logs(cfg: Dict[str, Any]) -> List[Path]:
    """The active log plus earlier run logs sharing its directory and prefix."""
    run_log: Optional[Path] = cfg.get("__log_file__")
    if run_log is None:
        return []
    prefix = cfg.get("__log_prefix__")
    earlier = sorted(run_log.parent.glob(f"{prefix}_*.log")) if prefix else []
    return [run_log, *earlier]


def _colocated_log_dir(raw_path: Optional[str]) -> Optional[Path]:
    if not raw_path:
        return None
    target = Path(raw_path).expanduser()
    if target.is_dir():
        return target
    if target.parent.is_dir():
        return target.parent
    return None


# ----------------------------------------------------------------------
# BACKUP
# ----------------------------------------------------------------------

def cli_backup(argv: Optional[Iterable[str]] = None) -> int:
    parser = _build_parser("Copy a directory tree with robocopy, preserving attributes, ACLs and owner.")
    parser.add_argument("--source", "-s", help="Directory to back up.")
    parser.add_argument("--destination", "-d", help="Backup target directory (created if missing).")
    parser.add_argument("--exclude-files", nargs="+", default=None, metavar="PATTERN", help="File patterns to skip.")
    parser.add_argument("--exclude-dirs", nargs="+", default=None, metavar="PATTERN", help="Directory patterns to skip.")
    parser.add_argument("--retries", type=int, help=f"Retries per failed copy (default: {DEFAULT_RETRIES}).")
    parser.add_argument("--wait", type=int, help=f"Seconds between retries (default: {DEFAULT_WAIT_SECONDS}).")
    args = _parse(parser, argv)

    def action(cfg: Dict[str, Any]) -> int:
        source = args.source or cfg.get("source")
        destination = args.destination or cfg.get("destination")
        if not source or not destination:
            log.error("Both --source and --destination are required.")
            return EXIT_FAILURE
        run_log: Optional[Path] = cfg.get("__log_file__")
        run_backup(
            Path(source),
            Path(destination),
            exclude_files=args.exclude_files if args.exclude_files is not None else cfg.get("exclude_files", []),
            exclude_dirs=args.exclude_dirs if args.exclude_dirs is not None else cfg.get("exclude_dirs", []),
            retries=args.retries if args.retries is not None else cfg.get("retries", DEFAULT_RETRIES),
            wait=args.wait if args.wait is not None else cfg.get("wait", DEFAULT_WAIT_SECONDS),
            log_file=run_log.with_name(f"{run_log.stem}_robocopy.log") if run_log else None,
            executable=cfg.get("executable") or ROBOCOPY,
            dry_run=args.dry_run or bool(cfg.get("dry_run", False)),
        )
        return EXIT_OK

    return _run_tool("backup", args, action)


# ----------------------------------------------------------------------
# RENAME BY DATE
# ----------------------------------------------------------------------

def cli_rename_by_date(argv: Optional[Iterable[str]] = None) -> int:
    parser = _build_parser("Rename files to yyyy-MM-dd_HHmmss from date taken or last-write time.")
    parser.add_argument("--path", "-p", required=True, help="File or directory to rename.")
    parser.add_argument("--recursive", "-r", action="store_true", help="Include files in subdirectories.")
    args = _parse(parser, argv)

    def action(cfg: Dict[str, Any]) -> int:
        summary = rename_by_date(
            Path(args.path),
            recursive=args.recursive or bool(cfg.get("recursive", False)),
            dry_run=args.dry_run or bool(cfg.get("dry_run", False)),
            exclude=_own_logs(cfg),
            formats=cfg.get("date_formats") or DATE_FORMATS,
        )
        return _rename_exit_code(summary)

    return _run_tool("rename_by_date", args, action, default_log_dir=_colocated_log_dir(args.path))


# ----------------------------------------------------------------------
# PRUNE EMPTY DIRECTORIES
# ----------------------------------------------------------------------

def cli_prune_empty_dirs(argv: Optional[Iterable[str]] = None) -> int:
    parser = _build_parser("Delete empty directories deepest-first, including the root once emptied.")
    parser.add_argument("--path", "-p", required=True, help="Root directory to prune.")
    args = _parse(parser, argv)

    def action(cfg: Dict[str, Any]) -> int:
        summary = prune_empty_dirs(
            Path(args.path),
            dry_run=args.dry_run or bool(cfg.get("dry_run", False)),
        )
        return EXIT_FAILURE if summary.failed else EXIT_OK

    return _run_tool("prune_empty_dirs", args, action)


# ----------------------------------------------------------------------
# PATTERN RENAME
# ----------------------------------------------------------------------

def cli_pattern_rename(argv: Optional[Iterable[str]] = None) -> int:
    parser = _build_parser("Rename files by regex substitution on the name (extension preserved).")
    parser.add_argument("--path", "-p", required=True, help="File or directory to rename.")
    parser.add_argument("--pattern", help=f"Regular expression to replace (default: {DEFAULT_PATTERN!r}).")
    parser.add_argument("--replacement", help=f"Replacement text (default: {DEFAULT_REPLACEMENT!r}).")
    parser.add_argument("--recursive", "-r", action="store_true", help="Include files in subdirectories.")
    args = _parse(parser, argv)

    def action(cfg: Dict[str, Any]) -> int:
        pattern = args.pattern if args.pattern is not None else cfg.get("pattern", DEFAULT_PATTERN)
        replacement = (
            args.replacement if args.replacement is not None else cfg.get("replacement", DEFAULT_REPLACEMENT)
        )
        summary = pattern_rename(
            Path(args.path),
            pattern,
            replacement,
            recursive=args.recursive or bool(cfg.get("recursive", False)),
            dry_run=args.dry_run or bool(cfg.get("dry_run", False)),
            exclude=_own_logs(cfg),
        )
        return _rename_exit_code(summary)

    return _run_tool("pattern_rename", args, action)


__all__ = [
    "cli_backup",
    "cli_pattern_rename",
    "cli_prune_empty_dirs",
    "cli_rename_by_date",
]
