"""
common.base.logging

Typed logging for Housekeep Tools.

Features:
 - Custom HousekeepLogger subclass with Rich detection flag
 - Unified setup for Rich + standard logging
 - Per-run log file with `[yyyy-MM-dd HH:mm:ss] message` lines
 - Colorized, emoji-enhanced console level output
 - Scoped `log_session` that closes the log file on every exit path
"""

from __future__ import annotations

import logging
import sys
import tempfile
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, cast

from rich.logging import RichHandler
from rich.text import Text

# ----------------------------------------------------------------------
# LEVEL STYLE METADATA
# ----------------------------------------------------------------------

ROOT_LOGGER_NAME = "housekeep"
ANSI_RESET = "\033[0m"
LOG_LINE_FORMAT = "[%(asctime)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_TIMESTAMP = "%Y%m%d_%H%M%S"

LEVEL_STYLES: Dict[int, Dict[str, str]] = {
    logging.DEBUG: {"emoji": "🐛", "ansi": "\033[36m", "rich": "bright_cyan"},
    logging.INFO: {"emoji": "ℹ️", "ansi": "\033[32m", "rich": "green"},
    logging.WARNING: {"emoji": "⚠️", "ansi": "\033[33m", "rich": "yellow"},
    logging.ERROR: {"emoji": "❌", "ansi": "\033[31m", "rich": "red"},
    logging.CRITICAL: {"emoji": "💥", "ansi": "\033[95m", "rich": "bold magenta"},
}
DEFAULT_STYLE = LEVEL_STYLES[logging.INFO]


# ----------------------------------------------------------------------
# FORMATTERS
# ----------------------------------------------------------------------

class ColorEmojiFormatter(logging.Formatter):
    """Console formatter that injects colored level names and emojis."""

    def format(self, record: logging.LogRecord) -> str:
        style = LEVEL_STYLES.get(record.levelno, DEFAULT_STYLE)
        display = f"{style['emoji']} {record.levelname}"
        record.level_display = f"{style['ansi']}{display}{ANSI_RESET}"  # type: ignore[attr-defined]
        try:
            return super().format(record)
        finally:
            del record.level_display  # type: ignore[attr-defined]


class LogLineFormatter(logging.Formatter):
    """File formatter producing one `[timestamp] message` line per event.

    Records at WARNING and above keep their level as a message prefix so the
    log stays greppable without breaking the line layout.
    """

    def __init__(self) -> None:
        super().__init__(fmt=LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT)

    def formatMessage(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.WARNING:
            original = record.message
            record.message = f"{record.levelname}: {original}"
            try:
                return super().formatMessage(record)
            finally:
                record.message = original
        return super().formatMessage(record)

    def format(self, record: logging.LogRecord) -> str:
        # Tracebacks and stack info are folded onto the event's line.
        lines = [line.rstrip() for line in super().format(record).splitlines()]
        return " | ".join(line for line in lines if line)


class HousekeepRichHandler(RichHandler):
    """Rich console handler with emoji-enhanced level column."""

    def get_level_text(self, record: logging.LogRecord) -> Text:
        style = LEVEL_STYLES.get(record.levelno, DEFAULT_STYLE)
        style_name = style.get("rich", "")
        text = Text()
        text.append(f"{style['emoji']} ", style=style_name or None)
        text.append(record.levelname, style=style_name or None)
        return text


# ----------------------------------------------------------------------
# LOGGER CLASS
# ----------------------------------------------------------------------

class HousekeepLogger(logging.Logger):
    """Custom logger with Rich support flag and optional log file."""

    rich_enabled: bool = False
    log_file: Optional[Path] = None


# ----------------------------------------------------------------------
# NORMALIZATION HELPERS
# ----------------------------------------------------------------------

def _normalize_level(value: Any) -> str:
    if isinstance(value, str):
        candidate = value.strip().upper()
        if candidate in logging._nameToLevel:  # type: ignore[attr-defined]
            return candidate
    elif isinstance(value, int):
        label = logging.getLevelName(value)
        if isinstance(label, str) and not label.startswith("Level "):
            return label
    return "INFO"


def normalize_use_rich(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"auto", "default", ""}:
            return None
        if lowered in {"true", "yes", "1", "on"}:
            return True
        if lowered in {"false", "no", "0", "off"}:
            return False
    return None


def default_log_dir() -> Path:
    return Path(tempfile.gettempdir())


def build_log_file_path(log_dir: Optional[Path | str], file_prefix: str) -> Path:
    """Return `<log_dir>/<prefix>_<yyyyMMdd_HHmmss>.log` (temp dir when unset)."""
    base = Path(log_dir).expanduser() if log_dir else default_log_dir()
    timestamp = datetime.now().strftime(LOG_FILE_TIMESTAMP)
    return base / f"{file_prefix}_{timestamp}.log"


def _close_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.flush()
        handler.close()


# ----------------------------------------------------------------------
# BASE LOGGER SETUP
# ----------------------------------------------------------------------

def setup_logging(
    level: str | int | None = None,
    use_rich: Optional[bool] = None,
    log_dir: Optional[Path | str] = None,
    file_prefix: Optional[str] = None,
    log_file: Optional[Path | str] = None,
) -> HousekeepLogger:
    """
    Configure and return the global Housekeep logger.

    Args:
        level: Desired logging level (INFO if unset).
        use_rich: Force-enable or disable the Rich handler. None means auto (on
            when stdout is a terminal).
        log_dir: Directory for the generated log file. Defaults to the
            platform temp directory.
        file_prefix: Prefix for the generated log filename.
        log_file: Explicit log file path; overrides ``log_dir``/``file_prefix``.
    """
    resolved_level = _normalize_level(level)
    resolved_use_rich = sys.stdout.isatty() if use_rich is None else bool(use_rich)

    logging.setLoggerClass(HousekeepLogger)
    logger = cast(HousekeepLogger, logging.getLogger(ROOT_LOGGER_NAME))
    logger.setLevel(resolved_level)

    # Tear down any previous handlers so we can rebuild with new settings.
    _close_handlers(logger)

    # ------------------------------------------------------------------
    # Console Handler (Rich or ANSI)
    # ------------------------------------------------------------------
    console_handler: logging.Handler
    if resolved_use_rich:
        console_handler = HousekeepRichHandler(
            rich_tracebacks=True,
            markup=False,
            show_time=True,
            show_level=True,
            show_path=False,
            log_time_format="[%X]",
        )
        logger.rich_enabled = True
    else:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(
            ColorEmojiFormatter(
                fmt="%(asctime)s %(level_display)s: %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        logger.rich_enabled = False
    console_handler.setLevel(logging.NOTSET)
    logger.addHandler(console_handler)

    # ------------------------------------------------------------------
    # File Handler
    # ------------------------------------------------------------------
    if log_file:
        log_file_path = Path(log_file).expanduser()
    else:
        log_file_path = build_log_file_path(log_dir, file_prefix or ROOT_LOGGER_NAME)
    log_file_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_file_path, mode="a", encoding="utf-8")
    file_handler.setFormatter(LogLineFormatter())
    file_handler.setLevel(logging.NOTSET)
    logger.addHandler(file_handler)
    logger.log_file = log_file_path

    logger.propagate = False
    logger._initialized = True  # type: ignore[attr-defined]
    logger.debug(
        "Logger initialized at level %s (Rich=%s)",
        resolved_level,
        "ON" if logger.rich_enabled else "OFF",
    )
    logger.info("📄 Log file: %s", log_file_path.resolve())
    return logger


def shutdown_logging() -> None:
    """Flush and close every handler attached to the Housekeep logger."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    _close_handlers(logger)
    logger.addHandler(logging.NullHandler())
    logger._initialized = False  # type: ignore[attr-defined]
    if isinstance(logger, HousekeepLogger):
        logger.log_file = None


@contextmanager
def log_session(
    level: str | int | None = None,
    use_rich: Optional[bool] = None,
    log_dir: Optional[Path | str] = None,
    file_prefix: Optional[str] = None,
    log_file: Optional[Path | str] = None,
) -> Iterator[HousekeepLogger]:
    """Own the run's log file for the duration of one tool invocation."""
    logger = setup_logging(
        level=level,
        use_rich=use_rich,
        log_dir=log_dir,
        file_prefix=file_prefix,
        log_file=log_file,
    )
    try:
        yield logger
    finally:
        shutdown_logging()


# ----------------------------------------------------------------------
# UTILITY ACCESSOR
# ----------------------------------------------------------------------

def get_logger(name: str = ROOT_LOGGER_NAME) -> HousekeepLogger:
    """Retrieve a namespaced Housekeep logger (configured later via setup_logging)."""

    logging.setLoggerClass(HousekeepLogger)
    base = cast(HousekeepLogger, logging.getLogger(ROOT_LOGGER_NAME))

    if not getattr(base, "_initialized", False) and not base.handlers:
        base.addHandler(logging.NullHandler())

    if not name or name == ROOT_LOGGER_NAME:
        return base

    return cast(HousekeepLogger, base.getChild(name))
