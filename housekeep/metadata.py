"""
housekeep.metadata

Timestamp resolution for the date renamer.

The "date taken" value comes from the Windows shell property system through
``Shell.Application``. Shell detail strings carry invisible bidi marks around
each date component (LRM, U+200E, before every field), so
they are cleaned before being matched against ``DATE_FORMATS`` in order.
Anything missing, malformed or unreadable falls back to the file's last-write
time, which makes ``resolve_timestamp`` total.
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Sequence, Tuple

from common.base.logging import get_logger

log = get_logger(__name__)

SOURCE_METADATA = "metadata"
SOURCE_LAST_WRITE = "last_write"

DATE_TAKEN_HEADER = "Date taken"
DATE_TAKEN_COLUMN = 12
MAX_DETAIL_COLUMNS = 320

# Zero-width space/joiners, LRM/RLM, bidi embeddings/overrides, bidi isolates, BOM.
INVISIBLE_CHARS = (
    "\u200b\u200c\u200d\u200e\u200f"
    "\u202a\u202b\u202c\u202d\u202e"
    "\u2066\u2067\u2068\u2069"
    "\ufeff"
)
_INVISIBLE_RE = re.compile(f"[{INVISIBLE_CHARS}]")
_WHITESPACE_RE = re.compile(r"\s+")

DATE_FORMATS: Tuple[str, ...] = (
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y %H:%M:%S",
    "%d.%m.%Y %H:%M",
    "%d.%m.%Y %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y:%m:%d %H:%M:%S",
)


class MetadataProvider(Protocol):
    def date_taken(self, path: Path) -> Optional[str]:
        ...


class NullMetadataProvider:
    """Provider for platforms without shell metadata; always empty."""

    name = "none"

    def date_taken(self, path: Path) -> Optional[str]:
        return None


class ShellMetadataProvider:
    """Read the "Date taken" column through the Windows shell COM object."""

    name = "windows-shell"

    def __init__(self, shell: Any = None) -> None:
        if shell is None:
            import win32com.client  # type: ignore[import-not-found]

            shell = win32com.client.Dispatch("Shell.Application")
        self._shell = shell
        self._folders: Dict[str, Any] = {}
        self._columns: Dict[str, int] = {}

    def _folder(self, directory: Path) -> Any:
        key = str(directory)
        if key not in self._folders:
            self._folders[key] = self._shell.Namespace(key)
        return self._folders[key]

    def _date_taken_column(self, folder: Any, directory: Path) -> int:
        key = str(directory)
        if key not in self._columns:
            index = DATE_TAKEN_COLUMN
            for i in range(MAX_DETAIL_COLUMNS):
                header = folder.GetDetailsOf(None, i)
                if header and str(header).strip().lower() == DATE_TAKEN_HEADER.lower():
                    index = i
                    break
            self._columns[key] = index
        return self._columns[key]

    def date_taken(self, path: Path) -> Optional[str]:
        directory = path.resolve().parent
        folder = self._folder(directory)
        if folder is None:
            return None
        item = folder.ParseName(path.name)
        if item is None:
            return None
        value = folder.GetDetailsOf(item, self._date_taken_column(folder, directory))
        text = str(value) if value is not None else ""
        return text or None


def default_metadata_provider() -> MetadataProvider:
    """Shell provider on Windows, null provider elsewhere."""
    if sys.platform != "win32":
        log.debug("Shell metadata unavailable on this platform; using last-write times only")
        return NullMetadataProvider()
    try:
        return ShellMetadataProvider()
    except ImportError:
        log.warning("pywin32 not installed; falling back to last-write times only.")
    except Exception as exc:
        log.warning(f"Shell.Application unavailable ({exc}); falling back to last-write times only.")
    return NullMetadataProvider()


def clean_metadata_text(raw: str) -> str:
    text = _INVISIBLE_RE.sub("", raw).replace("\xa0", " ")
    return _WHITESPACE_RE.sub(" ", text).strip()


def parse_metadata_date(
    raw: Optional[str],
    formats: Sequence[str] = DATE_FORMATS,
) -> Tuple[Optional[datetime], Optional[str]]:
    """Return ``(datetime, format)`` for the first matching format, else ``(None, None)``."""
    if not raw:
        return None, None
    text = clean_metadata_text(raw)
    if not text:
        return None, None
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt), fmt
        except ValueError:
            continue
    return None, None


@dataclass(frozen=True)
class ResolvedTimestamp:
    value: datetime
    source: str
    raw: Optional[str] = None
    date_format: Optional[str] = None

    @property
    def used_fallback(self) -> bool:
        return self.source == SOURCE_LAST_WRITE


def last_write_time(path: Path) -> datetime:
    return datetime.fromtimestamp(path.stat().st_mtime)


def resolve_timestamp(
    path: Path,
    provider: MetadataProvider,
    formats: Sequence[str] = DATE_FORMATS,
) -> ResolvedTimestamp:
    raw: Optional[str] = None
    try:
        raw = provider.date_taken(path)
    except Exception as exc:
        log.warning(f"Metadata read failed for {path.name}: {exc}")

    log.info(f"Raw date taken for {path.name}: {clean_metadata_text(raw) if raw else '(none)'}")
    parsed, fmt = parse_metadata_date(raw, formats)
    if parsed is not None:
        log.info(f"Parsed date taken with format '{fmt}': {parsed}")
        return ResolvedTimestamp(parsed, SOURCE_METADATA, raw, fmt)

    if raw:
        log.info(f"Unrecognized date taken '{clean_metadata_text(raw)}'; using last-write time")
    else:
        log.info("No date taken; using last-write time")
    return ResolvedTimestamp(last_write_time(path), SOURCE_LAST_WRITE, raw, None)
