from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from housekeep.metadata import (
    DATE_FORMATS,
    SOURCE_LAST_WRITE,
    SOURCE_METADATA,
    NullMetadataProvider,
    ShellMetadataProvider,
    clean_metadata_text,
    default_metadata_provider,
    parse_metadata_date,
    resolve_timestamp,
)

SHELL_DATE = "\u200e3/\u200e5/\u200e2024 \u200f\u200e2:22 PM"


class StaticProvider:
    def __init__(self, value: Optional[str]) -> None:
        self.value = value

    def date_taken(self, path: Path) -> Optional[str]:
        return self.value


class BrokenProvider:
    def date_taken(self, path: Path) -> Optional[str]:
        raise OSError("property store unavailable")


def _touch(path: Path, when: datetime) -> Path:
    path.write_bytes(b"\xff\xd8")
    ts = when.timestamp()
    os.utime(path, (ts, ts))
    return path


def test_clean_metadata_text_strips_bidi_marks() -> None:
    assert clean_metadata_text(SHELL_DATE) == "3/5/2024 2:22 PM"
    assert clean_metadata_text("\ufeff2024:03:05\xa0 14:22:10 ") == "2024:03:05 14:22:10"


def test_parse_metadata_date_uses_first_matching_format() -> None:
    parsed, fmt = parse_metadata_date(SHELL_DATE)
    assert parsed == datetime(2024, 3, 5, 14, 22)
    assert fmt == "%m/%d/%Y %I:%M %p"

    parsed, fmt = parse_metadata_date("2024:03:05 14:22:10")
    assert parsed == datetime(2024, 3, 5, 14, 22, 10)
    assert fmt == "%Y:%m:%d %H:%M:%S"


@pytest.mark.parametrize("raw", [None, "", "   ", "\u200e\u200f", "not a date", "31/31/2024 10:00"])
def test_parse_metadata_date_rejects_unusable_values(raw: Optional[str]) -> None:
    assert parse_metadata_date(raw) == (None, None)


def test_formats_are_tried_in_order() -> None:
    # Ambiguous day/month: month-first wins because it is listed first.
    parsed, _ = parse_metadata_date("04/05/2024 10:00")
    assert parsed == datetime(2024, 4, 5, 10, 0)
    parsed, _ = parse_metadata_date("04/05/2024 10:00", formats=("%d/%m/%Y %H:%M",))
    assert parsed == datetime(2024, 5, 4, 10, 0)
    assert DATE_FORMATS.index("%m/%d/%Y %H:%M") < DATE_FORMATS.index("%d/%m/%Y %H:%M")


def test_resolve_timestamp_prefers_metadata(tmp_path: Path) -> None:
    path = _touch(tmp_path / "IMG_0001.JPG", datetime(2020, 1, 1, 8, 0, 0))
    resolved = resolve_timestamp(path, StaticProvider(SHELL_DATE))
    assert resolved.source == SOURCE_METADATA
    assert resolved.value == datetime(2024, 3, 5, 14, 22)
    assert not resolved.used_fallback


@pytest.mark.parametrize("provider", [NullMetadataProvider(), StaticProvider("garbage"), BrokenProvider()])
def test_resolve_timestamp_falls_back_to_last_write(tmp_path: Path, provider) -> None:
    when = datetime(2024, 3, 5, 14, 22, 10)
    path = _touch(tmp_path / "IMG_0001.JPG", when)
    resolved = resolve_timestamp(path, provider)
    assert resolved.source == SOURCE_LAST_WRITE
    assert resolved.used_fallback
    assert resolved.value == when


class FakeItem:
    def __init__(self, name: str) -> None:
        self.Name = name


class FakeFolder:
    def __init__(self, headers: List[str], values: Dict[str, Dict[int, str]]) -> None:
        self.headers = headers
        self.values = values

    def ParseName(self, name: str) -> Optional[FakeItem]:
        return FakeItem(name) if name in self.values else None

    def GetDetailsOf(self, item: Optional[FakeItem], index: int) -> str:
        if item is None:
            return self.headers[index] if index < len(self.headers) else ""
        return self.values[item.Name].get(index, "")


class FakeShell:
    def __init__(self, folder: FakeFolder) -> None:
        self.folder = folder
        self.namespace_calls = 0

    def Namespace(self, directory: str) -> FakeFolder:
        self.namespace_calls += 1
        return self.folder


def test_shell_provider_reads_date_taken_column(tmp_path: Path) -> None:
    headers = ["Name", "Size", "Item type", "Date taken"]
    folder = FakeFolder(headers, {"a.jpg": {3: SHELL_DATE}, "b.jpg": {}})
    shell = FakeShell(folder)
    provider = ShellMetadataProvider(shell)

    assert provider.date_taken(tmp_path / "a.jpg") == SHELL_DATE
    assert provider.date_taken(tmp_path / "b.jpg") is None
    assert provider.date_taken(tmp_path / "missing.jpg") is None
    assert shell.namespace_calls == 1


def test_default_provider_is_null_off_windows(monkeypatch) -> None:
    monkeypatch.setattr("housekeep.metadata.sys.platform", "linux")
    assert isinstance(default_metadata_provider(), NullMetadataProvider)
