from __future__ import annotations

import json
import textwrap
from pathlib import Path

import pytest

from common.base.file_io import write_yaml
from common.shared.loader import cli_main, load_logging_config, load_tool_config


def _write_config(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


def test_load_tool_config_backup(tmp_path: Path) -> None:
    cfg_path = _write_config(
        tmp_path,
        """
        logging:
          level: DEBUG
          log_dir: ./logs
        tools:
          backup:
            source: ~/data
            destination: /mnt/backup
            retries: "2"
            wait: 10
            exclude_files: "*.tmp"
            exclude_dirs: [node_modules, .git]
            dry_run: yes
        """,
    )

    config = load_tool_config("backup", cfg_path)
    assert config["source"] == str(Path("~/data").expanduser())
    assert config["destination"] == str(Path("/mnt/backup"))
    assert config["retries"] == 2
    assert config["wait"] == 10
    assert config["exclude_files"] == ["*.tmp"]
    assert config["exclude_dirs"] == ["node_modules", ".git"]
    assert config["dry_run"] is True
    assert config["__tool__"] == "backup"
    assert config["__logging__"] == {"level": "DEBUG", "log_dir": "./logs"}


def test_load_tool_config_missing_section_is_empty(tmp_path: Path) -> None:
    cfg_path = _write_config(tmp_path, "logging:\n  level: INFO\n")
    config = load_tool_config("prune_empty_dirs", cfg_path)
    assert {k: v for k, v in config.items() if not k.startswith("__")} == {}


def test_load_tool_config_rejects_unknown_keys(tmp_path: Path) -> None:
    cfg_path = tmp_path / "bad.yaml"
    write_yaml(cfg_path, {"tools": {"pattern_rename": {"pattern": "_", "template": "{name}"}}})
    with pytest.raises(ValueError, match="template"):
        load_tool_config("pattern_rename", cfg_path)


def test_load_tool_config_rejects_unknown_tool() -> None:
    with pytest.raises(ValueError, match="Unknown tool"):
        load_tool_config("defrag")


@pytest.mark.parametrize("value", ["-1", "three", True])
def test_load_tool_config_rejects_bad_integers(tmp_path: Path, value: object) -> None:
    cfg_path = tmp_path / "bad.yaml"
    write_yaml(cfg_path, {"tools": {"backup": {"retries": value}}})
    with pytest.raises(ValueError, match="retries"):
        load_tool_config("backup", cfg_path)


def test_load_tool_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_tool_config("backup", tmp_path / "absent.yaml")


def test_bundled_config_defaults() -> None:
    config = load_tool_config("pattern_rename")
    assert config["pattern"] == r"\s+"
    assert config["replacement"] == "-"
    assert config["recursive"] is False


def test_load_logging_config_rejects_unknown_keys(tmp_path: Path) -> None:
    cfg_path = _write_config(tmp_path, "logging:\n  colour: red\n")
    with pytest.raises(ValueError, match="colour"):
        load_logging_config(cfg_path)


def test_cli_main_prints_resolved_config(tmp_path: Path, capsys) -> None:
    cfg_path = _write_config(tmp_path, "tools:\n  prune_empty_dirs:\n    dry_run: yes\n")
    assert cli_main(["prune_empty_dirs", str(cfg_path)]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["dry_run"] is True
    assert payload["__tool__"] == "prune_empty_dirs"
