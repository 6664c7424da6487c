"""
Shared configuration loading and validation helpers.

Provides:
 - `load_config`: basic YAML loader
 - `load_logging_config`: the `logging` section of a config file
 - `load_tool_config`: validated configuration for a given tool
 - `cli_main`: command-line entry point exposed as the `hk-config` script
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from common.base.file_io import read_yaml


ConfigDict = Dict[str, Any]

DEFAULT_CONFIG_FILENAME = "config.yaml"
LOGGING_SECTION_KEY = "logging"
TOOLS_SECTION_KEY = "tools"
CONFIGS_DIR = Path(__file__).resolve().parents[2] / "configs"


TOOL_SCHEMAS: Dict[str, Iterable[str]] = {
    "backup": [
        "source",
        "destination",
        "exclude_files",
        "exclude_dirs",
        "retries",
        "wait",
        "executable",
        "dry_run",
    ],
    "rename_by_date": ["recursive", "dry_run", "date_formats"],
    "prune_empty_dirs": ["dry_run"],
    "pattern_rename": ["pattern", "replacement", "recursive", "dry_run"],
}

SINGLE_PATH_FIELDS = {"source", "destination"}
BOOLEAN_FIELDS = {"dry_run", "recursive"}
INTEGER_FIELDS = {"retries", "wait"}
STRING_LIST_FIELDS = {"exclude_files", "exclude_dirs", "date_formats"}
LOGGING_ALLOWED_KEYS = {"level", "use_rich", "log_dir", "file_prefix"}

YES_VALUES = {"1", "true", "yes", "y", "on"}
NO_VALUES = {"0", "false", "no", "n", "off"}


def load_config(path: str | Path | None) -> Mapping[str, Any] | Dict[str, Any]:
    if not path:
        return {}

    cfg_path = Path(path).expanduser()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {cfg_path}")

    data = read_yaml(cfg_path)
    if not isinstance(data, Mapping):
        raise ValueError(f"Configuration root must be a mapping in {cfg_path}")

    return data or {}


def default_config_path() -> Optional[Path]:
    candidate = CONFIGS_DIR / DEFAULT_CONFIG_FILENAME
    return candidate if candidate.exists() else None


def load_logging_config(config_path: str | Path | None = None) -> Dict[str, Any]:
    root = load_config(config_path)
    return _extract_logging_settings(root, config_path)


def load_tool_config(tool: str, config_path: str | Path | None = None) -> ConfigDict:
    """
    Load and validate the section for ``tool``.

    When ``config_path`` is omitted the bundled ``configs/config.yaml`` is used
    if present; otherwise only built-in defaults apply and the result is empty
    apart from the bookkeeping keys.
    """
    if tool not in TOOL_SCHEMAS:
        raise ValueError(f"Unknown tool '{tool}'. Expected one of: {', '.join(sorted(TOOL_SCHEMAS))}")

    resolved_path = Path(config_path).expanduser() if config_path else default_config_path()
    root_config = dict(load_config(resolved_path))
    tool_config = _extract_tool_config(root_config, tool, resolved_path)

    allowed_keys = set(TOOL_SCHEMAS[tool])
    unexpected = [key for key in tool_config if key not in allowed_keys]
    if unexpected:
        raise ValueError(
            f"Configuration '{resolved_path}' contains unsupported keys for tool '{tool}': {', '.join(sorted(unexpected))}"
        )

    normalized: ConfigDict = {}
    for key, value in tool_config.items():
        if value is None:
            continue
        if key in SINGLE_PATH_FIELDS:
            normalized[key] = str(Path(str(value)).expanduser())
        elif key in BOOLEAN_FIELDS:
            normalized[key] = _coerce_bool(value, key, resolved_path)
        elif key in INTEGER_FIELDS:
            normalized[key] = _coerce_int(value, key, resolved_path)
        elif key in STRING_LIST_FIELDS:
            normalized[key] = _normalize_str_list(value)
        else:
            normalized[key] = str(value)

    normalized["__tool__"] = tool
    normalized["__config_path__"] = str(resolved_path) if resolved_path else None
    normalized["__logging__"] = _extract_logging_settings(root_config, resolved_path)
    return normalized


def _coerce_bool(value: Any, field: str, config_path: Optional[Path]) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in YES_VALUES:
        return True
    if text in NO_VALUES:
        return False
    raise ValueError(f"Configuration '{config_path}' field '{field}' must be a boolean.")


def _coerce_int(value: Any, field: str, config_path: Optional[Path]) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Configuration '{config_path}' field '{field}' must be an integer.")
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Configuration '{config_path}' field '{field}' must be an integer."
        ) from exc
    if number < 0:
        raise ValueError(f"Configuration '{config_path}' field '{field}' must not be negative.")
    return number


def _normalize_str_list(value: Any) -> List[str]:
    if isinstance(value, (list, tuple, set)):
        return [str(item) for item in value if item is not None and str(item) != ""]
    text = str(value)
    return [text] if text else []


def _extract_tool_config(root: Mapping[str, Any], tool: str, config_path: Optional[Path]) -> ConfigDict:
    tools_section = root.get(TOOLS_SECTION_KEY) or {}
    if not isinstance(tools_section, Mapping):
        raise ValueError(f"'{TOOLS_SECTION_KEY}' section must be a mapping in {config_path}")
    payload = tools_section.get(tool) or {}
    if not isinstance(payload, Mapping):
        raise ValueError(f"Tool '{tool}' entry must be a mapping in {config_path}")
    return dict(payload)


def _extract_logging_settings(root: Mapping[str, Any], config_path: Any) -> Dict[str, Any]:
    section = root.get(LOGGING_SECTION_KEY) or {}
    if not isinstance(section, Mapping):
        raise ValueError(f"'{LOGGING_SECTION_KEY}' section must be a mapping in {config_path}")
    invalid = [key for key in section if key not in LOGGING_ALLOWED_KEYS]
    if invalid:
        raise ValueError(
            f"'{LOGGING_SECTION_KEY}' section contains unsupported keys in {config_path}: {', '.join(sorted(invalid))}"
        )
    return {key: value for key, value in section.items() if value is not None}


def cli_main(argv: Optional[Iterable[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Load and validate Housekeep Tools YAML configs.")
    parser.add_argument("tool", choices=sorted(TOOL_SCHEMAS), help="Tool identifier")
    parser.add_argument("config_path", nargs="?", help="Path to YAML file (defaults to configs/config.yaml)")
    args = parser.parse_args(list(argv) if argv is not None else None)

    config = load_tool_config(args.tool, args.config_path)
    print(json.dumps(config, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(cli_main())
