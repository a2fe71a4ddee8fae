from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from pathlib import Path
from typing import TypeAlias
import tomllib

from strictify.exceptions import ConfigError
from strictify.frontend.diagnostics import CheckFlag, parse_check_flags
from strictify.frontend.project import DEFAULT_EXCLUDE_DIRS
from strictify.repair.driver import DEFAULT_MAX_ITERATIONS
from strictify.repair.strategy import RepairMode

DEFAULT_CONFIG_NAME = "strictify.toml"
PYPROJECT_NAME = "pyproject.toml"

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]


@dataclass(frozen=True)
class StrictifyConfig:
    config_path: Path
    root: Path
    include: tuple[Path, ...]
    exclude: tuple[str, ...]
    checks: tuple[CheckFlag, ...]
    mode: RepairMode = RepairMode.ALL
    format: bool = True
    max_iterations: int = DEFAULT_MAX_ITERATIONS


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigError(f"Project config not found: {path}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc
    return data if isinstance(data, dict) else {}


def resolve_config_path(path: Path) -> Path:
    """Accept either a config file or a directory holding one."""
    if path.is_dir():
        for name in (DEFAULT_CONFIG_NAME, PYPROJECT_NAME):
            candidate = path / name
            if candidate.exists():
                return candidate
        return path / DEFAULT_CONFIG_NAME
    return path


def load_config(config_path: Path) -> TomlTable:
    data = _load_toml(config_path)
    if config_path.name != PYPROJECT_NAME:
        return data
    tool = data.get("tool", {})
    section = tool.get("strictify", {}) if isinstance(tool, dict) else {}
    return section if isinstance(section, dict) else {}


def _normalize_name_list(value: TomlValue) -> list[str]:
    items: list[str] = []
    if value is None:
        return items
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, (list, tuple, set)):
        for item in value:
            if isinstance(item, str):
                items.extend([part.strip() for part in item.split(",") if part.strip()])
    return [item for item in items if item]


def _as_bool(value: TomlValue) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return False


def _as_positive_int(key: str, value: TomlValue) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"'{key}' must be a positive integer, got {value!r}.")
    return value


def merge_payload(payload: TomlTable, defaults: TomlTable) -> TomlTable:
    merged = dict(defaults)
    for key, value in payload.items():
        if value is None:
            continue
        merged[key] = value
    return merged


def build_config(section: TomlTable, config_path: Path) -> StrictifyConfig:
    root = config_path.parent.resolve()
    include = _normalize_name_list(section.get("include")) or ["."]
    exclude = _normalize_name_list(section.get("exclude"))
    checks_value = section.get("checks")
    try:
        checks = (
            parse_check_flags(_normalize_name_list(checks_value))
            if checks_value is not None
            else tuple(CheckFlag)
        )
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc
    mode_value = section.get("mode", RepairMode.ALL.value)
    try:
        mode = RepairMode(str(mode_value).strip().lower())
    except ValueError as exc:
        known = ", ".join(item.value for item in RepairMode)
        raise ConfigError(f"Unknown mode '{mode_value}' (known: {known}).") from exc
    max_iterations = DEFAULT_MAX_ITERATIONS
    if section.get("max_iterations") is not None:
        max_iterations = _as_positive_int("max_iterations", section["max_iterations"])
    return StrictifyConfig(
        config_path=config_path,
        root=root,
        include=tuple((root / item).resolve() for item in include),
        exclude=tuple(sorted(set(DEFAULT_EXCLUDE_DIRS) | set(exclude))),
        checks=checks,
        mode=mode,
        format=_as_bool(section.get("format", True)),
        max_iterations=max_iterations,
    )


def load_project_config(
    path: Path, *, overrides: TomlTable | None = None
) -> StrictifyConfig:
    """Load the project config; non-None ``overrides`` win over file values."""
    config_path = resolve_config_path(path)
    section = load_config(config_path)
    if overrides:
        section = merge_payload(overrides, section)
    return build_config(section, config_path)
