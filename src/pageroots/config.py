"""
TOML-based config file loading for pageroots.

Searches for `.pageroots.toml`, `pageroots.toml`, or `pyproject.toml [tool.pageroots]`
walking up from the start directory. Config values are merged with CLI flags
using three-way precedence: explicit CLI flags > config file > built-in defaults.
"""

from __future__ import annotations

import os
import posixpath
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, TypeVar, cast

from pageroots.errors import UsageError, assert_internal
from pageroots.paths import to_posix_path

if sys.version_info >= (3, 11):
    import tomllib  # pyright: ignore[reportUnreachable]
else:
    import tomli as tomllib  # type: ignore[no-redef]  # pyright: ignore[reportUnreachable]


@dataclass
class PagerootsConfig:
    """
    Parsed config from a TOML file. Fields are `None` when not set in the config,
    allowing the merge logic to distinguish "not configured" from "explicitly set
    to default value".
    """

    # Glob roots
    root: str | None = None
    include: list[str] | None = None
    include_dist: list[str] | None = None
    # Page file scanning
    page_files: list[str] | None = None
    extend_exclude: list[str] | None = None
    respect_gitignore: bool | None = None


@dataclass(frozen=True)
class ResolvedConfig:
    """
    Configuration consumed by `get_glob_roots`. `root` is absolute, normalized
    and uses forward slashes.
    """

    root: str
    include: list[str]
    include_dist: list[str]


# Config file search order (first match wins within each directory level)
_CONFIG_FILENAMES = [".pageroots.toml", "pageroots.toml", "pyproject.toml"]

# Mapping from TOML kebab-case keys to Python snake_case field names
_KEBAB_TO_SNAKE: dict[str, str] = {
    "include-dist": "include_dist",
    "page-files": "page_files",
    "extend-exclude": "extend_exclude",
    "respect-gitignore": "respect_gitignore",
}

_VALID_FIELDS = {f.name for f in fields(PagerootsConfig)}

_REQUIRED_RESOLVED_FIELDS = ("root", "include", "include_dist")


def find_config_file(start_dir: Path) -> Path | None:
    """
    Walk up from `start_dir` looking for a config file. Returns the first
    found, or `None`. Search order per directory: `.pageroots.toml` >
    `pageroots.toml` > `pyproject.toml` (only if it has `[tool.pageroots]`).
    """
    current = start_dir.resolve()
    while True:
        for filename in _CONFIG_FILENAMES:
            candidate = current / filename
            if candidate.is_file():
                if filename == "pyproject.toml":
                    if _pyproject_has_pageroots_section(candidate):
                        return candidate
                else:
                    return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def _pyproject_has_pageroots_section(path: Path) -> bool:
    try:
        data = tomllib.loads(path.read_text())
        return "pageroots" in data.get("tool", {})
    except (tomllib.TOMLDecodeError, OSError):
        return False


def load_config(config_path: Path) -> PagerootsConfig:
    """
    Load a `PagerootsConfig` from a TOML file. Supports both standalone
    `pageroots.toml` / `.pageroots.toml` and `pyproject.toml` (extracts
    `[tool.pageroots]`).
    """
    try:
        data = tomllib.loads(config_path.read_text())
    except tomllib.TOMLDecodeError as e:
        raise UsageError(f"Invalid TOML in {config_path}: {e}") from e

    if config_path.name == "pyproject.toml":
        data = data.get("tool", {}).get("pageroots", {})

    return _parse_config_data(data)


def _parse_config_data(data: dict[str, Any]) -> PagerootsConfig:
    """Parse a flat or sectioned TOML dict into PagerootsConfig."""
    # Flatten sections: [pages] and [scan] merge into top level
    flat: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            for sub_key, sub_value in cast(dict[str, Any], value).items():
                flat[sub_key] = sub_value
        else:
            flat[key] = value

    mapped: dict[str, Any] = {}
    for key, value in flat.items():
        snake_key = _KEBAB_TO_SNAKE.get(key, key.replace("-", "_"))
        if snake_key in _VALID_FIELDS:
            mapped[snake_key] = value

    for list_field in ("include", "include_dist", "page_files", "extend_exclude"):
        value = mapped.get(list_field)
        if value is not None and not (
            isinstance(value, list) and all(isinstance(v, str) for v in cast(list[Any], value))
        ):
            raise UsageError(f"Config `{list_field}` must be a list of strings, got {value!r}")

    return PagerootsConfig(**mapped)


_T = TypeVar("_T")


def merge_cli_with_config(
    cli_opts: _T,
    config: PagerootsConfig | None,
    explicit_flags: set[str],
) -> _T:
    """
    Merge CLI options with config file settings.

    Precedence: explicit CLI flags > config file > built-in defaults.
    """
    if config is None:
        return cli_opts

    for cfg_field in fields(PagerootsConfig):
        cfg_value = getattr(config, cfg_field.name)
        if cfg_value is None:
            continue
        if cfg_field.name in explicit_flags:
            continue
        if hasattr(cli_opts, cfg_field.name):
            setattr(cli_opts, cfg_field.name, cfg_value)

    return cli_opts


def normalize_root(root: str, base_dir: str | Path) -> str:
    """Absolute, normalized, forward-slash form of `root`; relative roots resolve against `base_dir`."""
    absolute = os.path.abspath(os.path.join(os.fspath(base_dir), root))
    return posixpath.normpath(to_posix_path(absolute))


def resolve_config(
    root: str,
    include: list[str] | None = None,
    include_dist: list[str] | None = None,
    base_dir: str | Path = ".",
) -> ResolvedConfig:
    return ResolvedConfig(
        root=normalize_root(root, base_dir),
        include=list(include or []),
        include_dist=list(include_dist or []),
    )


def assert_config_resolved(config: object) -> None:
    """The config handed to `get_glob_roots` must carry every required field."""
    for name in _REQUIRED_RESOLVED_FIELDS:
        assert_internal(
            getattr(config, name, None) is not None,
            f"Resolved config is missing required field `{name}`",
        )
