"""Gitignore and `.pagerootsignore` handling using pathspec."""

from __future__ import annotations

from pathlib import Path

import pathspec

IGNORE_FILE_NAME = ".pagerootsignore"


def _read_ignore_file(path: Path) -> pathspec.PathSpec | None:
    """
    Compile an ignore file, skipping blank lines and comments. `None` when the
    file is missing, unreadable, not UTF-8, or has no patterns.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    lines = [line for line in text.splitlines() if line.strip() and not line.strip().startswith("#")]
    if not lines:
        return None
    return pathspec.PathSpec.from_lines("gitignore", lines)


def load_gitignore(directory: Path) -> pathspec.PathSpec | None:
    gitignore = directory / ".gitignore"
    if not gitignore.is_file():
        return None
    return _read_ignore_file(gitignore)


def load_tool_ignore(project_root: Path) -> pathspec.PathSpec | None:
    """The project's `.pagerootsignore`, applied to every include root."""
    candidate = project_root / IGNORE_FILE_NAME
    if not candidate.is_file():
        return None
    return _read_ignore_file(candidate)
