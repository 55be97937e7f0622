"""
Forward-slash path helpers.

All paths handled by pageroots are stored and compared in POSIX form,
regardless of host OS.
"""

from __future__ import annotations

import posixpath

from pageroots.errors import assert_internal


def to_posix_path(path: str) -> str:
    return path.replace("\\", "/")


def assert_posix_path(path: str) -> None:
    assert_internal("\\" not in path, f"Expected a forward-slash path, got {path!r}")


def join_posix(*parts: str) -> str:
    """
    Join and normalize path segments. Empty segments are ignored; joining only
    empty segments gives `"."`.
    """
    non_empty = [p for p in parts if p]
    if not non_empty:
        return "."
    return posixpath.normpath(posixpath.join(*non_empty))


def relative_posix(start: str, target: str) -> str:
    """Relative path from `start` to `target`, or `""` when they are the same directory."""
    rel = posixpath.relpath(target, start)
    return "" if rel == "." else rel


def is_path_inside(path: str, parent: str) -> bool:
    """
    True if `path` equals `parent` or lies below it. Comparison is per segment,
    so `/app2` is not inside `/app`.
    """
    parent = parent.rstrip("/") or "/"
    if path == parent:
        return True
    prefix = parent if parent == "/" else parent + "/"
    return path.startswith(prefix)


def starts_with_parent_traversal(rel_path: str) -> bool:
    return rel_path.split("/", 1)[0] == ".."
