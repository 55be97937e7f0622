"""
Node-style lookup of installed packages.

Given a package name and a base directory, find `<name>/package.json` by checking
`node_modules` in the base directory and each of its ancestors. With
`preserve_symlinks=True` the result is the logical path, as seen through any
symlinked `node_modules` entries. With `preserve_symlinks=False` it is the
physical directory on disk.
"""

from __future__ import annotations

import json
import logging
import os
import posixpath
from dataclasses import dataclass
from typing import Any, cast

from pageroots.errors import UsageError
from pageroots.paths import to_posix_path

logger = logging.getLogger(__name__)

# Key under which a package may carry pageroots settings in its package.json.
MANIFEST_KEY = "pageroots"


@dataclass(frozen=True)
class ResolveOptions:
    preserve_symlinks: bool
    root: str


@dataclass(frozen=True)
class PackageManifest:
    """
    The parts of a `package.json` that pageroots reads. Fields are `None` when
    absent. `page_files_dir` comes from `"pageroots": {"pageFilesDir": ...}`.
    """

    name: str | None = None
    version: str | None = None
    page_files_dir: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> PackageManifest:
        settings = data.get(MANIFEST_KEY)
        page_files_dir = None
        if isinstance(settings, dict):
            page_files_dir = cast(dict[str, Any], settings).get("pageFilesDir")
        return cls(
            name=data.get("name"),
            version=data.get("version"),
            page_files_dir=page_files_dir,
        )


@dataclass(frozen=True)
class ResolvedPackage:
    manifest: PackageManifest
    pkg_root: str
    pkg_json_path: str


def _node_modules_dirs(start: str) -> list[str]:
    """Candidate `node_modules` directories, nearest first."""
    dirs: list[str] = []
    current = start
    while True:
        if posixpath.basename(current) != "node_modules":
            dirs.append(posixpath.join(current, "node_modules"))
        parent = posixpath.dirname(current)
        if parent == current:
            break
        current = parent
    return dirs


def resolve_package_json(pkg_name: str, options: ResolveOptions) -> str:
    """Absolute forward-slash path of the package's `package.json`."""
    if options.preserve_symlinks:
        start = os.path.abspath(options.root)
    else:
        start = os.path.realpath(options.root)
    start = posixpath.normpath(to_posix_path(start))

    for node_modules in _node_modules_dirs(start):
        candidate = posixpath.join(node_modules, pkg_name, "package.json")
        if os.path.isfile(candidate):
            if not options.preserve_symlinks:
                candidate = to_posix_path(os.path.realpath(candidate))
            logger.debug(
                "Resolved %s to %s (preserve_symlinks=%s)",
                pkg_name,
                candidate,
                options.preserve_symlinks,
            )
            return candidate

    raise UsageError(f"Cannot find `{pkg_name}`. Did you install it?")


def read_manifest(pkg_json_path: str) -> PackageManifest:
    try:
        with open(pkg_json_path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise UsageError(f"Cannot read {pkg_json_path}: {e}") from e
    if not isinstance(data, dict):
        raise UsageError(f"Expected a JSON object in {pkg_json_path}")
    return PackageManifest.from_json(cast(dict[str, Any], data))


def resolve_package(pkg_name: str, options: ResolveOptions) -> ResolvedPackage:
    pkg_json_path = resolve_package_json(pkg_name, options)
    return ResolvedPackage(
        manifest=read_manifest(pkg_json_path),
        pkg_root=posixpath.dirname(pkg_json_path),
        pkg_json_path=pkg_json_path,
    )


def resolve_package_root(pkg_name: str, options: ResolveOptions) -> str:
    return posixpath.dirname(resolve_package_json(pkg_name, options))
