"""
Glob roots: where the page-file scanner may read and what it should glob.

The scanner only reads below an allow-list of directories, and its include
patterns are relative to the project root. Include packages can be installed
anywhere, so each one is mapped to either:

- an allow-root alone, when the project already lives inside the package,
- an allow-root plus a root-relative include path, when the package is
  reachable from the root without `..`,
- an allow-root plus a forwarding symlink under `node_modules/.pageroots/`,
  when it is not.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any, Literal

from pageroots.config import ResolvedConfig, assert_config_resolved
from pageroots.errors import Check, assert_internal
from pageroots.npm_name import check_npm_name
from pageroots.package_locator import (
    PackageManifest,
    ResolveOptions,
    resolve_package,
    resolve_package_root,
)
from pageroots.paths import (
    assert_posix_path,
    is_path_inside,
    join_posix,
    relative_posix,
    starts_with_parent_traversal,
    to_posix_path,
)
from pageroots.symlinks import ensure_dir_symlink

logger = logging.getLogger(__name__)

DEPS_DIR = "node_modules/.pageroots"

GlobRootKind = Literal["project", "package", "dist"]


@dataclass(frozen=True)
class GlobRoot:
    """
    One of three shapes:

    - whole project: `include_path="/"`, other fields `None`
    - include package: `fs_allow_root` set, `include_path` a root-relative prefix or `None`
    - dist file: only `include_page_file` set
    """

    fs_allow_root: str | None
    include_path: str | None
    include_page_file: str | None

    @classmethod
    def whole_project(cls) -> GlobRoot:
        return cls(fs_allow_root=None, include_path="/", include_page_file=None)

    @classmethod
    def package(cls, fs_allow_root: str, include_path: str | None) -> GlobRoot:
        return cls(fs_allow_root=fs_allow_root, include_path=include_path, include_page_file=None)

    @classmethod
    def dist(cls, include_page_file: str) -> GlobRoot:
        return cls(fs_allow_root=None, include_path=None, include_page_file=include_page_file)

    @property
    def kind(self) -> GlobRootKind:
        if self.fs_allow_root is not None:
            return "package"
        if self.include_page_file is not None:
            return "dist"
        return "project"

    def to_dict(self) -> dict[str, Any]:
        return {
            "fsAllowRoot": self.fs_allow_root,
            "includePath": self.include_path,
            "includePageFile": self.include_page_file,
        }


def check_no_page_files_dir(manifest: PackageManifest) -> Check:
    if manifest.page_files_dir:
        return Check.usage(
            "package.json#pageroots.pageFilesDir is deprecated and no longer supported. "
            "Move the page files to the package root instead."
        )
    return Check.ok()


def check_crawl_root_not_parent(root: str, crawl_root: str) -> Check:
    if is_path_inside(root, crawl_root):
        return Check.usage(
            f"The page files include path {crawl_root} is a parent of the app's root {root}. "
            "Change the package's page files subdirectory so it no longer contains the app."
        )
    return Check.ok()


def check_symlink_not_cyclic(source_absolute: str, target_absolute: str) -> Check:
    # Only catches a link placed inside its own target; multi-hop cycles are not detected.
    if is_path_inside(target_absolute, source_absolute):
        return Check.internal(
            f"Refusing to create cyclic symlink {target_absolute} -> {source_absolute}"
        )
    return Check.ok()


def _physical_path(path: str) -> str:
    return to_posix_path(os.path.realpath(path))


def _forward_through_symlink(root: str, pkg_name: str, crawl_root: str, page_files_dir: str) -> str:
    include_path = join_posix(DEPS_DIR, pkg_name, page_files_dir)
    target_absolute = f"{root}/{include_path}"
    if not os.path.lexists(target_absolute):
        assert_internal(not is_path_inside(root, crawl_root))  # See check_crawl_root_not_parent
        check_symlink_not_cyclic(crawl_root, target_absolute).raise_for_failure()
        # Compare physical paths too, in case the root is reached through a symlink.
        physical_target = _physical_path(target_absolute)
        check_symlink_not_cyclic(crawl_root, physical_target).raise_for_failure()
        ensure_dir_symlink(crawl_root, target_absolute)
    return include_path


async def process_include_src(pkg_name: str, root: str) -> GlobRoot:
    """Work out how the scanner reaches the page files of one include package."""
    check_npm_name(pkg_name).raise_for_failure()

    logical = await asyncio.to_thread(
        resolve_package, pkg_name, ResolveOptions(preserve_symlinks=True, root=root)
    )
    check_no_page_files_dir(logical.manifest).raise_for_failure()
    page_files_dir = logical.manifest.page_files_dir or ""
    fs_allow_root = await asyncio.to_thread(
        resolve_package_root, pkg_name, ResolveOptions(preserve_symlinks=False, root=root)
    )

    assert_posix_path(root)
    assert_posix_path(fs_allow_root)
    physical_root = await asyncio.to_thread(_physical_path, root)
    if is_path_inside(root, fs_allow_root) or is_path_inside(physical_root, fs_allow_root):
        logger.debug("App root %s is inside %s, no include path needed", root, fs_allow_root)
        return GlobRoot.package(fs_allow_root, None)

    crawl_root = join_posix(fs_allow_root, page_files_dir)
    check_crawl_root_not_parent(root, crawl_root).raise_for_failure()
    check_crawl_root_not_parent(physical_root, crawl_root).raise_for_failure()

    pkg_root_relative = relative_posix(root, logical.pkg_root)
    if not starts_with_parent_traversal(pkg_root_relative):
        include_path = join_posix(pkg_root_relative, page_files_dir)
        logger.debug("Including %s via relative path %s", pkg_name, include_path)
        return GlobRoot.package(fs_allow_root, include_path)

    include_path = await asyncio.to_thread(
        _forward_through_symlink, root, pkg_name, crawl_root, page_files_dir
    )
    logger.debug("Including %s via forwarding symlink %s", pkg_name, include_path)
    return GlobRoot.package(fs_allow_root, include_path)


async def get_glob_roots(config: ResolvedConfig) -> list[GlobRoot]:
    """
    Glob roots for a resolved config, in order: the whole project, one entry per
    include package, one entry per dist include. Include packages are processed
    concurrently; the first failure fails the whole call.
    """
    assert_config_resolved(config)
    root = config.root
    assert_posix_path(root)

    package_roots = await asyncio.gather(
        *(process_include_src(pkg_name, root) for pkg_name in config.include)
    )
    return [
        GlobRoot.whole_project(),
        *(r for r in package_roots if r is not None),
        *(GlobRoot.dist(entry) for entry in config.include_dist),
    ]


def resolve_glob_roots(config: ResolvedConfig) -> list[GlobRoot]:
    """Blocking wrapper around `get_glob_roots`."""
    return asyncio.run(get_glob_roots(config))
