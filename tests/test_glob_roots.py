"""Tests for glob root resolution."""

from __future__ import annotations

import asyncio
import os
import time
from dataclasses import dataclass
from pathlib import Path

import pytest
from _packages import link_dir, make_package

from pageroots import glob_roots as glob_roots_module
from pageroots.config import resolve_config
from pageroots.errors import CheckKind, InternalError, UsageError
from pageroots.glob_roots import (
    DEPS_DIR,
    GlobRoot,
    check_crawl_root_not_parent,
    check_no_page_files_dir,
    check_symlink_not_cyclic,
    get_glob_roots,
    process_include_src,
    resolve_glob_roots,
)
from pageroots.package_locator import PackageManifest


def _external_layout(base: Path, pkg_name: str = "pkg") -> tuple[Path, Path]:
    """
    Workspace layout where the package is hoisted above the app and physically
    lives outside the repo: `repo/node_modules/<pkg>` -> `external/<pkg>`.
    Returns (app root, physical package dir).
    """
    external = make_package(base / "external" / pkg_name, pkg_name)
    link_dir(base / "repo" / "node_modules" / pkg_name, external)
    root = base / "repo" / "app"
    root.mkdir(parents=True)
    return root, external


def test_whole_project_root_comes_first(tmp_path: Path) -> None:
    config = resolve_config(tmp_path.resolve().as_posix())
    roots = resolve_glob_roots(config)
    assert roots == [GlobRoot(fs_allow_root=None, include_path="/", include_page_file=None)]
    assert roots[0].to_dict() == {"fsAllowRoot": None, "includePath": "/", "includePageFile": None}


def test_package_inside_root_uses_relative_include_path(tmp_path: Path) -> None:
    root = tmp_path.resolve() / "app"
    pkg = make_package(root / "node_modules" / "pkg", "pkg")

    roots = resolve_glob_roots(resolve_config(root.as_posix(), include=["pkg"]))

    assert roots[1] == GlobRoot.package(pkg.as_posix(), "node_modules/pkg")
    assert not (root / "node_modules" / ".pageroots").exists()


def test_symlinked_package_reachable_relatively(tmp_path: Path) -> None:
    base = tmp_path.resolve()
    external = make_package(base / "external" / "pkg", "pkg")
    root = base / "app"
    link_dir(root / "node_modules" / "pkg", external)

    roots = resolve_glob_roots(resolve_config(root.as_posix(), include=["pkg"]))

    # Allow-root is the physical directory; the include path goes through the logical one.
    assert roots[1] == GlobRoot.package(external.as_posix(), "node_modules/pkg")


def test_app_inside_package_needs_no_include_path(tmp_path: Path) -> None:
    repo = make_package(tmp_path.resolve() / "repo", "my-lib")
    link_dir(repo / "node_modules" / "my-lib", repo)
    root = repo / "examples" / "basic"
    root.mkdir(parents=True)

    roots = resolve_glob_roots(resolve_config(root.as_posix(), include=["my-lib"]))

    assert roots[1] == GlobRoot.package(repo.as_posix(), None)
    assert roots[1].kind == "package"


def test_unreachable_package_gets_forwarding_symlink(tmp_path: Path) -> None:
    root, external = _external_layout(tmp_path.resolve())

    roots = resolve_glob_roots(resolve_config(root.as_posix(), include=["pkg"]))

    assert roots[1] == GlobRoot.package(external.as_posix(), f"{DEPS_DIR}/pkg")
    link = root / "node_modules" / ".pageroots" / "pkg"
    assert link.is_symlink()
    assert link.resolve() == external
    assert (link / "pages" / "index.page.tsx").is_file()


def test_scoped_package_symlink_location(tmp_path: Path) -> None:
    root, external = _external_layout(tmp_path.resolve(), "@acme/pages")

    roots = resolve_glob_roots(resolve_config(root.as_posix(), include=["@acme/pages"]))

    assert roots[1].include_path == "node_modules/.pageroots/@acme/pages"
    assert (root / "node_modules" / ".pageroots" / "@acme" / "pages").resolve() == external


def test_forwarding_symlink_created_at_most_once(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    root, _ = _external_layout(tmp_path.resolve())
    calls: list[tuple[str, str]] = []
    real_ensure = glob_roots_module.ensure_dir_symlink

    def counting_ensure(source: str, target: str) -> bool:
        calls.append((source, target))
        return real_ensure(source, target)

    monkeypatch.setattr(glob_roots_module, "ensure_dir_symlink", counting_ensure)
    config = resolve_config(root.as_posix(), include=["pkg"])

    first = resolve_glob_roots(config)
    link = root / "node_modules" / ".pageroots" / "pkg"
    inode = os.lstat(link).st_ino
    second = resolve_glob_roots(config)

    assert first == second
    assert len(calls) == 1
    assert os.lstat(link).st_ino == inode


def test_existing_entry_at_symlink_location_is_kept(tmp_path: Path) -> None:
    root, _ = _external_layout(tmp_path.resolve())
    occupied = root / "node_modules" / ".pageroots" / "pkg"
    occupied.mkdir(parents=True)

    roots = resolve_glob_roots(resolve_config(root.as_posix(), include=["pkg"]))

    assert roots[1].include_path == f"{DEPS_DIR}/pkg"
    assert not occupied.is_symlink()


def test_dist_entries_map_verbatim(tmp_path: Path) -> None:
    config = resolve_config(
        tmp_path.resolve().as_posix(),
        include_dist=["dist/server/pageFiles.js", "/elsewhere/pageFiles.js"],
    )
    roots = resolve_glob_roots(config)
    assert roots[1:] == [
        GlobRoot.dist("dist/server/pageFiles.js"),
        GlobRoot.dist("/elsewhere/pageFiles.js"),
    ]
    assert all(r.kind == "dist" for r in roots[1:])


def test_order_is_project_then_packages_then_dist(tmp_path: Path) -> None:
    root = tmp_path.resolve() / "app"
    make_package(root / "node_modules" / "zeta", "zeta")
    make_package(root / "node_modules" / "alpha", "alpha")
    config = resolve_config(root.as_posix(), include=["zeta", "alpha"], include_dist=["d.js"])

    roots = resolve_glob_roots(config)

    assert [r.include_path for r in roots] == ["/", "node_modules/zeta", "node_modules/alpha", None]
    assert roots[-1].include_page_file == "d.js"


def test_get_glob_roots_is_awaitable(tmp_path: Path) -> None:
    root = tmp_path.resolve() / "app"
    make_package(root / "node_modules" / "pkg", "pkg")
    config = resolve_config(root.as_posix(), include=["pkg"])

    roots = asyncio.run(get_glob_roots(config))
    assert len(roots) == 2


def test_invalid_package_name(tmp_path: Path) -> None:
    config = resolve_config(tmp_path.resolve().as_posix(), include=["./pages"])
    with pytest.raises(UsageError, match="not a valid npm package name"):
        resolve_glob_roots(config)


def test_one_missing_package_fails_everything(tmp_path: Path) -> None:
    root = tmp_path.resolve() / "app"
    make_package(root / "node_modules" / "pkg", "pkg")
    config = resolve_config(root.as_posix(), include=["pkg", "not-installed"])
    with pytest.raises(UsageError, match="Cannot find `not-installed`"):
        resolve_glob_roots(config)


def test_page_files_dir_is_rejected(tmp_path: Path) -> None:
    root = tmp_path.resolve() / "app"
    make_package(root / "node_modules" / "pkg", "pkg", pageroots={"pageFilesDir": "pages"})
    with pytest.raises(UsageError, match="pageFilesDir is deprecated"):
        asyncio.run(process_include_src("pkg", root.as_posix()))


def test_missing_config_field_is_internal_error() -> None:
    @dataclass
    class PartialConfig:
        root: str = "/app"
        include: list[str] | None = None
        include_dist: list[str] | None = None

    with pytest.raises(InternalError, match="`include`"):
        asyncio.run(get_glob_roots(PartialConfig()))  # type: ignore[arg-type]


def test_check_no_page_files_dir() -> None:
    assert check_no_page_files_dir(PackageManifest(name="pkg")).passed
    check = check_no_page_files_dir(PackageManifest(name="pkg", page_files_dir="pages"))
    assert check.kind is CheckKind.USAGE


def test_check_crawl_root_not_parent() -> None:
    assert check_crawl_root_not_parent("/app", "/libs/pkg").passed
    check = check_crawl_root_not_parent("/libs/pkg/pages/app", "/libs/pkg/pages")
    assert check.kind is CheckKind.USAGE
    assert "is a parent of the app's root" in check.message


def test_check_symlink_not_cyclic() -> None:
    assert check_symlink_not_cyclic("/external/pkg", "/app/node_modules/.pageroots/pkg").passed
    check = check_symlink_not_cyclic("/app", "/app/node_modules/.pageroots/pkg")
    assert check.kind is CheckKind.INTERNAL
    with pytest.raises(InternalError):
        check.raise_for_failure()


def test_packages_resolve_concurrently_in_config_order(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    root = tmp_path.resolve() / "app"
    make_package(root / "node_modules" / "slow", "slow")
    make_package(root / "node_modules" / "fast", "fast")
    delays = {"slow": 0.4, "fast": 0.2}
    completed: list[str] = []
    real_resolve = glob_roots_module.resolve_package

    def delayed_resolve(pkg_name, options):
        time.sleep(delays[pkg_name])
        result = real_resolve(pkg_name, options)
        completed.append(pkg_name)
        return result

    monkeypatch.setattr(glob_roots_module, "resolve_package", delayed_resolve)
    config = resolve_config(root.as_posix(), include=["slow", "fast"])

    start = time.monotonic()
    roots = resolve_glob_roots(config)
    elapsed = time.monotonic() - start

    assert completed == ["fast", "slow"]
    assert [r.include_path for r in roots] == ["/", "node_modules/slow", "node_modules/fast"]
    # Run one after the other, the two delays alone would take 0.6s.
    assert elapsed < sum(delays.values())


def test_app_inside_package_reached_through_symlinked_ancestor(tmp_path: Path) -> None:
    base = tmp_path.resolve()
    repo = make_package(base / "repo", "my-lib")
    link_dir(repo / "node_modules" / "my-lib", repo)
    (repo / "examples" / "basic").mkdir(parents=True)
    alias = link_dir(base / "alias", repo)
    root = alias / "examples" / "basic"

    roots = resolve_glob_roots(resolve_config(root.as_posix(), include=["my-lib"]))

    assert roots[1] == GlobRoot.package(repo.as_posix(), None)
    assert not (repo / "examples" / "basic" / "node_modules").exists()
