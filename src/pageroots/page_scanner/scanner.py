"""
PageFileScanner: lists page files reachable through a set of glob roots.

This is the consumer side of `get_glob_roots`. Every allow-root is added to the
read allow-list, every include path becomes a root-relative glob, and files
that resolve outside the allow-list are never returned.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Sequence
from pathlib import Path

import pathspec

from pageroots.glob_roots import GlobRoot
from pageroots.page_scanner.gitignore import load_gitignore, load_tool_ignore
from pageroots.page_scanner.types import ScannerConfig
from pageroots.paths import join_posix, to_posix_path

logger = logging.getLogger(__name__)


def allow_list(root: str, glob_roots: Sequence[GlobRoot]) -> list[str]:
    """The project root followed by each distinct `fs_allow_root`."""
    allowed = [root]
    for glob_root in glob_roots:
        if glob_root.fs_allow_root is not None and glob_root.fs_allow_root not in allowed:
            allowed.append(glob_root.fs_allow_root)
    return allowed


def include_patterns(glob_roots: Sequence[GlobRoot], page_files: Sequence[str]) -> list[str]:
    """
    Root-relative include globs. Packages without an include path are already
    covered by the whole-project pattern and add nothing.
    """
    patterns: list[str] = []
    for glob_root in glob_roots:
        if glob_root.include_page_file is not None:
            patterns.append(glob_root.include_page_file)
        elif glob_root.include_path == "/":
            patterns.extend(f"/**/{p}" for p in page_files)
        elif glob_root.include_path is not None:
            prefix = join_posix(glob_root.include_path)
            if prefix == ".":
                patterns.extend(f"/**/{p}" for p in page_files)
            else:
                patterns.extend(f"/{prefix}/**/{p}" for p in page_files)
    return patterns


class PageFileScanner:
    """
    Walks the include roots and keeps files whose root-relative path matches
    `include_patterns()`. Default/custom excludes prune the whole-project walk
    only; `.gitignore` and `.pagerootsignore` apply to every walk.
    """

    def __init__(self, config: ScannerConfig) -> None:
        self._config: ScannerConfig = config
        self._exclude_spec: pathspec.PathSpec = pathspec.PathSpec.from_lines(
            "gitignore", config.effective_exclude
        )
        self._gitignore_cache: dict[Path, pathspec.PathSpec | None] = {}

    def scan(self, root: str | Path, glob_roots: Sequence[GlobRoot]) -> list[Path]:
        """Sorted, deduplicated page files for the given glob roots."""
        root_path = Path(root)
        allowed = [Path(os.path.realpath(p)) for p in allow_list(to_posix_path(str(root)), glob_roots)]
        tool_ignore = load_tool_ignore(root_path)
        # Dist entries are referenced directly, never matched during a walk.
        pattern_spec = pathspec.PathSpec.from_lines(
            "gitignore",
            include_patterns([r for r in glob_roots if r.kind != "dist"], self._config.page_files),
        )

        seen: set[Path] = set()
        result: list[Path] = []
        for glob_root in glob_roots:
            for found in self._files_for(root_path, glob_root, tool_ignore, pattern_spec):
                real = Path(os.path.realpath(found))
                if glob_root.kind != "dist" and not any(real.is_relative_to(a) for a in allowed):
                    logger.warning("Skipping %s: %s is outside the allowed roots", found, real)
                    continue
                if real not in seen:
                    seen.add(real)
                    result.append(found)

        result.sort()
        return result

    def _files_for(
        self,
        root: Path,
        glob_root: GlobRoot,
        tool_ignore: pathspec.PathSpec | None,
        pattern_spec: pathspec.PathSpec,
    ) -> Iterable[Path]:
        if glob_root.include_page_file is not None:
            yield self._resolve_dist(root, glob_root.include_page_file)
        elif glob_root.include_path == "/":
            yield from self._walk_directory(
                root, root, tool_ignore, pattern_spec, follow_links=False, prune_excludes=True
            )
        elif glob_root.include_path is not None:
            walk_root = root / glob_root.include_path
            if not walk_root.is_dir():
                logger.warning("Include path %s does not exist", walk_root)
                return
            # Include paths may go through a forwarding symlink.
            yield from self._walk_directory(
                walk_root, root, tool_ignore, pattern_spec, follow_links=True, prune_excludes=False
            )

    def _resolve_dist(self, root: Path, entry: str) -> Path:
        path = Path(entry)
        if not path.is_absolute():
            path = root / entry
        if not path.is_file():
            raise FileNotFoundError(f"Dist page file not found: {entry}")
        return path

    def _walk_directory(
        self,
        walk_root: Path,
        project_root: Path,
        tool_ignore: pathspec.PathSpec | None,
        pattern_spec: pathspec.PathSpec,
        follow_links: bool,
        prune_excludes: bool,
    ) -> Iterable[Path]:
        """Walk with `os.walk()`, pruning excluded directories in-place."""
        for dirpath, dirnames, filenames in os.walk(walk_root, followlinks=follow_links):
            current = Path(dirpath)
            rel_to_root = current.relative_to(walk_root)
            rel_to_project = current.relative_to(project_root)

            gitignore_specs: list[pathspec.PathSpec] = []
            if self._config.respect_gitignore:
                gitignore_specs = self._get_gitignore_chain(walk_root, rel_to_root)

            dirnames[:] = [
                d
                for d in dirnames
                if not self._is_dir_excluded(
                    d, rel_to_root / d, gitignore_specs, tool_ignore, prune_excludes
                )
            ]

            for filename in filenames:
                if not pattern_spec.match_file((rel_to_project / filename).as_posix()):
                    continue
                if any(spec.match_file(filename) for spec in gitignore_specs):
                    continue
                if tool_ignore and tool_ignore.match_file((rel_to_root / filename).as_posix()):
                    continue
                yield current / filename

    def _is_dir_excluded(
        self,
        dirname: str,
        rel_path: Path,
        gitignore_specs: list[pathspec.PathSpec],
        tool_ignore: pathspec.PathSpec | None,
        prune_excludes: bool,
    ) -> bool:
        dir_with_slash = dirname + "/"
        rel_with_slash = rel_path.as_posix() + "/"

        if prune_excludes and self._exclude_spec.match_file(dir_with_slash):
            return True
        if prune_excludes and self._exclude_spec.match_file(rel_with_slash):
            return True
        if any(spec.match_file(dir_with_slash) for spec in gitignore_specs):
            return True
        if tool_ignore and tool_ignore.match_file(rel_with_slash):
            return True
        return False

    def _get_gitignore(self, directory: Path) -> pathspec.PathSpec | None:
        if directory not in self._gitignore_cache:
            self._gitignore_cache[directory] = load_gitignore(directory)
        return self._gitignore_cache[directory]

    def _get_gitignore_chain(self, walk_root: Path, rel_dir: Path) -> list[pathspec.PathSpec]:
        """Gitignore specs from `walk_root` down to `walk_root / rel_dir`, inclusive."""
        specs: list[pathspec.PathSpec] = []
        current = walk_root
        for part in ("", *rel_dir.parts):
            current = current / part if part else current
            spec = self._get_gitignore(current)
            if spec is not None:
                specs.append(spec)
        return specs
