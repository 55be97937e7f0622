#!/usr/bin/env python3
"""
pageroots: Resolve the glob roots a page file scanner may read and search

Common usage:
  pageroots .
  pageroots . --include @acme/pages --include-dist dist/server/pageFiles.js
  pageroots . --json -o glob-roots.json
  pageroots --list-files .

Settings can also live in `pageroots.toml`, `.pageroots.toml` or
`[tool.pageroots]` in pyproject.toml. Explicit flags win over the config file.
"""

from __future__ import annotations

import argparse
import importlib.metadata
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from strif import atomic_output_file

from pageroots.config import find_config_file, load_config, merge_cli_with_config, resolve_config
from pageroots.errors import InternalError, UsageError
from pageroots.glob_roots import GlobRoot, resolve_glob_roots
from pageroots.page_scanner import DEFAULT_PAGE_FILES, PageFileScanner, ScannerConfig

logger = logging.getLogger(__name__)


@dataclass
class Options:
    """Command-line options for the pageroots tool."""

    root: str
    include: list[str]
    include_dist: list[str]
    json: bool
    output: str | None
    list_files: bool
    page_files: list[str]
    extend_exclude: list[str]
    respect_gitignore: bool
    verbose: bool
    version: bool


def _parse_args(args: list[str] | None = None) -> tuple[Options, set[str]]:
    """
    Parse command-line arguments.

    Returns a tuple of (options, explicit_flags) where `explicit_flags` tracks
    which settings the user explicitly passed (for config merge precedence).
    """
    module_doc = __doc__ or ""
    doc_parts = module_doc.split("\n\n")
    description = doc_parts[0]
    epilog = "\n\n".join(doc_parts[1:])

    parser = argparse.ArgumentParser(
        prog="pageroots",
        description=description,
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "root",
        nargs="?",
        default=None,
        help="Project root directory (default: config file setting, else '.')",
    )
    parser.add_argument(
        "--include",
        action="append",
        default=None,
        metavar="PKG",
        help="npm package that contributes page files. Can be repeated",
    )
    parser.add_argument(
        "--include-dist",
        action="append",
        default=None,
        dest="include_dist",
        metavar="PATH",
        help="Pre-built page file to include verbatim. Can be repeated",
    )
    parser.add_argument("--json", action="store_true", help="Print glob roots as JSON")
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Write glob roots as JSON to this file instead of stdout",
    )
    parser.add_argument(
        "--list-files",
        action="store_true",
        dest="list_files",
        help="Print the page files reachable through the glob roots",
    )
    parser.add_argument(
        "--page-files",
        action="append",
        default=None,
        dest="page_files",
        metavar="PATTERN",
        help=f"Page file name pattern (default: {', '.join(DEFAULT_PAGE_FILES)}). Can be repeated",
    )
    parser.add_argument(
        "--extend-exclude",
        action="append",
        default=None,
        dest="extend_exclude",
        metavar="PATTERN",
        help="Add to default exclusion patterns when listing files. Can be repeated",
    )
    parser.add_argument(
        "--no-respect-gitignore",
        action="store_true",
        dest="no_respect_gitignore",
        help="Disable .gitignore integration when listing files",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="store_true", help="Show version information and exit")
    opts = parser.parse_args(args)

    # append actions and the optional root default to None, so anything else was supplied.
    explicit_flags: set[str] = {
        name
        for name in ("root", "include", "include_dist", "page_files", "extend_exclude")
        if getattr(opts, name) is not None
    }
    if opts.no_respect_gitignore:
        explicit_flags.add("respect_gitignore")

    return (
        Options(
            root=opts.root if opts.root is not None else ".",
            include=opts.include or [],
            include_dist=opts.include_dist or [],
            json=opts.json,
            output=opts.output,
            list_files=opts.list_files,
            page_files=opts.page_files or list(DEFAULT_PAGE_FILES),
            extend_exclude=opts.extend_exclude or [],
            respect_gitignore=not opts.no_respect_gitignore,
            verbose=opts.verbose,
            version=opts.version,
        ),
        explicit_flags,
    )


def _format_root(glob_root: GlobRoot) -> str:
    fields = (glob_root.fs_allow_root, glob_root.include_path, glob_root.include_page_file)
    return "\t".join("-" if f is None else f for f in fields)


def _write_json(glob_roots: list[GlobRoot], output: str | None) -> None:
    text = json.dumps([r.to_dict() for r in glob_roots], indent=2) + "\n"
    if output is None:
        sys.stdout.write(text)
        return
    with atomic_output_file(Path(output), make_parents=True) as temp_path:
        Path(temp_path).write_text(text, encoding="utf-8")
    logger.info("Wrote %d glob roots to %s", len(glob_roots), output)


def main(args: list[str] | None = None) -> int:
    """
    Main entry point for the pageroots CLI.

    Args:
        args: Command-line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, 1 for configuration errors, 2 for other failures)
    """
    options, explicit_flags = _parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if options.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if options.version:
        try:
            version = importlib.metadata.version("pageroots")
            print(f"v{version}")
        except importlib.metadata.PackageNotFoundError:
            print("unknown (package not installed)")
        return 0

    try:
        # Relative roots from a config file are relative to that file.
        base_dir = Path.cwd()
        config_path = find_config_file(Path.cwd())
        if config_path:
            logger.debug("Using config file %s", config_path)
            config = load_config(config_path)
            merge_cli_with_config(options, config, explicit_flags)
            if "root" not in explicit_flags and config.root is not None:
                base_dir = config_path.parent

        resolved = resolve_config(
            options.root, options.include, options.include_dist, base_dir=base_dir
        )
        glob_roots = resolve_glob_roots(resolved)

        if options.list_files:
            scanner = PageFileScanner(
                ScannerConfig(
                    page_files=options.page_files,
                    extend_exclude=options.extend_exclude,
                    respect_gitignore=options.respect_gitignore,
                )
            )
            for path in scanner.scan(resolved.root, glob_roots):
                print(path)
        elif options.json or options.output:
            _write_json(glob_roots, options.output)
        else:
            for glob_root in glob_roots:
                print(_format_root(glob_root))
    except UsageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except InternalError as e:
        print(f"Internal error (please report): {e}", file=sys.stderr)
        return 2
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
