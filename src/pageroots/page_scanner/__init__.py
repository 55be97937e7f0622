"""
Page file scanning over glob roots, with gitignore-aware traversal.

Usage::

    from pageroots import resolve_config, resolve_glob_roots
    from pageroots.page_scanner import PageFileScanner, ScannerConfig

    config = resolve_config("/app", include=["@acme/pages"])
    roots = resolve_glob_roots(config)
    files = PageFileScanner(ScannerConfig()).scan(config.root, roots)
"""

from pageroots.page_scanner.defaults import DEFAULT_EXCLUDES, DEFAULT_PAGE_FILES
from pageroots.page_scanner.scanner import PageFileScanner, allow_list, include_patterns
from pageroots.page_scanner.types import ScannerConfig

__all__ = [
    "DEFAULT_EXCLUDES",
    "DEFAULT_PAGE_FILES",
    "PageFileScanner",
    "ScannerConfig",
    "allow_list",
    "include_patterns",
]
