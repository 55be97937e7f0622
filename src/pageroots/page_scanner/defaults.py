"""
Default page file and exclude patterns for scanning.

These patterns use gitignore syntax. Directory patterns end with `/`.
"""

from __future__ import annotations

# Matches `index.page.tsx`, `about.page.server.ts`, `_default.page.client.js`, etc.
DEFAULT_PAGE_FILES: list[str] = ["*.page.*"]

# Pruned during traversal of every include root. Include packages are reached
# through their own glob roots, never by descending into `node_modules/`.
DEFAULT_EXCLUDES: list[str] = [
    # Version control
    ".git/",
    ".hg/",
    ".svn/",
    # JavaScript/Node
    "node_modules/",
    ".next/",
    ".cache/",
    ".turbo/",
    # Build output
    "dist/",
    "build/",
    # Python
    ".venv/",
    "__pycache__/",
    # Coverage
    "coverage/",
]
