"""
pageroots: resolve where a page file scanner may read and what it should glob.
"""

from pageroots.config import ResolvedConfig, resolve_config
from pageroots.errors import InternalError, PagerootsError, UsageError
from pageroots.glob_roots import GlobRoot, get_glob_roots, resolve_glob_roots
from pageroots.npm_name import is_npm_name

__all__ = [
    "GlobRoot",
    "InternalError",
    "PagerootsError",
    "ResolvedConfig",
    "UsageError",
    "get_glob_roots",
    "is_npm_name",
    "resolve_config",
    "resolve_glob_roots",
]
