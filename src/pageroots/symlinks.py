"""Create-if-absent directory symlinks."""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def ensure_dir_symlink(source: str, target: str) -> bool:
    """
    Make `target` a symlink to the directory `source`. The link stores a path
    relative to its own parent directory, and missing parents are created.

    Anything already at `target` is left as is, including a dangling link.
    Returns True only if this call created the link.
    """
    if os.path.lexists(target):
        logger.debug("Symlink location %s already exists, leaving it", target)
        return False

    link = Path(target)
    link.parent.mkdir(parents=True, exist_ok=True)
    link_value = os.path.relpath(source, link.parent)
    try:
        os.symlink(link_value, link, target_is_directory=True)
    except FileExistsError:
        # Another build created it between the check and here.
        logger.debug("Symlink %s was created concurrently", target)
        return False
    logger.debug("Created symlink %s -> %s", target, link_value)
    return True
