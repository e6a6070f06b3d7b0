"""
Read-only filesystem queries used to refresh derived project attributes.

Both probes re-walk the tree on every call and never raise for paths that
are missing or vanish while being scanned.
"""

import os
import stat
from pathlib import Path
import logging

logger = logging.getLogger(__name__)


"""Directory whose presence marks a project as version controlled."""
VERSION_CONTROL_MARKER = ".git"


def folder_size(path: str | Path) -> int:
    """
    Sum the sizes of all regular files below ``path``.

    Directories, symlinks and special files do not count themselves; symlinks
    are never followed. A missing path, or one that is not a directory,
    yields 0. Entries that disappear or cannot be read during the walk are
    skipped.

    Args:
        path: Directory to measure

    Returns:
        Total size in bytes
    """
    total = 0
    pending = [Path(path)]

    while pending:
        directory = pending.pop()
        try:
            entries = list(os.scandir(directory))
        except OSError as e:
            logger.debug(f"Cannot scan {directory}: {e}")
            continue

        for entry in entries:
            try:
                st = entry.stat(follow_symlinks=False)
            except OSError as e:
                logger.debug(f"Cannot stat {entry.path}: {e}")
                continue

            if stat.S_ISDIR(st.st_mode):
                pending.append(Path(entry.path))
            elif stat.S_ISREG(st.st_mode):
                total += st.st_size

    return total


def has_version_control_marker(path: str | Path) -> bool:
    """
    Check whether ``path`` directly contains a ``.git`` directory.

    Returns:
        True if ``path/.git`` exists and is a directory, False otherwise
    """
    try:
        return (Path(path) / VERSION_CONTROL_MARKER).is_dir()
    except OSError as e:
        logger.debug(f"Cannot check version control marker in {path}: {e}")
        return False
