"""
Directory management for the projects tree.

The projects tree is laid out as ``<projects_root>/<language>/<folder_name>``.
This module creates language and project directories idempotently and lists
the directories that exist, turning every filesystem failure into a typed
outcome instead of an exception.
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional
import logging

from ..error_handling import DirectoryCreationError, wrap_error

logger = logging.getLogger(__name__)


# ============================================================================
# Outcomes
# ============================================================================

class MaterializeStatus(Enum):
    """
    Result of ensuring a directory exists.

    Attributes:
        CREATED: The directory was missing and has been created
        EXISTED: The directory already existed, nothing was done
        FAILED: The directory is missing and could not be created
    """
    CREATED = "created"
    EXISTED = "existed"
    FAILED = "failed"


@dataclass
class MaterializeResult:
    """
    Outcome of a single directory materialization.

    Attributes:
        path: Directory that was ensured
        status: What happened
        error: The failure, when status is FAILED
    """
    path: Path
    status: MaterializeStatus
    error: Optional[DirectoryCreationError] = None

    @property
    def ok(self) -> bool:
        return self.status is not MaterializeStatus.FAILED

    @property
    def created(self) -> bool:
        return self.status is MaterializeStatus.CREATED


# ============================================================================
# Path Checks
# ============================================================================

def is_directory(path: str | Path) -> bool:
    """
    True if ``path`` is a directory (following symlinks).

    Unlike :meth:`Path.is_dir`, permission errors while checking yield False
    instead of propagating.
    """
    return os.path.isdir(path)


def is_path_component(name: str) -> bool:
    """
    True if ``name`` can be used as a single directory name under its parent.

    Empty names, ``.``/``..`` and names containing a path separator would
    resolve to a different level of the projects tree.

    Examples:
        >>> is_path_component("svc")
        True
        >>> is_path_component("a/b")
        False
    """
    if not name or name in (".", ".."):
        return False
    return "/" not in name and os.sep not in name


# ============================================================================
# Directory Creation
# ============================================================================

def ensure_directory(directory: Path) -> MaterializeResult:
    """
    Ensure a directory exists, creating it and any missing parents.

    Never raises: permission problems, a regular file in the way and similar
    failures are returned as a FAILED result.

    Args:
        directory: Directory to ensure

    Returns:
        MaterializeResult describing what happened
    """
    directory = Path(directory)
    if is_directory(directory):
        logger.debug(f"Directory already exists: {directory}")
        return MaterializeResult(directory, MaterializeStatus.EXISTED)

    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        error = wrap_error(
            e,
            f"Failed to create directory {directory}",
            DirectoryCreationError,
            path=str(directory),
        )
        logger.error(str(error))
        return MaterializeResult(directory, MaterializeStatus.FAILED, error)

    logger.info(f"Created directory: {directory}")
    return MaterializeResult(directory, MaterializeStatus.CREATED)


def ensure_language_directory(projects_root: Path, language: str) -> MaterializeResult:
    """Ensure ``<projects_root>/<language>`` exists."""
    return ensure_directory(Path(projects_root) / language)


def ensure_project_directory(
    projects_root: Path,
    language: str,
    folder_name: str,
) -> MaterializeResult:
    """
    Ensure ``<projects_root>/<language>/<folder_name>`` exists.

    Examples:
        >>> ensure_project_directory(Path("/home/user/projects"), "Go", "svc").status
        <MaterializeStatus.CREATED: 'created'>
    """
    return ensure_directory(Path(projects_root) / language / folder_name)


# ============================================================================
# Directory Listing
# ============================================================================

def list_subdirectories(directory: Path) -> List[str]:
    """
    List the names of the immediate sub-directories of ``directory``.

    Names are sorted so that discovery order is the same on every platform.
    Symlinks to directories count as directories. A missing or unreadable
    directory yields an empty list.
    """
    names = []
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                try:
                    if entry.is_dir():
                        names.append(entry.name)
                except OSError as e:
                    logger.debug(f"Cannot check {entry.path}: {e}")
    except OSError as e:
        logger.warning(f"Cannot list {directory}: {e}")
        return []
    return sorted(names)
