"""
Registry Store: loading and persisting the registry file.

The registry file is UTF-8 JSON with three top-level fields::

    {
        "Languages": ["C++", "Java"],
        "Projects": [
            {
                "created_at": "23:04 17-03-2025",
                "created_by": "Huplo",
                "folderName": "DevCore-project-manager",
                "git": true,
                "lang": "C++",
                "name": "DevCore Project Manager",
                "size": 25042
            }
        ],
        "Users": ["Huplo"]
    }

Loading is all-or-nothing: any structural problem raises RegistryParseError
and no partial registry is returned. Saving rewrites the whole file through
a temporary file and an atomic rename.
"""

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List
import logging

from .project_registry import Project, Registry
from ..error_handling import (
    RegistryNotFoundError,
    RegistryParseError,
    RegistryWriteError,
)

logger = logging.getLogger(__name__)


"""Indentation used when writing the registry file."""
INDENT = 4

_STRING_FIELDS = ("name", "folderName", "lang", "created_by")


# ============================================================================
# Serialization
# ============================================================================

def dump_registry(registry: Registry) -> str:
    """
    Serialize a registry the way it is written to disk.

    Keys are sorted and nested values indented, so the file diffs cleanly.
    """
    return json.dumps(
        registry.to_dict(),
        indent=INDENT,
        sort_keys=True,
        ensure_ascii=False,
    ) + "\n"


def empty_registry_document() -> Dict[str, List[Any]]:
    return {"Languages": [], "Projects": [], "Users": []}


# ============================================================================
# Parsing
# ============================================================================

def _string_list(document: Dict[str, Any], field_name: str) -> List[str]:
    values = document.get(field_name)
    if values is None:
        return []
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise RegistryParseError(
            f"'{field_name}' must be a list of strings",
            context={"field": field_name},
        )
    return values


def _validate_project_record(record: Any, index: int) -> Dict[str, Any]:
    if not isinstance(record, dict):
        raise RegistryParseError(
            f"Project #{index} must be an object",
            context={"index": index},
        )

    # null is treated like an absent field
    cleaned = {key: value for key, value in record.items() if value is not None}

    for field_name in _STRING_FIELDS:
        if field_name in cleaned and not isinstance(cleaned[field_name], str):
            raise RegistryParseError(
                f"Project #{index}: '{field_name}' must be a string",
                context={"index": index, "field": field_name},
            )

    size = cleaned.get("size", 0)
    if isinstance(size, bool) or not isinstance(size, int) or size < 0:
        raise RegistryParseError(
            f"Project #{index}: 'size' must be a non-negative integer",
            context={"index": index, "field": "size"},
        )

    if not isinstance(cleaned.get("git", False), bool):
        raise RegistryParseError(
            f"Project #{index}: 'git' must be a boolean",
            context={"index": index, "field": "git"},
        )

    return cleaned


def parse_registry(
    document: Any,
    now: Callable[[], datetime] = datetime.now,
) -> Registry:
    """
    Build a Registry from a decoded registry document.

    Every persisted project record becomes a Project. Unparsable
    ``created_at`` values become ``now()``. Repeated languages are collapsed;
    repeated project keys keep the last record and are listed in
    ``Registry.duplicate_keys``.

    Raises:
        RegistryParseError: If the document does not have the registry shape
    """
    if not isinstance(document, dict):
        raise RegistryParseError("Registry document must be a JSON object")

    registry = Registry()

    for language in _string_list(document, "Languages"):
        if not registry.add_language(language):
            logger.warning(f"Language listed twice in registry: {language}")

    projects = document.get("Projects")
    if projects is None:
        projects = []
    if not isinstance(projects, list):
        raise RegistryParseError("'Projects' must be a list")

    for index, record in enumerate(projects):
        registry.add_project(Project.from_dict(_validate_project_record(record, index), now))

    registry.users.update(_string_list(document, "Users"))

    return registry


# ============================================================================
# Registry Store
# ============================================================================

class RegistryStore:
    """
    Loads and saves the registry file.

    Attributes:
        path: Location of the registry JSON file
        now: Clock used for timestamp fallbacks while loading
    """

    def __init__(
        self,
        path: str | Path,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.path = Path(path)
        self.now = now

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Registry:
        """
        Read and parse the registry file.

        Returns:
            The loaded Registry

        Raises:
            RegistryNotFoundError: If the file does not exist
            RegistryParseError: If the file cannot be read or is malformed
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise RegistryNotFoundError(str(self.path))
        except (OSError, UnicodeDecodeError) as e:
            raise RegistryParseError(
                f"Failed to read registry file {self.path}: {e}",
                context={"registry_path": str(self.path)},
            ) from e

        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise RegistryParseError(
                f"Failed to parse registry file {self.path}: {e}",
                context={"registry_path": str(self.path), "line": e.lineno},
            ) from e

        registry = parse_registry(document, self.now)
        logger.info(
            f"Loaded registry {self.path}: {len(registry.languages)} languages, "
            f"{len(registry.projects)} projects, {len(registry.users)} users"
        )
        return registry

    def save(self, registry: Registry) -> None:
        """
        Write the whole registry to disk.

        The content is written to a temporary file next to the target, flushed
        and synced, then renamed over the target, so readers never see a
        partially written registry.

        Raises:
            RegistryWriteError: If the file cannot be written. The in-memory
                registry is left untouched.
        """
        content = dump_registry(registry)
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            temp_path.replace(self.path)
        except OSError as e:
            logger.error(f"Unable to write registry file {self.path}: {e}")
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    logger.debug(f"Could not remove temporary file {temp_path}")
            raise RegistryWriteError(
                f"Unable to write registry file {self.path}: {e}",
                context={"registry_path": str(self.path)},
            ) from e

        logger.debug(f"Saved registry to {self.path}")

    def write_document(self, document: Dict[str, Any]) -> None:
        """Validate a raw registry document and write it (used by the install flow)."""
        self.save(parse_registry(document, self.now))
