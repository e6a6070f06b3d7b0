"""
In-memory project registry.

This module defines the entities tracked by DevMap (languages, projects and
users) and their translation to and from the records stored in the registry
file.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Set
import logging

logger = logging.getLogger(__name__)


"""Timestamp format of the ``created_at`` field, e.g. ``23:04 17-03-2025``."""
TIME_FORMAT = "%H:%M %d-%m-%Y"

"""Owner recorded for projects discovered on disk."""
UNKNOWN_USER = "unknown"


def parse_time(value: Any, now: Callable[[], datetime] = datetime.now) -> datetime:
    """
    Parse a ``HH:MM DD-MM-YYYY`` timestamp.

    Anything that does not parse (missing, wrong type, wrong format) becomes
    the current time; this never raises.

    Examples:
        >>> parse_time("23:04 17-03-2025")
        datetime.datetime(2025, 3, 17, 23, 4)
    """
    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip(), TIME_FORMAT)
        except ValueError:
            pass
    logger.debug(f"Unparsable created_at {value!r}, using current time")
    return now()


def format_time(value: datetime) -> str:
    return value.strftime(TIME_FORMAT)


class ProjectKey(NamedTuple):
    """Identity of a project: its language and its folder name."""

    language: str
    folder_name: str

    def __str__(self) -> str:
        return f"{self.language}/{self.folder_name}"


@dataclass
class Project:
    """
    A project tracked in the registry.

    Attributes:
        name: Display name, free-form
        language: Language, also the parent directory name under the projects root
        folder_name: On-disk directory name
        created_by: User that created the project
        created_at: Creation time (minute precision once persisted)
        size_bytes: Sum of regular-file sizes, refreshed from disk on every sync
        uses_version_control: Whether a ``.git`` directory exists, refreshed on every sync
    """
    name: str
    language: str
    folder_name: str
    created_by: str
    created_at: datetime
    size_bytes: int = 0
    uses_version_control: bool = False

    @property
    def key(self) -> ProjectKey:
        return ProjectKey(self.language, self.folder_name)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the record stored in the registry file.

        Returns:
            Dictionary using the registry file field names
        """
        return {
            "name": self.name,
            "folderName": self.folder_name,
            "lang": self.language,
            "created_by": self.created_by,
            "created_at": format_time(self.created_at),
            "size": self.size_bytes,
            "git": self.uses_version_control,
        }

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        now: Callable[[], datetime] = datetime.now,
    ) -> 'Project':
        """
        Create a Project from a registry file record.

        Missing fields fall back to defaults: empty strings, current time,
        size 0, no version control. Type checking of present fields is the
        caller's job.
        """
        return cls(
            name=data.get("name", ""),
            language=data.get("lang", ""),
            folder_name=data.get("folderName", ""),
            created_by=data.get("created_by", ""),
            created_at=parse_time(data.get("created_at"), now),
            size_bytes=data.get("size", 0),
            uses_version_control=data.get("git", False),
        )


@dataclass
class Registry:
    """
    The persisted aggregate of languages, projects and users.

    Projects are stored in a dict keyed by :class:`ProjectKey`, in insertion
    order, so that identity lookups are constant time and the persisted
    order stays stable.

    Attributes:
        languages: Ordered, duplicate-free language names
        projects: Projects keyed by identity
        users: Known user names
        duplicate_keys: Keys that appeared more than once when the registry was
            loaded (the last record won)
    """
    languages: List[str] = field(default_factory=list)
    projects: Dict[ProjectKey, Project] = field(default_factory=dict)
    users: Set[str] = field(default_factory=set)
    duplicate_keys: List[ProjectKey] = field(default_factory=list)

    def has_language(self, language: str) -> bool:
        return language in self.languages

    def add_language(self, language: str) -> bool:
        """Append a language if unknown. Returns True when it was added."""
        if language in self.languages:
            return False
        self.languages.append(language)
        return True

    def get_project(self, language: str, folder_name: str) -> Optional[Project]:
        return self.projects.get(ProjectKey(language, folder_name))

    def has_project(self, key: ProjectKey) -> bool:
        return key in self.projects

    def add_project(self, project: Project) -> None:
        """
        Insert or replace a project by identity key.

        A replaced project keeps its original position.
        """
        if project.key in self.projects:
            logger.warning(f"Duplicate project key {project.key}, keeping the last record")
            self.duplicate_keys.append(project.key)
        self.projects[project.key] = project

    def project_list(self) -> List[Project]:
        return list(self.projects.values())

    def rebuild_users(self) -> Set[str]:
        """
        Add every project owner to the user set.

        Users loaded from the file are kept even when they no longer own a
        project.

        Returns:
            The users that were not known before
        """
        rebuilt = {project.created_by for project in self.projects.values()}
        rebuilt.update(self.users)
        added = rebuilt - self.users
        self.users = rebuilt
        return added

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the registry file document.

        Users are sorted so that the file is stable between runs.
        """
        return {
            "Languages": list(self.languages),
            "Projects": [project.to_dict() for project in self.projects.values()],
            "Users": sorted(self.users),
        }
