"""
Project registry for DevMap.

This package keeps the registry file and the projects tree consistent:

- Registry, Project, ProjectKey: in-memory entities
- RegistryStore: loading and atomic saving of the registry file
- probe: folder size and version-control detection
- directories: idempotent creation and listing of language/project directories
- Reconciler / synchronize: the bidirectional reconciliation pass
- project_creator: creation of languages and projects
"""

from .project_registry import (
    Project,
    ProjectKey,
    Registry,
    TIME_FORMAT,
    UNKNOWN_USER,
    format_time,
    parse_time,
)
from .probe import folder_size, has_version_control_marker, VERSION_CONTROL_MARKER
from .directories import (
    MaterializeResult,
    MaterializeStatus,
    ensure_directory,
    ensure_language_directory,
    ensure_project_directory,
    is_directory,
    is_path_component,
    list_subdirectories,
)
from .store import (
    RegistryStore,
    dump_registry,
    empty_registry_document,
    parse_registry,
)
from .reconciler import Reconciler, SyncReport, synchronize
from .project_creator import (
    CreationResult,
    LanguageResult,
    ProjectRequest,
    create_language,
    create_project,
    github_folder_name,
    list_templates,
)

__all__ = [
    "Project",
    "ProjectKey",
    "Registry",
    "TIME_FORMAT",
    "UNKNOWN_USER",
    "format_time",
    "parse_time",
    "folder_size",
    "has_version_control_marker",
    "VERSION_CONTROL_MARKER",
    "MaterializeResult",
    "MaterializeStatus",
    "ensure_directory",
    "ensure_language_directory",
    "ensure_project_directory",
    "is_directory",
    "is_path_component",
    "list_subdirectories",
    "RegistryStore",
    "dump_registry",
    "empty_registry_document",
    "parse_registry",
    "Reconciler",
    "SyncReport",
    "synchronize",
    "CreationResult",
    "LanguageResult",
    "ProjectRequest",
    "create_language",
    "create_project",
    "github_folder_name",
    "list_templates",
]
