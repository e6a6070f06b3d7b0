"""
Reconciliation of the registry with the projects tree.

A reconciliation pass makes the registry and the directories under the
projects root agree in both directions:

1. Every registered language gets a directory.
2. Every directory under the root becomes a language.
3. (Project records are materialized when the registry is loaded.)
4. Every registered project gets a directory.
5. Size and version-control flag are refreshed from disk.
6. Every directory under a language directory becomes a project.
7. The user set is rebuilt from project owners.
8. The registry is written back.

Phases run strictly in this order; each one relies on the state the
previous ones produced. Failures to create directories or to write the
registry are recorded in the returned SyncReport and never abort the pass.
Projects whose language or folder name is empty (or would escape its level
of the tree) are kept in the registry but never materialized or refreshed.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional
import logging

from .directories import (
    MaterializeResult,
    ensure_language_directory,
    ensure_project_directory,
    is_directory,
    is_path_component,
    list_subdirectories,
)
from .probe import folder_size, has_version_control_marker
from .project_registry import Project, ProjectKey, Registry, UNKNOWN_USER
from .store import RegistryStore
from ..error_handling import RegistryWriteError

if TYPE_CHECKING:
    from ..context import DevMapContext

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """
    What a reconciliation pass changed.

    Attributes:
        registry: The reconciled registry (same object that was passed in)
        created_directories: Language and project directories that were created
        failed_directories: Directories that could not be created
        discovered_languages: Languages added from the filesystem
        discovered_projects: Projects added from the filesystem
        refreshed_projects: Projects whose size or version-control flag changed
        unrefreshed_projects: Projects whose directory is missing, left as they were
        added_users: Users that were not known before the pass
        duplicate_keys: Project keys that appeared more than once in the file
        saved: Whether the registry was written
        save_error: Why the registry could not be written
    """
    registry: Registry
    created_directories: List[MaterializeResult] = field(default_factory=list)
    failed_directories: List[MaterializeResult] = field(default_factory=list)
    discovered_languages: List[str] = field(default_factory=list)
    discovered_projects: List[ProjectKey] = field(default_factory=list)
    refreshed_projects: List[ProjectKey] = field(default_factory=list)
    unrefreshed_projects: List[ProjectKey] = field(default_factory=list)
    added_users: List[str] = field(default_factory=list)
    duplicate_keys: List[ProjectKey] = field(default_factory=list)
    saved: bool = False
    save_error: Optional[RegistryWriteError] = None

    @property
    def changed(self) -> bool:
        """True if the pass modified the registry or the filesystem."""
        return bool(
            self.created_directories
            or self.discovered_languages
            or self.discovered_projects
            or self.refreshed_projects
            or self.added_users
        )

    def record_directory(self, result: MaterializeResult) -> bool:
        if result.created:
            self.created_directories.append(result)
        elif not result.ok:
            self.failed_directories.append(result)
        return result.ok


class Reconciler:
    """
    Runs reconciliation passes for one projects tree.

    Example:
        >>> reconciler = Reconciler(context)
        >>> report = reconciler.synchronize(store.load())
        >>> report.discovered_projects
        [ProjectKey(language='Python', folder_name='foo')]
    """

    def __init__(
        self,
        context: 'DevMapContext',
        store: Optional[RegistryStore] = None,
    ):
        self.context = context
        self.store = store if store is not None else RegistryStore(context.registry_path, context.now)

    def synchronize(self, registry: Registry, persist: bool = True) -> SyncReport:
        """
        Run a full reconciliation pass, mutating ``registry`` in place.

        Args:
            registry: Registry loaded by the store
            persist: Write the registry back at the end of the pass

        Returns:
            SyncReport describing the changes
        """
        report = SyncReport(registry=registry, duplicate_keys=list(registry.duplicate_keys))

        self._materialize_languages(registry, report)
        self._discover_languages(registry, report)
        self._materialize_projects(registry, report)
        self._refresh_derived(registry, report)
        self._discover_projects(registry, report)
        self._rebuild_users(registry, report)

        if persist:
            self._persist(registry, report)

        logger.info(
            f"Reconciliation done: {len(report.created_directories)} directories created, "
            f"{len(report.failed_directories)} failed, "
            f"{len(report.discovered_languages)} languages and "
            f"{len(report.discovered_projects)} projects discovered, "
            f"{len(report.refreshed_projects)} projects refreshed"
        )
        return report

    # ------------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------------

    @staticmethod
    def _has_usable_path(project: Project) -> bool:
        """Language and folder name each name exactly one level of the tree."""
        return is_path_component(project.language) and is_path_component(project.folder_name)

    def _materialize_languages(self, registry: Registry, report: SyncReport) -> None:
        for language in registry.languages:
            if not is_path_component(language):
                logger.warning(f"Skipping language with unusable directory name: {language!r}")
                continue
            report.record_directory(ensure_language_directory(self.context.projects_root, language))

    def _discover_languages(self, registry: Registry, report: SyncReport) -> None:
        for name in list_subdirectories(self.context.projects_root):
            if registry.add_language(name):
                report.discovered_languages.append(name)
                logger.info(f"Added new language from filesystem: {name}")

    def _materialize_projects(self, registry: Registry, report: SyncReport) -> None:
        for project in registry.projects.values():
            if not self._has_usable_path(project):
                continue
            path = self.context.project_path(project.language, project.folder_name)
            if is_directory(path):
                continue
            created = report.record_directory(ensure_project_directory(
                self.context.projects_root, project.language, project.folder_name,
            ))
            # The language directory may be new too; list it now rather than next pass
            if created and registry.add_language(project.language):
                report.discovered_languages.append(project.language)
                logger.info(f"Added language of project {project.key}: {project.language}")

    def _refresh_derived(self, registry: Registry, report: SyncReport) -> None:
        for key, project in registry.projects.items():
            if not self._has_usable_path(project):
                report.unrefreshed_projects.append(key)
                logger.warning(f"Project {key} has no usable path, keeping stored values")
                continue

            path = self.context.project_path(project.language, project.folder_name)
            if not is_directory(path):
                report.unrefreshed_projects.append(key)
                logger.warning(f"Project directory missing, keeping stored size: {path}")
                continue

            size = folder_size(path)
            uses_git = has_version_control_marker(path)
            if size != project.size_bytes or uses_git != project.uses_version_control:
                project.size_bytes = size
                project.uses_version_control = uses_git
                report.refreshed_projects.append(key)

    def _discover_projects(self, registry: Registry, report: SyncReport) -> None:
        for language in registry.languages:
            language_path = self.context.language_path(language)
            if not is_path_component(language) or not is_directory(language_path):
                continue

            for folder_name in list_subdirectories(language_path):
                key = ProjectKey(language, folder_name)
                if registry.has_project(key):
                    continue

                path = language_path / folder_name
                registry.add_project(Project(
                    name=folder_name,
                    language=language,
                    folder_name=folder_name,
                    created_by=UNKNOWN_USER,
                    created_at=self.context.now(),
                    size_bytes=folder_size(path),
                    uses_version_control=has_version_control_marker(path),
                ))
                report.discovered_projects.append(key)
                logger.info(f"Added new project from filesystem: {folder_name} in {language}")

    def _rebuild_users(self, registry: Registry, report: SyncReport) -> None:
        report.added_users = sorted(registry.rebuild_users())

    def _persist(self, registry: Registry, report: SyncReport) -> None:
        try:
            self.store.save(registry)
        except RegistryWriteError as e:
            report.save_error = e
            return
        report.saved = True


def synchronize(
    registry: Registry,
    context: 'DevMapContext',
    store: Optional[RegistryStore] = None,
) -> SyncReport:
    """Run one reconciliation pass. See :class:`Reconciler`."""
    return Reconciler(context, store).synchronize(registry)
