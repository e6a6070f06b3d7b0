"""
Creation of languages and projects.

This is the non-interactive core of the project wizard: given a request it
validates it against the registry, creates the directory, optionally applies
a template and runs ``git init``, then records the project and persists the
registry.
"""

import re
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
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
from .project_registry import Project, ProjectKey, Registry
from .store import RegistryStore
from ..error_handling import ProjectCreationError, RegistryWriteError

if TYPE_CHECKING:
    from ..context import DevMapContext

logger = logging.getLogger(__name__)


_FOLDER_NAME_DROP = re.compile(r"[^a-z0-9-]")


def github_folder_name(name: str) -> str:
    """
    Turn a display name into a GitHub-style folder name.

    Lowercases, replaces spaces with hyphens and drops every character that
    is not an ASCII letter, digit or hyphen.

    Examples:
        >>> github_folder_name("My Cool Project!")
        'my-cool-project'
    """
    return _FOLDER_NAME_DROP.sub("", name.lower().replace(" ", "-"))


def list_templates(context: 'DevMapContext', language: str) -> List[str]:
    """List template names available for ``language``, sorted."""
    if context.templates_root is None:
        return []
    return list_subdirectories(context.templates_root / language)


@dataclass
class LanguageResult:
    """
    Outcome of :func:`create_language`.

    Attributes:
        language: The requested language
        added: False when the language was already registered
        directory: Outcome of ensuring the language directory
        save_error: Set when the registry could not be written
    """
    language: str
    added: bool
    directory: MaterializeResult
    save_error: Optional[RegistryWriteError] = None


def create_language(
    registry: Registry,
    context: 'DevMapContext',
    language: str,
    store: Optional[RegistryStore] = None,
) -> LanguageResult:
    """
    Register a language and ensure its directory exists.

    Registering an already known language only re-ensures its directory and
    does not rewrite the registry.
    """
    language = language.strip()
    if not language:
        raise ProjectCreationError("Language name must not be empty")
    if not is_path_component(language):
        raise ProjectCreationError(f"Invalid language name: {language!r}")

    directory = ensure_language_directory(context.projects_root, language)
    if not registry.add_language(language):
        logger.info(f"Language already exists: {language}")
        return LanguageResult(language, False, directory)

    logger.info(f"Added language to registry: {language}")
    result = LanguageResult(language, True, directory)
    store = store if store is not None else RegistryStore(context.registry_path, context.now)
    try:
        store.save(registry)
    except RegistryWriteError as e:
        result.save_error = e
    return result


@dataclass
class ProjectRequest:
    """
    Everything needed to create a project.

    Attributes:
        name: Display name (spaces allowed)
        language: Language the project belongs to
        folder_name: Explicit folder name; derived from ``name`` when omitted
        github_naming: Derive the folder name with :func:`github_folder_name`
            even if the name would be usable as is
        init_git: Run ``git init`` in the new directory
        template: Template directory name under ``<templates_root>/<language>``
        created_by: Owner; defaults to the context user
        create_language: Register the language if it is unknown
    """
    name: str
    language: str
    folder_name: Optional[str] = None
    github_naming: bool = False
    init_git: bool = False
    template: Optional[str] = None
    created_by: Optional[str] = None
    create_language: bool = False

    def resolve_folder_name(self) -> str:
        if self.folder_name:
            return self.folder_name.strip()
        if self.github_naming:
            return github_folder_name(self.name)
        return self.name.strip()


@dataclass
class CreationResult:
    """
    Outcome of :func:`create_project`.

    Attributes:
        project: The registered project
        path: Project directory
        language_created: Whether the language had to be registered first
        template_applied: Whether a template was copied in
        git_initialized: Whether ``git init`` succeeded
        warnings: Non-fatal problems (template copy, git init)
        save_error: Set when the registry could not be written
    """
    project: Project
    path: Path
    language_created: bool = False
    template_applied: bool = False
    git_initialized: bool = False
    warnings: List[str] = field(default_factory=list)
    save_error: Optional[RegistryWriteError] = None


def _template_path(context: 'DevMapContext', language: str, template: str) -> Path:
    if context.templates_root is None:
        raise ProjectCreationError("No templates directory configured")
    path = context.templates_root / language / template
    if not is_directory(path):
        raise ProjectCreationError(
            f"Template '{template}' not found for '{language}'",
            context={"template_path": str(path)},
        )
    return path


def _init_git(path: Path) -> Optional[str]:
    """Run ``git init`` in ``path``. Returns an error message on failure."""
    try:
        subprocess.run(
            ["git", "init"],
            cwd=path,
            check=True,
            capture_output=True,
            text=True,
        )
    except subprocess.CalledProcessError as e:
        return f"git init failed in {path}: {e.stderr.strip() or e}"
    except OSError as e:
        return f"git init failed in {path}: {e}"
    logger.info(f"Git repository initialized in {path}")
    return None


def create_project(
    registry: Registry,
    context: 'DevMapContext',
    request: ProjectRequest,
    store: Optional[RegistryStore] = None,
) -> CreationResult:
    """
    Create a project directory and register it.

    Validation happens before anything touches the filesystem.

    Raises:
        ProjectCreationError: Unknown language (without ``create_language``),
            empty name or folder name, existing project key, missing template
        DirectoryCreationError: The project directory cannot be created
    """
    name = request.name.strip()
    language = request.language.strip()
    if not name:
        raise ProjectCreationError("Project name must not be empty")
    if not language:
        raise ProjectCreationError("Project language must not be empty")
    if not is_path_component(language):
        raise ProjectCreationError(f"Invalid project language: {language!r}")

    folder_name = request.resolve_folder_name()
    if not is_path_component(folder_name):
        raise ProjectCreationError(
            f"Invalid project folder name: {folder_name!r}",
            context={"name": name},
        )

    key = ProjectKey(language, folder_name)
    if registry.has_project(key):
        raise ProjectCreationError(f"Project already exists: {key}", context={"key": str(key)})

    if not registry.has_language(language) and not request.create_language:
        raise ProjectCreationError(
            f"Language '{language}' not found",
            context={"language": language},
        )

    template_path = None
    if request.template:
        template_path = _template_path(context, language, request.template)

    store = store if store is not None else RegistryStore(context.registry_path, context.now)

    language_created = False
    if not registry.has_language(language):
        language_result = create_language(registry, context, language, store)
        language_created = language_result.added

    directory = ensure_project_directory(context.projects_root, language, folder_name)
    if not directory.ok:
        raise directory.error

    warnings: List[str] = []
    template_applied = False
    if template_path is not None:
        try:
            shutil.copytree(template_path, directory.path, dirs_exist_ok=True)
        except (OSError, shutil.Error) as e:
            warnings.append(f"Error copying template '{request.template}': {e}")
            logger.error(warnings[-1])
        else:
            template_applied = True
            logger.info(f"Template '{request.template}' applied to {directory.path}")

    git_initialized = False
    if request.init_git:
        error = _init_git(directory.path)
        if error:
            warnings.append(error)
            logger.error(error)
        else:
            git_initialized = True

    project = Project(
        name=name,
        language=language,
        folder_name=folder_name,
        created_by=request.created_by or context.user_name,
        created_at=context.now(),
        size_bytes=folder_size(directory.path),
        uses_version_control=has_version_control_marker(directory.path),
    )
    registry.add_project(project)
    registry.rebuild_users()

    result = CreationResult(
        project=project,
        path=directory.path,
        language_created=language_created,
        template_applied=template_applied,
        git_initialized=git_initialized,
        warnings=warnings,
    )
    try:
        store.save(registry)
    except RegistryWriteError as e:
        result.save_error = e

    logger.info(f"Project '{name}' created at {directory.path}")
    return result
