"""
First-Time Setup for DevMap

This module provides the setup flow run when no configuration or registry
exists yet:
- Configuration directory and default YAML configuration
- Default registry, either cloned from a template repository or empty
- Setup status reporting

Example:
    >>> from devmap.config.setup import first_time_setup
    >>> result = first_time_setup()
    >>> if result.success:
    ...     print(f"Registry installed at: {result.registry_path}")
    ... else:
    ...     print(f"Setup failed: {result.error}")
"""

import json
import subprocess
import tempfile
import logging
from pathlib import Path
from typing import Optional, Dict, Any

from .global_config import ConfigManager
from ..error_handling import DevMapError
from ..registry.store import RegistryStore, empty_registry_document


logger = logging.getLogger(__name__)


"""Name of the registry file inside a template repository."""
TEMPLATE_REGISTRY_FILE = "devmap.json"


class SetupResult:
    """Result of a setup operation.

    Attributes:
        success: True if setup completed successfully, False otherwise
        config_path: Path to the config file (if successful)
        registry_path: Path to the installed registry (if successful)
        error: Error message (if failed)
        warnings: List of warning messages (informational)
    """

    def __init__(
        self,
        success: bool,
        config_path: Optional[str] = None,
        registry_path: Optional[str] = None,
        error: Optional[str] = None,
        warnings: Optional[list[str]] = None,
    ):
        self.success = success
        self.config_path = config_path
        self.registry_path = registry_path
        self.error = error
        self.warnings = warnings or []

    def __repr__(self) -> str:
        if self.success:
            return f"SetupResult(success=True, registry_path={self.registry_path})"
        return f"SetupResult(success=False, error={self.error})"


def _clone_template_registry(repository: str) -> Dict[str, Any]:
    """Clone ``repository`` and return the decoded template registry.

    Raises:
        DevMapError: If cloning fails or the repository has no usable registry
    """
    with tempfile.TemporaryDirectory(prefix="devmap-template-") as tmp:
        clone_dir = Path(tmp) / "repo"
        logger.info(f"Cloning {repository} to retrieve the default registry")
        try:
            subprocess.run(
                ["git", "clone", "--depth", "1", repository, str(clone_dir)],
                check=True,
                capture_output=True,
                text=True,
            )
        except subprocess.CalledProcessError as e:
            raise DevMapError(
                f"Failed to clone repository from {repository}: {e.stderr.strip() or e}",
                component="setup",
            )
        except OSError as e:
            raise DevMapError(f"Failed to run git: {e}", component="setup")

        source = clone_dir / TEMPLATE_REGISTRY_FILE
        if not source.is_file():
            raise DevMapError(
                "Default registry file not found in the cloned repository",
                component="setup",
                context={"repository": repository},
            )
        try:
            return json.loads(source.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DevMapError(f"Invalid default registry in {repository}: {e}", component="setup")


def install_default_registry(
    registry_path: str | Path,
    repository: str = "",
    force: bool = False,
) -> SetupResult:
    """Install the default registry file.

    With a ``repository`` the registry is taken from the ``devmap.json`` of a
    shallow clone; otherwise an empty registry is written. An existing
    registry is kept unless ``force`` is set.

    Returns:
        SetupResult; no exceptions escape.
    """
    registry_path = Path(registry_path)
    store = RegistryStore(registry_path)

    if store.exists() and not force:
        logger.info(f"Registry already exists at {registry_path}, skipping install")
        return SetupResult(
            success=True,
            registry_path=str(registry_path),
            warnings=["Registry already exists, skipping install"],
        )

    try:
        document = (
            _clone_template_registry(repository)
            if repository
            else empty_registry_document()
        )
        store.write_document(document)
    except DevMapError as e:
        logger.error(f"Registry install failed: {e}")
        return SetupResult(success=False, error=str(e))

    logger.info(f"Installed default registry at {registry_path}")
    return SetupResult(success=True, registry_path=str(registry_path))


def first_time_setup(
    config_path: Optional[str] = None,
    force: bool = False,
) -> SetupResult:
    """Perform first-time setup for DevMap.

    Creates the configuration file with defaults when missing, the projects
    root, and the default registry.

    Args:
        config_path: Optional custom config path. Defaults to ~/.devmap/config.yaml
        force: Overwrite an existing registry with the default one

    Returns:
        SetupResult with success status, paths, and any errors/warnings.
    """
    warnings: list[str] = []

    try:
        manager = ConfigManager(config_path)
        if manager.config_exists():
            warnings.append("Config already exists, keeping it")
        config = manager.get_config()
        paths = manager.resolve_paths(config)

        if not paths.projects_root.exists():
            logger.info(f"Creating projects root: {paths.projects_root}")
            paths.projects_root.mkdir(parents=True, exist_ok=True)

        install = install_default_registry(
            paths.registry_path,
            config.registry.template_repository,
            force=force,
        )
    except (DevMapError, OSError) as e:
        logger.error(f"First-time setup failed: {e}", exc_info=True)
        return SetupResult(success=False, error=str(e), warnings=warnings)

    if not install.success:
        return SetupResult(
            success=False,
            config_path=manager.config_path,
            error=install.error,
            warnings=warnings,
        )

    return SetupResult(
        success=True,
        config_path=manager.config_path,
        registry_path=install.registry_path,
        warnings=warnings + install.warnings,
    )


def is_first_run(config_path: Optional[str] = None) -> bool:
    """True if the config file or the registry does not exist yet."""
    manager = ConfigManager(config_path)
    if not manager.config_exists():
        return True
    paths = manager.resolve_paths()
    return not paths.registry_path.exists()


def get_setup_status(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Get current setup status for DevMap."""
    manager = ConfigManager(config_path)
    status = {
        'config_exists': manager.config_exists(),
        'config_path': manager.config_path,
    }
    if status['config_exists']:
        paths = manager.resolve_paths()
        status.update({
            'registry_exists': paths.registry_path.exists(),
            'registry_path': str(paths.registry_path),
            'projects_root_exists': paths.projects_root.is_dir(),
            'projects_root': str(paths.projects_root),
        })
    status["is_first_run"] = not status.get("registry_exists", False)
    return status


__all__ = [
    'first_time_setup',
    'install_default_registry',
    'SetupResult',
    'is_first_run',
    'get_setup_status',
]
