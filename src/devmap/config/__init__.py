"""
Configuration Management Package for DevMap

This package provides YAML configuration with validation, path resolution
and the first-time setup flow.

Modules:
    global_config: Configuration dataclasses, persistence and path resolution
    validation: Configuration validation rules
    setup: First-time setup and default registry installation

Example Usage:
    >>> from devmap.config import ConfigManager
    >>> manager = ConfigManager()
    >>> paths = manager.resolve_paths()
    >>> print(paths.registry_path)
    /home/user/.devmap/devmap.json
"""

from .global_config import (
    ConfigManager,
    DevMapConfig,
    DevMapPaths,
    PathsConfig,
    UserConfig,
    RegistrySourceConfig,
    LoggingConfig,
)
from .validation import ConfigValidator, ValidationError
from .setup import (
    first_time_setup,
    install_default_registry,
    SetupResult,
    is_first_run,
    get_setup_status,
)

__all__ = [
    # Global Config
    'ConfigManager',
    'DevMapConfig',
    'DevMapPaths',
    'PathsConfig',
    'UserConfig',
    'RegistrySourceConfig',
    'LoggingConfig',
    # Validation
    'ConfigValidator',
    'ValidationError',
    # Setup
    'first_time_setup',
    'install_default_registry',
    'SetupResult',
    'is_first_run',
    'get_setup_status',
]
