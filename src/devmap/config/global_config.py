"""
Global Configuration Management for DevMap

This module provides configuration management with YAML persistence and
validation, and resolves the filesystem locations every other component
works with (projects root, registry file, templates directory).

Key Features:
- YAML-based configuration
- Deep merge of user config with defaults
- Auto-creation of config file on first run
- Secure file permissions (0o600)
- Path resolution relative to a configurable home directory
"""

import os
import copy
import getpass
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Optional
import yaml

from .validation import ConfigValidator, ValidationError
from ..error_handling import ConfigurationError


def _default_user_name() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


@dataclass
class PathsConfig:
    """Filesystem locations.

    Attributes:
        home: Base directory other relative paths are resolved against (default: ~)
        projects_path: Projects root, one sub-directory per language (default: projects)
        registry_file: Registry JSON file (default: .devmap/devmap.json)
        templates_path: Project templates, one sub-directory per language
            (default: .devmap/templates)
    """

    home: str = "~"
    projects_path: str = "projects"
    registry_file: str = ".devmap/devmap.json"
    templates_path: str = ".devmap/templates"


@dataclass
class UserConfig:
    """Identity recorded as ``created_by`` for projects created with DevMap."""

    name: str = field(default_factory=_default_user_name)


@dataclass
class RegistrySourceConfig:
    """Where the install flow fetches the default registry from.

    An empty ``template_repository`` installs an empty registry.
    """

    template_repository: str = ""


@dataclass
class LoggingConfig:
    level: str = "INFO"
    json: bool = True


@dataclass
class DevMapConfig:
    """Complete configuration structure for DevMap.

    Attributes:
        version: Configuration schema version
        paths: Filesystem locations
        user: Identity of the local user
        registry: Default registry source
        logging: Logging settings
    """

    version: str = "1.0"
    paths: PathsConfig = field(default_factory=PathsConfig)
    user: UserConfig = field(default_factory=UserConfig)
    registry: RegistrySourceConfig = field(default_factory=RegistrySourceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


@dataclass(frozen=True)
class DevMapPaths:
    """Absolute locations resolved from a :class:`DevMapConfig`."""

    home: Path
    projects_root: Path
    registry_path: Path
    templates_root: Path


class ConfigManager:
    """Manages DevMap configuration with validation and persistence.

    Example:
        >>> manager = ConfigManager()
        >>> config = manager.get_config()
        >>> paths = manager.resolve_paths(config)
        >>> print(paths.projects_root)
        /home/user/projects
    """

    DEFAULT_CONFIG_PATH = "~/.devmap/config.yaml"
    CONFIG_ENV_VAR = "DEVMAP_CONFIG"
    CURRENT_VERSION = "1.0"

    def __init__(self, config_path: Optional[str] = None):
        """Initialize the configuration manager.

        Args:
            config_path: Path to config file. Defaults to $DEVMAP_CONFIG,
                then ~/.devmap/config.yaml
        """
        if config_path is None:
            config_path = os.environ.get(self.CONFIG_ENV_VAR) or self.DEFAULT_CONFIG_PATH

        self.config_path = os.path.expanduser(str(config_path))
        self.validator = ConfigValidator()
        self._config_cache: Optional[DevMapConfig] = None

    def _ensure_config_directory(self) -> None:
        config_dir = os.path.dirname(self.config_path)

        if config_dir and not os.path.exists(config_dir):
            os.makedirs(config_dir, mode=0o700, exist_ok=True)

    def get_config(self, force_reload: bool = False) -> DevMapConfig:
        """Get the current configuration, loading from file if needed."""
        if self._config_cache is None or force_reload:
            self._config_cache = self.load_config()

        return self._config_cache

    def load_config(self) -> DevMapConfig:
        """Load configuration from the YAML file.

        A missing file is created with default values. An empty file yields
        defaults without rewriting it.

        Raises:
            ConfigurationError: If the file cannot be parsed or fails validation
        """
        if not os.path.exists(self.config_path):
            return self._create_default_config()

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                config_dict = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Failed to parse YAML config: {e}",
                context={"config_path": self.config_path},
            )
        except OSError as e:
            raise ConfigurationError(
                f"Failed to read config: {e}",
                context={"config_path": self.config_path},
            )

        if config_dict is None:
            return DevMapConfig()

        self.validator.validate_config(config_dict)

        merged_dict = self._deep_merge(self.get_default_config_dict(), config_dict)
        return self._dict_to_dataclass(merged_dict)

    def save_config(self, config: DevMapConfig) -> None:
        """Save configuration to YAML file with secure permissions.

        Raises:
            ValidationError: If configuration is invalid
            ConfigurationError: If file cannot be written
        """
        config_dict = self._dataclass_to_dict(config)
        self.validator.validate_config(config_dict)

        try:
            self._ensure_config_directory()
            with open(self.config_path, 'w', encoding='utf-8') as f:
                f.write("# DevMap Configuration\n")
                f.write("# Relative paths are resolved against paths.home\n")
                f.write("\n")

                yaml.dump(
                    config_dict,
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                    allow_unicode=True
                )

            os.chmod(self.config_path, 0o600)
            self._config_cache = config

        except OSError as e:
            raise ConfigurationError(
                f"Failed to write config file: {e}",
                context={"config_path": self.config_path},
            )

    def config_exists(self) -> bool:
        return os.path.exists(self.config_path)

    def get_default_config_dict(self) -> Dict[str, Any]:
        return self._dataclass_to_dict(DevMapConfig())

    def resolve_paths(self, config: Optional[DevMapConfig] = None) -> DevMapPaths:
        """Resolve configured paths to absolute locations.

        Relative entries are joined onto ``paths.home``; ``~`` is expanded
        everywhere.
        """
        if config is None:
            config = self.get_config()

        home = Path(os.path.expanduser(config.paths.home)).resolve()

        def _resolve(value: str) -> Path:
            path = Path(os.path.expanduser(value))
            if not path.is_absolute():
                path = home / path
            return path

        return DevMapPaths(
            home=home,
            projects_root=_resolve(config.paths.projects_path),
            registry_path=_resolve(config.paths.registry_file),
            templates_root=_resolve(config.paths.templates_path),
        )

    def _create_default_config(self) -> DevMapConfig:
        default_config = DevMapConfig()
        self.save_config(default_config)
        return default_config

    def _deep_merge(
        self,
        base: Dict[str, Any],
        override: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Deep merge override dict into base dict."""
        result = copy.deepcopy(base)

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _dataclass_to_dict(self, config: DevMapConfig) -> Dict[str, Any]:
        return {
            'version': config.version,
            'paths': {
                'home': config.paths.home,
                'projects_path': config.paths.projects_path,
                'registry_file': config.paths.registry_file,
                'templates_path': config.paths.templates_path,
            },
            'user': {
                'name': config.user.name,
            },
            'registry': {
                'template_repository': config.registry.template_repository,
            },
            'logging': {
                'level': config.logging.level,
                'json': config.logging.json,
            },
        }

    def _dict_to_dataclass(self, config_dict: Dict[str, Any]) -> DevMapConfig:
        paths_dict = config_dict.get('paths', {})
        user_dict = config_dict.get('user', {})
        registry_dict = config_dict.get('registry', {})
        logging_dict = config_dict.get('logging', {})

        defaults = PathsConfig()
        return DevMapConfig(
            version=config_dict.get('version', self.CURRENT_VERSION),
            paths=PathsConfig(
                home=paths_dict.get('home', defaults.home),
                projects_path=paths_dict.get('projects_path', defaults.projects_path),
                registry_file=paths_dict.get('registry_file', defaults.registry_file),
                templates_path=paths_dict.get('templates_path', defaults.templates_path),
            ),
            user=UserConfig(name=user_dict.get('name') or _default_user_name()),
            registry=RegistrySourceConfig(
                template_repository=registry_dict.get('template_repository', ''),
            ),
            logging=LoggingConfig(
                level=logging_dict.get('level', 'INFO'),
                json=logging_dict.get('json', True),
            ),
        )


__all__ = [
    'ConfigManager',
    'DevMapConfig',
    'DevMapPaths',
    'PathsConfig',
    'UserConfig',
    'RegistrySourceConfig',
    'LoggingConfig',
    'ValidationError',
]
