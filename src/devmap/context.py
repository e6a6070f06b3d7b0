"""
Run context shared by every DevMap operation.

The context carries the resolved locations and the clock, so operations
never read process-wide state.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from .config.global_config import ConfigManager, DevMapConfig
from .registry.project_registry import UNKNOWN_USER


@dataclass
class DevMapContext:
    """
    Locations and collaborators for one DevMap run.

    Attributes:
        projects_root: Root directory holding one sub-directory per language
        registry_path: Registry JSON file
        templates_root: Project templates, ``<templates_root>/<language>/<template>``
        user_name: Owner recorded for projects created through DevMap
        template_repository: Git URL of the default registry (may be empty)
        now: Clock used for creation times and timestamp fallbacks
    """
    projects_root: Path
    registry_path: Path
    templates_root: Optional[Path] = None
    user_name: str = UNKNOWN_USER
    template_repository: str = ""
    now: Callable[[], datetime] = field(default=datetime.now)

    def __post_init__(self):
        self.projects_root = Path(self.projects_root)
        self.registry_path = Path(self.registry_path)
        if self.templates_root is not None:
            self.templates_root = Path(self.templates_root)

    def language_path(self, language: str) -> Path:
        return self.projects_root / language

    def project_path(self, language: str, folder_name: str) -> Path:
        return self.projects_root / language / folder_name

    @classmethod
    def from_config(
        cls,
        manager: ConfigManager,
        config: Optional[DevMapConfig] = None,
    ) -> 'DevMapContext':
        """Build a context from the configuration file."""
        if config is None:
            config = manager.get_config()
        paths = manager.resolve_paths(config)
        return cls(
            projects_root=paths.projects_root,
            registry_path=paths.registry_path,
            templates_root=paths.templates_root,
            user_name=config.user.name,
            template_repository=config.registry.template_repository,
        )
