"""Tests for configuration loading, validation and path resolution."""
import os
import stat

import pytest
import yaml

from devmap.config import ConfigManager, ConfigValidator, DevMapConfig, ValidationError
from devmap.context import DevMapContext
from devmap.error_handling import ConfigurationError


def write_config(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestConfigManager:

    def test_missing_file_is_created_with_defaults(self, tmp_path):
        config_path = tmp_path / "cfg" / "config.yaml"
        manager = ConfigManager(str(config_path))

        config = manager.get_config()

        assert config.paths.projects_path == "projects"
        assert config.paths.registry_file == ".devmap/devmap.json"
        assert config.logging.level == "INFO"
        assert config_path.is_file()
        assert stat.S_IMODE(os.stat(config_path).st_mode) == 0o600
        assert yaml.safe_load(config_path.read_text())["version"] == "1.0"

    def test_partial_config_is_merged_with_defaults(self, tmp_path):
        config_path = write_config(tmp_path / "config.yaml", {
            "paths": {"projects_path": "code"},
            "user": {"name": "alice"},
        })

        config = ConfigManager(str(config_path)).get_config()

        assert config.paths.projects_path == "code"
        assert config.paths.home == "~"
        assert config.user.name == "alice"
        assert config.registry.template_repository == ""

    def test_empty_file_yields_defaults(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("")
        assert ConfigManager(str(config_path)).get_config().paths == DevMapConfig().paths

    def test_invalid_yaml(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("paths: [unclosed")
        with pytest.raises(ConfigurationError):
            ConfigManager(str(config_path)).get_config()

    @pytest.mark.parametrize("data", [
        {"logging": {"level": "LOUD"}},
        {"logging": {"json": "yes"}},
        {"paths": {"projects_path": ""}},
        {"paths": "projects"},
        {"paths": {"unknown_key": "x"}},
        {"version": "9.9"},
    ])
    def test_validation_errors(self, tmp_path, data):
        config_path = write_config(tmp_path / "config.yaml", data)
        with pytest.raises(ValidationError):
            ConfigManager(str(config_path)).get_config()

    def test_env_var_selects_config(self, tmp_path, monkeypatch):
        config_path = write_config(tmp_path / "env.yaml", {"user": {"name": "env-user"}})
        monkeypatch.setenv("DEVMAP_CONFIG", str(config_path))

        manager = ConfigManager()

        assert manager.config_path == str(config_path)
        assert manager.get_config().user.name == "env-user"

    def test_resolve_paths_relative_to_home(self, tmp_path):
        config_path = write_config(tmp_path / "config.yaml", {
            "paths": {
                "home": str(tmp_path),
                "projects_path": "dev/projects",
                "templates_path": str(tmp_path / "abs-templates"),
            },
        })
        manager = ConfigManager(str(config_path))

        paths = manager.resolve_paths()

        assert paths.home == tmp_path.resolve()
        assert paths.projects_root == tmp_path.resolve() / "dev" / "projects"
        assert paths.registry_path == tmp_path.resolve() / ".devmap" / "devmap.json"
        assert paths.templates_root == tmp_path / "abs-templates"

    def test_context_from_config(self, tmp_path):
        config_path = write_config(tmp_path / "config.yaml", {
            "paths": {"home": str(tmp_path)},
            "user": {"name": "alice"},
            "registry": {"template_repository": "https://example.invalid/devmap.git"},
        })

        context = DevMapContext.from_config(ConfigManager(str(config_path)))

        assert context.projects_root == tmp_path.resolve() / "projects"
        assert context.user_name == "alice"
        assert context.template_repository == "https://example.invalid/devmap.git"


class TestConfigValidator:

    def test_bool_is_not_accepted_as_string(self):
        with pytest.raises(ValidationError) as exc_info:
            ConfigValidator().validate_value("user.name", True)
        assert exc_info.value.field == "user.name"

    def test_valid_values(self):
        validator = ConfigValidator()
        validator.validate_value("logging.level", "DEBUG")
        validator.validate_value("logging.json", False)
        validator.validate_value("registry.template_repository", "")
