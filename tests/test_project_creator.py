"""Tests for language and project creation."""
import json
import shutil

import pytest

from devmap.error_handling import DirectoryCreationError, ProjectCreationError
from devmap.registry import (
    ProjectKey,
    Registry,
    ProjectRequest,
    create_language,
    create_project,
    github_folder_name,
    list_templates,
)

from conftest import FIXED_NOW, make_file


@pytest.mark.parametrize("name, expected", [
    ("My Cool Project!", "my-cool-project"),
    ("DevCore Project Manager", "devcore-project-manager"),
    ("already-fine", "already-fine"),
    ("C++ Utils_v2", "c-utilsv2"),
    ("Ünïcode Name", "ncode-name"),
])
def test_github_folder_name(name, expected):
    assert github_folder_name(name) == expected


class TestCreateLanguage:

    def test_adds_language_and_directory(self, context, store, projects_root):
        registry = Registry()

        result = create_language(registry, context, "Rust", store)

        assert result.added
        assert registry.languages == ["Rust"]
        assert (projects_root / "Rust").is_dir()
        assert json.loads(store.path.read_text())["Languages"] == ["Rust"]

    def test_existing_language_is_a_noop(self, context, store):
        registry = Registry(languages=["Rust"])

        result = create_language(registry, context, "Rust", store)

        assert not result.added
        assert registry.languages == ["Rust"]
        assert not store.path.exists()

    def test_empty_name(self, context, store):
        with pytest.raises(ProjectCreationError):
            create_language(Registry(), context, "  ", store)

    def test_nested_name_is_rejected(self, context, store, projects_root):
        with pytest.raises(ProjectCreationError):
            create_language(Registry(), context, "Go/sub", store)
        assert not (projects_root / "Go").exists()


class TestCreateProject:

    def test_creates_and_registers(self, context, store, projects_root):
        registry = Registry(languages=["Python"])

        result = create_project(
            registry, context,
            ProjectRequest(name="My Tool", language="Python", github_naming=True),
            store,
        )

        assert result.path == projects_root / "Python" / "my-tool"
        assert result.path.is_dir()
        project = registry.get_project("Python", "my-tool")
        assert project is result.project
        assert project.name == "My Tool"
        assert project.created_by == "tester"
        assert project.created_at == FIXED_NOW
        assert "tester" in registry.users
        persisted = json.loads(store.path.read_text())
        assert persisted["Projects"][0]["folderName"] == "my-tool"

    def test_explicit_folder_and_owner(self, context, store):
        registry = Registry(languages=["Go"])

        result = create_project(
            registry, context,
            ProjectRequest(name="Service", language="Go", folder_name="svc", created_by="alice"),
            store,
        )

        assert result.project.key == ProjectKey("Go", "svc")
        assert result.project.created_by == "alice"

    def test_folder_defaults_to_name(self, context, store):
        registry = Registry(languages=["Go"])
        result = create_project(registry, context, ProjectRequest(name="tool", language="Go"), store)
        assert result.project.folder_name == "tool"

    def test_unknown_language_is_rejected(self, context, store, projects_root):
        with pytest.raises(ProjectCreationError):
            create_project(Registry(), context, ProjectRequest(name="x", language="Zig"), store)
        assert not (projects_root / "Zig").exists()

    def test_unknown_language_can_be_created(self, context, store, projects_root):
        registry = Registry()

        result = create_project(
            registry, context,
            ProjectRequest(name="x", language="Zig", create_language=True),
            store,
        )

        assert result.language_created
        assert registry.languages == ["Zig"]
        assert (projects_root / "Zig" / "x").is_dir()

    def test_duplicate_key_is_rejected(self, context, store):
        registry = Registry(languages=["Go"])
        create_project(registry, context, ProjectRequest(name="svc", language="Go"), store)

        with pytest.raises(ProjectCreationError):
            create_project(registry, context, ProjectRequest(name="svc", language="Go"), store)

    @pytest.mark.parametrize("request_kwargs", [
        {"name": "", "language": "Go"},
        {"name": "x", "language": ""},
        {"name": "!!!", "language": "Go", "github_naming": True},
        {"name": "x", "language": "Go", "folder_name": "a/b"},
        {"name": "x", "language": "Go", "folder_name": ".."},
        {"name": "x", "language": "Go/sub", "create_language": True},
    ])
    def test_invalid_requests(self, context, store, request_kwargs):
        with pytest.raises(ProjectCreationError):
            create_project(Registry(languages=["Go"]), context, ProjectRequest(**request_kwargs), store)

    def test_blocked_directory_raises(self, context, store, projects_root):
        make_file(projects_root / "Go", 1)
        with pytest.raises(DirectoryCreationError):
            create_project(Registry(languages=["Go"]), context, ProjectRequest(name="svc", language="Go"), store)


class TestTemplates:

    def test_list_templates_sorted(self, context, templates_root):
        (templates_root / "Python" / "package").mkdir(parents=True)
        (templates_root / "Python" / "cli").mkdir(parents=True)

        assert list_templates(context, "Python") == ["cli", "package"]
        assert list_templates(context, "Go") == []

    def test_template_is_copied(self, context, store, templates_root):
        make_file(templates_root / "Python" / "cli" / "main.py", 40)
        make_file(templates_root / "Python" / "cli" / "pkg" / "__init__.py", 2)
        registry = Registry(languages=["Python"])

        result = create_project(
            registry, context,
            ProjectRequest(name="tool", language="Python", template="cli"),
            store,
        )

        assert result.template_applied
        assert (result.path / "pkg" / "__init__.py").is_file()
        assert result.project.size_bytes == 42

    def test_missing_template_fails_before_creating(self, context, store, projects_root):
        with pytest.raises(ProjectCreationError):
            create_project(
                Registry(languages=["Python"]), context,
                ProjectRequest(name="tool", language="Python", template="nope"),
                store,
            )
        assert not (projects_root / "Python" / "tool").exists()


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
def test_git_init(context, store):
    registry = Registry(languages=["Go"])

    result = create_project(
        registry, context,
        ProjectRequest(name="svc", language="Go", init_git=True),
        store,
    )

    assert result.git_initialized
    assert result.project.uses_version_control is True
    assert (result.path / ".git").is_dir()
