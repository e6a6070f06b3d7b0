"""Tests for loading and saving the registry file."""
import json
from datetime import datetime

import pytest

from devmap.error_handling import (
    RegistryNotFoundError,
    RegistryParseError,
    RegistryWriteError,
)
from devmap.registry import Project, ProjectKey, Registry, RegistryStore, dump_registry

from conftest import FIXED_NOW, fixed_clock, project_record


SAMPLE = {
    "Projects": [
        {
            "name": "DevCore Project Manager",
            "folderName": "DevCore-project-manager",
            "lang": "C++",
            "created_by": "Huplo",
            "created_at": "23:04 17-03-2025",
            "size": 25042,
            "git": True,
        }
    ],
    "Languages": ["Java", "C++"],
    "Users": ["Huplo"],
}


class TestLoad:

    def test_loads_sample(self, store, write_registry):
        write_registry(SAMPLE)

        registry = store.load()

        assert registry.languages == ["Java", "C++"]
        assert registry.users == {"Huplo"}
        project = registry.get_project("C++", "DevCore-project-manager")
        assert project == Project(
            name="DevCore Project Manager",
            language="C++",
            folder_name="DevCore-project-manager",
            created_by="Huplo",
            created_at=datetime(2025, 3, 17, 23, 4),
            size_bytes=25042,
            uses_version_control=True,
        )

    def test_missing_fields_use_defaults(self, store, write_registry):
        write_registry({"Projects": [{}]})

        registry = store.load()

        assert registry.languages == []
        assert registry.users == set()
        (project,) = registry.project_list()
        assert project.name == project.folder_name == project.language == ""
        assert project.created_by == ""
        assert project.created_at == FIXED_NOW
        assert project.size_bytes == 0
        assert project.uses_version_control is False

    def test_garbage_timestamp_becomes_load_time(self, store, write_registry):
        write_registry({"Projects": [project_record("Go", "svc", created_at="garbage")]})

        registry = store.load()

        assert registry.get_project("Go", "svc").created_at == FIXED_NOW

    def test_missing_file(self, store):
        with pytest.raises(RegistryNotFoundError):
            store.load()

    def test_not_found_is_a_parse_error(self, store):
        with pytest.raises(RegistryParseError):
            store.load()

    def test_malformed_json(self, store, write_registry):
        write_registry('{"Languages": ["Go",')
        with pytest.raises(RegistryParseError) as exc_info:
            store.load()
        assert not isinstance(exc_info.value, RegistryNotFoundError)

    @pytest.mark.parametrize("document", [
        [],
        {"Languages": "Go"},
        {"Languages": [1, 2]},
        {"Projects": {}},
        {"Projects": ["svc"]},
        {"Projects": [{"size": "big"}]},
        {"Projects": [{"size": -1}]},
        {"Projects": [{"git": "yes"}]},
        {"Projects": [{"lang": 3}]},
        {"Users": [None]},
    ])
    def test_wrong_shape_is_rejected(self, store, write_registry, document):
        write_registry(document)
        with pytest.raises(RegistryParseError):
            store.load()

    def test_duplicate_keys_last_record_wins(self, store, write_registry):
        write_registry({
            "Languages": ["Go"],
            "Projects": [
                project_record("Go", "svc", name="first"),
                project_record("Go", "other"),
                project_record("Go", "svc", name="second"),
            ],
        })

        registry = store.load()

        assert [p.name for p in registry.project_list()] == ["second", "other"]
        assert registry.duplicate_keys == [ProjectKey("Go", "svc")]

    def test_repeated_languages_collapse(self, store, write_registry):
        write_registry({"Languages": ["Go", "Rust", "Go"]})
        assert store.load().languages == ["Go", "Rust"]


class TestSave:

    def test_pretty_printed_with_sorted_keys(self, store, registry_path):
        registry = Registry(languages=["Go"], users={"b", "a"})
        registry.add_project(Project("svc", "Go", "svc", "a", FIXED_NOW, 10, True))

        store.save(registry)

        text = registry_path.read_text(encoding="utf-8")
        assert text == dump_registry(registry)
        assert text.startswith('{\n    "Languages": [\n        "Go"\n    ],\n    "Projects": [')
        document = json.loads(text)
        assert list(document) == ["Languages", "Projects", "Users"]
        assert list(document["Projects"][0]) == [
            "created_at", "created_by", "folderName", "git", "lang", "name", "size",
        ]
        assert document["Projects"][0]["created_at"] == "23:04 17-03-2025"
        assert document["Users"] == ["a", "b"]

    def test_round_trip(self, store, write_registry):
        write_registry(SAMPLE)
        registry = store.load()
        store.save(registry)

        assert store.load() == registry

    def test_creates_parent_directory(self, store, registry_path):
        store.save(Registry())
        assert registry_path.is_file()
        assert not registry_path.with_suffix(".json.tmp").exists()

    def test_write_failure_raises_and_keeps_memory_state(self, tmp_path):
        target = tmp_path / "registry.json"
        target.mkdir()
        store = RegistryStore(target, fixed_clock)
        registry = Registry(languages=["Go"])

        with pytest.raises(RegistryWriteError):
            store.save(registry)

        assert registry.languages == ["Go"]
        assert not (tmp_path / "registry.json.tmp").exists()

    def test_unicode_is_kept_readable(self, store, registry_path):
        registry = Registry(users={"Zoë"})
        store.save(registry)
        assert "Zoë" in registry_path.read_text(encoding="utf-8")
