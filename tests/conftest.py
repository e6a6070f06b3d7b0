"""
Pytest configuration and shared fixtures for DevMap tests.

Every test works inside ``tmp_path``: a fake home with a projects root and a
registry file, and a fixed clock so timestamps are predictable.
"""
import json
import logging
from datetime import datetime
from pathlib import Path

import pytest

from devmap.context import DevMapContext
from devmap.registry import RegistryStore


FIXED_NOW = datetime(2025, 3, 17, 23, 4)


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture(autouse=True)
def reset_devmap_logging():
    """Drop handlers installed by the CLI so they don't outlive captured streams."""
    yield
    logger = logging.getLogger("devmap")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


@pytest.fixture
def home(tmp_path) -> Path:
    return tmp_path / "home"


@pytest.fixture
def projects_root(home) -> Path:
    root = home / "projects"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def registry_path(home) -> Path:
    return home / ".devmap" / "devmap.json"


@pytest.fixture
def templates_root(home) -> Path:
    return home / ".devmap" / "templates"


@pytest.fixture
def context(projects_root, registry_path, templates_root) -> DevMapContext:
    return DevMapContext(
        projects_root=projects_root,
        registry_path=registry_path,
        templates_root=templates_root,
        user_name="tester",
        now=fixed_clock,
    )


@pytest.fixture
def store(registry_path) -> RegistryStore:
    return RegistryStore(registry_path, fixed_clock)


@pytest.fixture
def write_registry(registry_path):
    """Write a raw registry document and return its path."""
    def _write(document) -> Path:
        registry_path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(document, str):
            registry_path.write_text(document, encoding="utf-8")
        else:
            registry_path.write_text(json.dumps(document, indent=4), encoding="utf-8")
        return registry_path
    return _write


def make_file(path: Path, size: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)
    return path


def project_record(lang, folder, /, **overrides):
    record = {
        "name": folder,
        "folderName": folder,
        "lang": lang,
        "created_by": "Huplo",
        "created_at": "23:04 17-03-2025",
        "size": 0,
        "git": False,
    }
    record.update(overrides)
    return record
