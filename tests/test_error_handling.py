"""Tests for the error hierarchy and structured error reporting."""
import logging

import pytest

from devmap.error_handling import (
    DirectoryCreationError,
    RegistryNotFoundError,
    RegistryParseError,
    RegistryWriteError,
    report_error,
    wrap_error,
)


def test_str_includes_component():
    error = RegistryWriteError("disk full", context={"registry_path": "/tmp/x.json"})
    assert str(error) == "[registry] disk full"
    assert error.to_dict() == {
        "error_type": "RegistryWriteError",
        "message": "disk full",
        "component": "registry",
        "context": {"registry_path": "/tmp/x.json"},
    }


def test_not_found_is_a_parse_error():
    error = RegistryNotFoundError("/home/u/.devmap/devmap.json")
    assert isinstance(error, RegistryParseError)
    assert error.context == {"registry_path": "/home/u/.devmap/devmap.json"}


def test_wrap_error_keeps_original():
    wrapped = wrap_error(
        PermissionError(13, "Permission denied"),
        "Failed to create directory /p/Go",
        DirectoryCreationError,
        path="/p/Go",
    )

    assert isinstance(wrapped, DirectoryCreationError)
    assert wrapped.component == "filesystem"
    assert wrapped.context["original_type"] == "PermissionError"
    assert wrapped.context["path"] == "/p/Go"


class TestReportError:

    def test_logs_structured_record(self, caplog):
        error = RegistryWriteError("disk full", context={"registry_path": "/tmp/x.json"})

        with caplog.at_level(logging.DEBUG, logger="devmap"):
            message = report_error(error, level="warning")

        assert message == "[registry] disk full"
        (record,) = caplog.records
        assert record.levelno == logging.WARNING
        assert record.error["error_type"] == "RegistryWriteError"
        assert record.error["context"] == {"registry_path": "/tmp/x.json"}

    def test_plain_exception(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="devmap"):
            message = report_error(ValueError("bad"))

        assert message == "bad"
        (record,) = caplog.records
        assert record.levelno == logging.ERROR
        assert record.error == {"error_type": "ValueError", "message": "bad"}

    @pytest.mark.parametrize("level", ["nonsense", "error"])
    def test_unknown_level_falls_back_to_error(self, caplog, level):
        with caplog.at_level(logging.DEBUG, logger="devmap"):
            report_error(RegistryWriteError("x"), level=level)
        assert caplog.records[-1].levelno == logging.ERROR
