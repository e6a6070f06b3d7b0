"""
Centralized error handling for DevMap.

This module provides a consistent exception hierarchy for registry, filesystem
and configuration failures, so callers can decide which errors are fatal
(a registry that cannot be parsed) and which are reported per item
(a project directory that cannot be created).
"""

from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)


class DevMapError(Exception):
    """
    Base exception for all DevMap errors.

    Attributes:
        message: Human-readable error message
        component: Name of the component where the error occurred
        context: Additional context information about the error
    """

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        self.message = message
        self.component = component
        self.context = context or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.component:
            return f"[{self.component}] {self.message}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "component": self.component,
            "context": self.context
        }


class RegistryParseError(DevMapError):
    """
    The registry file is malformed or unreadable.

    Fatal for loading: the caller must not synchronize a half-loaded registry.
    """

    def __init__(
        self,
        message: str,
        component: str = "registry",
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, component, context)


class RegistryNotFoundError(RegistryParseError):
    """The registry file does not exist yet (first run)."""

    def __init__(self, registry_path: str) -> None:
        self.registry_path = registry_path
        super().__init__(
            f"Registry file not found: {registry_path}",
            context={"registry_path": registry_path},
        )


class RegistryWriteError(DevMapError):
    """
    The registry file could not be written.

    The in-memory registry stays valid; the next save retries the write.
    """

    def __init__(
        self,
        message: str,
        component: str = "registry",
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, component, context)


class DirectoryCreationError(DevMapError):
    """
    A language or project directory could not be created.

    A reconciliation pass records it as a failed outcome and carries on;
    project creation raises it.
    """

    def __init__(
        self,
        message: str,
        component: str = "filesystem",
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, component, context)


class ConfigurationError(DevMapError):
    """
    Error in configuration.

    Raised when the YAML configuration cannot be parsed, fails validation,
    or cannot be written.
    """

    def __init__(
        self,
        message: str,
        component: str = "configuration",
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, component, context)


class ProjectCreationError(DevMapError):
    """
    Error creating a project through the creation flow.

    Raised for requests that cannot be honoured before anything touches the
    filesystem: unknown language, empty folder name, duplicate identity key,
    missing template.
    """

    def __init__(
        self,
        message: str,
        component: str = "creation",
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, component, context)


def report_error(error: Exception, level: str = "error") -> str:
    """
    Log an error as a structured record and return the text to show the user.

    The record carries the error's ``to_dict()`` under the ``error`` key, so
    the JSON log line holds the component and context of the failure while
    the console only gets the message.

    Args:
        error: The exception to report
        level: Log level (debug, info, warning, error, critical)

    Returns:
        ``str(error)``
    """
    if isinstance(error, DevMapError):
        details = error.to_dict()
    else:
        details = {"error_type": type(error).__name__, "message": str(error)}

    log_func = getattr(logger, level, logger.error)
    log_func(f"{details['error_type']}: {details['message']}", extra={"error": details})
    return str(error)


def wrap_error(
    error: Exception,
    message: str,
    error_class: type = DevMapError,
    **context
) -> DevMapError:
    """
    Wrap an exception in a DevMapError with additional context.

    Example:
        >>> try:
        ...     path.mkdir(parents=True)
        ... except OSError as e:
        ...     raise wrap_error(e, "Failed to create directory", DirectoryCreationError, path=str(path))
    """
    wrapped_context = {
        "original_error": str(error),
        "original_type": type(error).__name__,
        **context
    }
    return error_class(f"{message}: {error}", context=wrapped_context)
