"""plugbar exceptions."""

from pathlib import Path
from typing import Any


class PlugbarError(Exception):
    """Base exception for plugbar errors."""


class ConfigError(PlugbarError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected
        self.source: str | None = source


# =============================================================================
# Plugin Exceptions
# =============================================================================


class PluginError(PlugbarError):
    """Base exception for plugin errors."""


class PluginSpecError(PluginError, ValueError):
    """Raised when a plugin specification is invalid.

    Attributes:
        plugin_name: The name of the plugin whose spec is invalid.
    """

    def __init__(self, message: str, *, plugin_name: str | None = None) -> None:
        """Initialize with error message and plugin context.

        Args:
            message: Human-readable error message.
            plugin_name: The name of the plugin whose spec is invalid.
        """
        super().__init__(message)
        self.plugin_name: str | None = plugin_name


class PluginNotFoundError(PluginError, KeyError):
    """Raised when a plugin cannot be found by name.

    Attributes:
        plugin_name: The name of the plugin that was not found.
    """

    def __init__(self, message: str, *, plugin_name: str | None = None) -> None:
        """Initialize with error message and plugin context.

        Args:
            message: Human-readable error message.
            plugin_name: The name of the plugin that was not found.
        """
        super().__init__(message)
        self.plugin_name: str | None = plugin_name

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0]) if self.args else ""
