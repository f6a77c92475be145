"""Configuration loading and plugin discovery for plugbar."""

from ._discovery import discover_plugins, spec_from_path
from ._duration import is_duration, parse_duration
from ._loader import CONFIG_FILE_NAME, find_config_file, read_toml_file
from ._models import (
    Config,
    ControlConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    PluginConfig,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "Config",
    "ControlConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "PluginConfig",
    "discover_plugins",
    "find_config_file",
    "is_duration",
    "parse_duration",
    "read_toml_file",
    "spec_from_path",
]
