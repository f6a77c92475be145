"""plugbar: drive a text surface from the output of plugin executables."""

from plugbar.plugin import (
    ExecutionModel,
    IntervalPlugin,
    PluginDelegate,
    PluginHost,
    PluginProtocol,
    PluginSpec,
    PluginState,
    StreamPlugin,
    create_plugin,
    open_plugin,
)

__version__ = "0.1.0"

__all__ = [
    "ExecutionModel",
    "IntervalPlugin",
    "PluginDelegate",
    "PluginHost",
    "PluginProtocol",
    "PluginSpec",
    "PluginState",
    "StreamPlugin",
    "__version__",
    "create_plugin",
    "open_plugin",
]
