"""Plugin package for supervising plugin executables.

This package runs plugin executables and forwards their output, line by
line, to a delegate. Two execution models share one command surface
(start, stop, restart, invoke, detach):

Key Components:
    - PluginSpec: Immutable plugin configuration
    - PluginDelegate: Protocol for output consumption
    - PluginProtocol: Command surface shared by both models
    - Invocation: One spawned run of a plugin executable
    - Timer: Single-shot cancellable delay
    - StreamPlugin: Supervisor for long-lived, continuously emitting plugins
    - IntervalPlugin: Supervisor for plugins re-run after a fixed delay
    - create_plugin / open_plugin: Pick the supervisor for a spec
    - ConsoleDelegate: Console output implementation
    - PluginHost: Multi-plugin coordinator
    - create_control_router: FastAPI endpoint factory

Example:
    >>> from plugbar.plugin import PluginSpec, ExecutionModel, open_plugin
    >>> spec = PluginSpec(
    ...     path=Path("cpu.sh"), model=ExecutionModel.INTERVAL, interval=10.0
    ... )
    >>> async with open_plugin(spec, delegate) as plugin:
    ...     await anyio.sleep(60)
"""

from ._api import create_control_app, create_control_router
from ._factory import create_plugin, open_plugin
from ._host import PluginHost
from ._interval import IntervalPlugin
from ._invocation import Invocation
from ._models import (
    Channel,
    Completion,
    ExecutionModel,
    LineEvent,
    PluginSpec,
    PluginState,
    PluginStatus,
)
from ._output import ConsoleDelegate
from ._protocol import PluginDelegate, PluginProtocol
from ._runtime import PluginRuntime
from ._stream import StreamPlugin
from ._timer import Timer

__all__ = [
    "Channel",
    "Completion",
    "ConsoleDelegate",
    "ExecutionModel",
    "IntervalPlugin",
    "Invocation",
    "LineEvent",
    "PluginDelegate",
    "PluginHost",
    "PluginProtocol",
    "PluginRuntime",
    "PluginSpec",
    "PluginState",
    "PluginStatus",
    "StreamPlugin",
    "Timer",
    "create_control_app",
    "create_control_router",
    "create_plugin",
    "open_plugin",
]
