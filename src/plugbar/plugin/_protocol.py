"""Protocol definitions for plugin supervision.

This module defines the interfaces that decouple the supervisors from their
consumers and from each other:
- PluginDelegate: Protocol for consuming plugin output
- PluginProtocol: Command surface shared by both execution models
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from ._models import ExecutionModel, PluginSpec, PluginState, PluginStatus


@runtime_checkable
class PluginDelegate(Protocol):
    """Protocol for consuming plugin output lines.

    Supervisors hold their delegate through a weak reference, so
    implementations must support weak references (plain classes do; classes
    with ``__slots__`` need a ``__weakref__`` slot).

    Text arrives exactly as the plugin wrote it. A stream plugin calls back
    once per line, terminator included; an interval plugin calls back once
    per channel at the end of each run with everything that run wrote.
    """

    async def on_output_line(self, text: str) -> None:
        """Receive text the plugin wrote to stdout."""
        ...

    async def on_error_line(self, text: str) -> None:
        """Receive text the plugin wrote to stderr."""
        ...


@runtime_checkable
class PluginProtocol(Protocol):
    """Command surface of a plugin supervisor.

    All commands are fire-and-forget: they never block, never raise for
    lifecycle reasons, and may be issued at any time, including before the
    effects of a previous command have settled. They must be called from
    the event loop thread the supervisor was created on.
    """

    @property
    def name(self) -> str:
        """Return the display name of the plugin."""
        ...

    @property
    def spec(self) -> PluginSpec:
        """Return the immutable plugin specification."""
        ...

    @property
    def model(self) -> ExecutionModel:
        """Return the execution model of the plugin."""
        ...

    @property
    def state(self) -> PluginState:
        """Return the current lifecycle state."""
        ...

    @property
    def generation(self) -> int:
        """Return the current generation counter."""
        ...

    @property
    def effective_args(self) -> tuple[str, ...]:
        """Return the arguments the next scheduled run would use."""
        ...

    def start(self) -> None:
        """Start the plugin unless it is already running."""
        ...

    def stop(self) -> None:
        """Stop the plugin, killing any live process."""
        ...

    def restart(self) -> None:
        """Kill any live process and run the plugin again."""
        ...

    def invoke(self, args: Sequence[str]) -> None:
        """Kill any live process and run the plugin with ``args``."""
        ...

    def detach(self) -> None:
        """Tear the supervisor down; no output is delivered afterwards."""
        ...

    def status(self) -> PluginStatus:
        """Return a snapshot of the runtime status."""
        ...
