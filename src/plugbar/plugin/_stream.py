"""Supervisor for stream plugins.

A stream plugin is spawned once and left running, emitting lines as they
occur. ``invoke()`` replaces the running process with one launched using
one-time arguments; ``start()`` and ``restart()`` always go back to the
spec's base arguments.
"""

from collections.abc import Sequence
from dataclasses import replace
from typing import final

import anyio.abc
from structlog.typing import FilteringBoundLogger

from ._models import Completion, ExecutionModel, PluginSpec, PluginState, PluginStatus
from ._protocol import PluginDelegate
from ._runtime import PluginRuntime


@final
class StreamPlugin:
    """Manages a single long-lived plugin process.

    The plugin starts as soon as it is constructed. A process that exits on
    its own, cleanly or not, is not restarted; the plugin stays idle until
    the next command.
    """

    __slots__ = ("__weakref__", "_override", "_runtime")

    def __init__(
        self,
        spec: PluginSpec,
        delegate: PluginDelegate,
        task_group: anyio.abc.TaskGroup,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the supervisor and start the plugin.

        Args:
            spec: Configuration of a stream plugin.
            delegate: Consumer of output lines, held weakly.
            task_group: Task group the plugin process runs in.
            logger: Logger to bind plugin context to.
        """
        if spec.model != ExecutionModel.STREAM:
            msg = f"StreamPlugin cannot run a {spec.model} plugin"
            raise ValueError(msg)

        self._runtime = PluginRuntime(
            spec, delegate, task_group, on_exit=self._on_exit, logger=logger
        )
        self._override = False
        self.start()

    @property
    def name(self) -> str:
        return self._runtime.spec.display_name

    @property
    def spec(self) -> PluginSpec:
        return self._runtime.spec

    @property
    def model(self) -> ExecutionModel:
        return ExecutionModel.STREAM

    @property
    def state(self) -> PluginState:
        if self._runtime.detached:
            return PluginState.DETACHED
        return PluginState.RUNNING if self._runtime.running else PluginState.IDLE

    @property
    def generation(self) -> int:
        return self._runtime.generation

    @property
    def effective_args(self) -> tuple[str, ...]:
        return self._runtime.args

    @property
    def pid(self) -> int | None:
        return self._runtime.pid

    def start(self) -> None:
        """Run the plugin with its base arguments unless already doing so."""
        if self._runtime.detached:
            self._runtime.logger.debug("command_ignored", command="start")
            return
        if self._runtime.running and not self._override:
            return
        self._launch(self._runtime.args, override=False)

    def stop(self) -> None:
        """Kill the running process, if any."""
        if self._runtime.detached or not self._runtime.running:
            return
        self._runtime.bump()
        self._runtime.kill()
        self._override = False

    def restart(self) -> None:
        """Kill any running process and start over with the base arguments."""
        if self._runtime.detached:
            self._runtime.logger.debug("command_ignored", command="restart")
            return
        self._launch(self._runtime.args, override=False)

    def invoke(self, args: Sequence[str]) -> None:
        """Replace the running process with one using ``args`` just this once.

        The base arguments are left untouched, so the next ``start()`` or
        ``restart()`` runs the plugin as configured again.
        """
        if self._runtime.detached:
            self._runtime.logger.debug("command_ignored", command="invoke")
            return
        self._launch(tuple(args), override=True)

    def detach(self) -> None:
        """Kill the process and stop delivering output for good."""
        self._runtime.detach()
        self._override = False

    def status(self) -> PluginStatus:
        return replace(self._runtime.status, state=self.state)

    def _launch(self, args: tuple[str, ...], *, override: bool) -> None:
        self._runtime.bump()
        self._runtime.kill()
        self._override = override
        self._runtime.spawn(args)

    def _on_exit(self, _generation: int, _completion: Completion) -> None:
        self._override = False
