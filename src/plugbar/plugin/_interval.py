"""Supervisor for interval plugins.

An interval plugin runs to completion and is spawned again after a fixed
delay. ``invoke()`` updates the arguments used by every following run,
including runs started by ``restart()``.
"""

from collections.abc import Sequence
from dataclasses import replace
from functools import partial
from typing import final

import anyio.abc
from structlog.typing import FilteringBoundLogger

from ._models import Completion, ExecutionModel, PluginSpec, PluginState, PluginStatus
from ._protocol import PluginDelegate
from ._runtime import PluginRuntime
from ._timer import Timer


@final
class IntervalPlugin:
    """Manages a recurring, short-lived plugin process.

    After each run ends on its own (including a failed spawn), a timer for
    ``spec.interval`` seconds schedules the next run with the current
    effective arguments.
    """

    __slots__ = ("__weakref__", "_runtime", "_timer")

    def __init__(
        self,
        spec: PluginSpec,
        delegate: PluginDelegate,
        task_group: anyio.abc.TaskGroup,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the supervisor and start the first run.

        Args:
            spec: Configuration of an interval plugin.
            delegate: Consumer of output lines, held weakly.
            task_group: Task group processes and timers run in.
            logger: Logger to bind plugin context to.
        """
        if spec.model != ExecutionModel.INTERVAL:
            msg = f"IntervalPlugin cannot run a {spec.model} plugin"
            raise ValueError(msg)

        self._timer: Timer | None = None
        self._runtime = PluginRuntime(
            spec,
            delegate,
            task_group,
            on_exit=self._on_exit,
            on_detach=self._cancel_timer,
            logger=logger,
        )
        self.start()

    @property
    def name(self) -> str:
        return self._runtime.spec.display_name

    @property
    def spec(self) -> PluginSpec:
        return self._runtime.spec

    @property
    def model(self) -> ExecutionModel:
        return ExecutionModel.INTERVAL

    @property
    def interval(self) -> float:
        """Return the delay between runs in seconds."""
        return self._runtime.spec.interval or 0.0

    @property
    def state(self) -> PluginState:
        if self._runtime.detached:
            return PluginState.DETACHED
        if self._runtime.running:
            return PluginState.RUNNING
        if self._timer is not None and self._timer.pending:
            return PluginState.WAITING
        return PluginState.IDLE

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
        """Run now unless a run is already in progress."""
        if self._runtime.detached:
            self._runtime.logger.debug("command_ignored", command="start")
            return
        if self._runtime.running:
            return
        self._launch()

    def stop(self) -> None:
        """Kill the running process and cancel the next scheduled run."""
        if self._runtime.detached:
            return
        if not self._runtime.running and self._timer is None:
            return
        self._runtime.bump()
        self._runtime.kill()
        self._cancel_timer()

    def restart(self) -> None:
        """Run now with the current effective arguments."""
        if self._runtime.detached:
            self._runtime.logger.debug("command_ignored", command="restart")
            return
        self._launch()

    def invoke(self, args: Sequence[str]) -> None:
        """Run now with ``args`` and keep using them for later runs."""
        if self._runtime.detached:
            self._runtime.logger.debug("command_ignored", command="invoke")
            return
        self._runtime.bump()
        self._runtime.kill()
        self._cancel_timer()
        self._runtime.args = tuple(args)
        self._runtime.spawn(self._runtime.args)

    def detach(self) -> None:
        """Kill the process, cancel the timer and stop delivering output."""
        self._runtime.detach()

    def status(self) -> PluginStatus:
        return replace(self._runtime.status, state=self.state)

    def _launch(self) -> None:
        self._runtime.bump()
        self._runtime.kill()
        self._cancel_timer()
        self._runtime.spawn(self._runtime.args)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_exit(self, generation: int, _completion: Completion) -> None:
        self._cancel_timer()
        self._timer = Timer(self.interval, partial(self._on_timer, generation))
        self._timer.schedule(self._runtime.task_group)
        self._runtime.logger.debug(
            "plugin_scheduled", delay=self.interval, generation=generation
        )

    def _on_timer(self, generation: int) -> None:
        self._timer = None
        if not self._runtime.is_current(generation) or self._runtime.running:
            return
        self._runtime.spawn(self._runtime.args)
