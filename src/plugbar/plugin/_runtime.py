"""Shared run-slot mechanics for plugin supervisors.

Both execution models compose a PluginRuntime, which owns the generation
counter, the weak delegate reference and the single live-run slot. The
runtime decides nothing about *when* to run; StreamPlugin and
IntervalPlugin drive it through ``bump()``, ``spawn()`` and ``kill()``.

Every run captures the generation that was current when it was spawned.
Line delivery and completion handling compare that value with the live
generation and quietly discard themselves when a newer command has
superseded them.
"""

import weakref
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import final

import anyio
import anyio.abc
import pendulum
import structlog
from structlog.typing import FilteringBoundLogger

from ._invocation import Invocation
from ._models import (
    Channel,
    Completion,
    ExecutionModel,
    LineEvent,
    PluginSpec,
    PluginStatus,
)
from ._protocol import PluginDelegate

ExitHandler = Callable[[int, Completion], None]
DetachHandler = Callable[[], None]


def _get_timestamp() -> str:
    """Get current timestamp in ISO 8601 format."""
    return pendulum.now("UTC").to_iso8601_string()


@dataclass(slots=True, eq=False)
class _Run:
    """A spawned (or about to be spawned) invocation and its owning scope."""

    invocation: Invocation
    generation: int
    scope: anyio.CancelScope = field(default_factory=anyio.CancelScope)

    def cancel(self) -> None:
        self.invocation.kill()
        self.scope.cancel()


@final
class PluginRuntime:
    """Generation-checked process slot shared by both execution models.

    Attributes:
        spec: Immutable plugin specification.
        status: Mutable runtime status, updated as runs come and go.
        args: Effective arguments for the next scheduled run.
    """

    __slots__ = (
        "__weakref__",
        "_delegate_ref",
        "_detached",
        "_generation",
        "_logger",
        "_on_detach",
        "_on_exit",
        "_run",
        "_task_group",
        "args",
        "spec",
        "status",
    )

    def __init__(
        self,
        spec: PluginSpec,
        delegate: PluginDelegate,
        task_group: anyio.abc.TaskGroup,
        *,
        on_exit: ExitHandler,
        on_detach: DetachHandler | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the runtime.

        Args:
            spec: Configuration of the plugin.
            delegate: Consumer of output lines, held weakly.
            task_group: Task group that runs processes and timers.
            on_exit: Called with the run's generation and completion when a
                current run ends on its own.
            on_detach: Called once when the runtime is torn down, including
                when the delegate is garbage collected.
            logger: Logger to bind plugin context to.
        """
        self.spec = spec
        self.args: tuple[str, ...] = tuple(spec.args)
        self.status = PluginStatus(args=self.args)
        self._task_group = task_group
        self._on_exit = on_exit
        self._on_detach = on_detach
        self._generation = 0
        self._run: _Run | None = None
        self._detached = False
        self._logger: FilteringBoundLogger = (
            logger or structlog.get_logger("plugbar.plugin")
        ).bind(plugin=spec.display_name, model=spec.model.value)

        runtime_ref = weakref.ref(self)

        def _delegate_gone(_: object) -> None:
            runtime = runtime_ref()
            if runtime is not None:
                runtime.detach()

        self._delegate_ref: weakref.ref[PluginDelegate] | None = weakref.ref(
            delegate, _delegate_gone
        )

    @property
    def logger(self) -> FilteringBoundLogger:
        """Return the logger bound to this plugin."""
        return self._logger

    @property
    def task_group(self) -> anyio.abc.TaskGroup:
        """Return the task group runs and timers are started in."""
        return self._task_group

    @property
    def generation(self) -> int:
        """Return the current generation."""
        return self._generation

    @property
    def detached(self) -> bool:
        """Return True once the runtime has been torn down."""
        return self._detached

    @property
    def running(self) -> bool:
        """Return True while a run occupies the slot."""
        return self._run is not None

    @property
    def pid(self) -> int | None:
        """Return the process ID of the live run, if spawned."""
        return self._run.invocation.pid if self._run is not None else None

    def bump(self) -> int:
        """Invalidate every in-flight callback and return the new generation."""
        self._generation += 1
        self.status.generation = self._generation
        return self._generation

    def is_current(self, generation: int) -> bool:
        """Return True if ``generation`` has not been superseded."""
        return not self._detached and generation == self._generation

    def spawn(self, args: Sequence[str]) -> None:
        """Start a run with ``args`` owned by the current generation.

        The slot must be empty; callers kill the previous run first.
        """
        if self._run is not None:
            msg = "spawn() called while a run is live"
            raise RuntimeError(msg)

        run = _Run(
            invocation=Invocation(
                self.spec.path,
                args,
                self.spec.env,
                whole_output=self.spec.model == ExecutionModel.INTERVAL,
            ),
            generation=self._generation,
        )
        self._run = run
        self.status.args = run.invocation.args
        self._task_group.start_soon(self._drive, run)

    def kill(self) -> None:
        """Kill the live run, if any, and empty the slot."""
        run = self._run
        if run is None:
            return
        self._run = None
        self.status.pid = None
        run.cancel()
        self._logger.debug("plugin_killed", generation=run.generation)

    def detach(self) -> None:
        """Drop the delegate, kill the live run and refuse further work.

        Idempotent. Callbacks already queued are invalidated by the
        generation bump, so nothing reaches the delegate afterwards.
        """
        if self._detached:
            return
        self.bump()
        self.kill()
        self._detached = True
        self._delegate_ref = None
        if self._on_detach is not None:
            self._on_detach()
        self._logger.info("plugin_detached")

    async def _drive(self, run: _Run) -> None:
        completion: Completion | None = None
        with run.scope:
            completion = await run.invocation.run(
                lambda event: self._deliver(run.generation, event),
                on_spawn=lambda pid: self._spawned(run, pid),
            )

        if self._run is run:
            self._run = None
            self.status.pid = None

        if completion is None:
            return

        if not self.is_current(run.generation):
            self._logger.debug(
                "stale_completion_dropped",
                generation=run.generation,
                current=self._generation,
            )
            return

        self.status.stopped_at = _get_timestamp()
        if completion.spawn_failed:
            self.status.last_error = completion.error
            self._logger.warning(
                "plugin_spawn_failed",
                error=completion.error,
                generation=run.generation,
            )
        else:
            self.status.last_error = None
            self.status.last_exit_code = completion.exit_code
            self._logger.info(
                "plugin_exited",
                exit_code=completion.exit_code,
                generation=run.generation,
            )

        self._on_exit(run.generation, completion)

    def _spawned(self, run: _Run, pid: int) -> None:
        self.status.run_count += 1
        self.status.started_at = _get_timestamp()
        if self._run is run:
            self.status.pid = pid
        self._logger.info(
            "plugin_spawned",
            pid=pid,
            generation=run.generation,
            args=list(run.invocation.args),
        )

    async def _deliver(self, generation: int, event: LineEvent) -> None:
        if not self.is_current(generation):
            self._logger.debug(
                "stale_event_dropped",
                generation=generation,
                current=self._generation,
                channel=event.channel.value,
            )
            return

        delegate = self._delegate_ref() if self._delegate_ref is not None else None
        if delegate is None:
            self.detach()
            return

        try:
            if event.channel == Channel.STDOUT:
                await delegate.on_output_line(event.text)
            else:
                await delegate.on_error_line(event.text)
        except Exception:  # noqa: BLE001
            # Delegate errors should not stop the plugin's output
            self._logger.exception("delegate_failed", channel=event.channel.value)
