"""Data models for plugin supervision.

This module defines the core data types for running plugins:
- ExecutionModel: How a plugin's process is scheduled
- PluginState: Lifecycle states of a supervisor
- Channel: Which output stream a line came from
- PluginSpec: Immutable plugin configuration
- LineEvent: A piece of plugin output
- Completion: How an invocation ended
- PluginStatus: Mutable runtime status
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from plugbar.exceptions import PluginSpecError


class ExecutionModel(StrEnum):
    """Plugin execution models.

    - STREAM: One long-lived process emitting lines as they occur
    - INTERVAL: Short-lived runs separated by a fixed delay
    """

    STREAM = "stream"
    INTERVAL = "interval"


class PluginState(StrEnum):
    """Supervisor lifecycle states.

    - IDLE: No process and no pending timer
    - RUNNING: One live process
    - WAITING: Interval only, waiting for the next scheduled run
    - DETACHED: Torn down, accepts no further commands
    """

    IDLE = "idle"
    RUNNING = "running"
    WAITING = "waiting"
    DETACHED = "detached"


class Channel(StrEnum):
    """Output channels of a plugin process."""

    STDOUT = "stdout"
    STDERR = "stderr"


@dataclass(frozen=True, slots=True)
class PluginSpec:
    """Configuration for a supervised plugin.

    Attributes:
        path: Path to the plugin executable.
        args: Base arguments passed to every run.
        env: Extra environment variables layered over the current environment.
        model: Execution model of the plugin.
        interval: Seconds between runs. Required for interval plugins and
            rejected for stream plugins.
        name: Display name. Defaults to the executable's file name.
    """

    path: Path
    args: tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=dict)
    model: ExecutionModel = ExecutionModel.STREAM
    interval: float | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        if self.model == ExecutionModel.INTERVAL:
            if self.interval is None or self.interval <= 0:
                msg = (
                    f"Interval plugin '{self.display_name}' needs a positive "
                    f"interval, got {self.interval!r}"
                )
                raise PluginSpecError(msg, plugin_name=self.display_name)
        elif self.interval is not None:
            msg = f"Stream plugin '{self.display_name}' does not take an interval"
            raise PluginSpecError(msg, plugin_name=self.display_name)

    @property
    def display_name(self) -> str:
        """Return the name used in logs, status output and the host."""
        return self.name or Path(self.path).name


@dataclass(frozen=True, slots=True)
class LineEvent:
    """Plugin output on one channel, written exactly as the plugin wrote it.

    Stream plugins produce one event per line, terminator included.
    Interval plugins produce one event per channel per run, holding
    everything the run wrote there.
    """

    channel: Channel
    text: str


@dataclass(frozen=True, slots=True)
class Completion:
    """Terminal result of an invocation.

    Attributes:
        exit_code: Process exit code, or None if the process never started.
        error: Spawn failure description, if the process never started.
    """

    exit_code: int | None
    error: str | None = None

    @property
    def spawn_failed(self) -> bool:
        """Return True if the executable could not be started."""
        return self.error is not None

    @property
    def succeeded(self) -> bool:
        """Return True if the process ran and exited with status 0."""
        return self.exit_code == 0


@dataclass(slots=True)
class PluginStatus:
    """Mutable runtime status of a supervised plugin.

    Attributes:
        state: Current supervisor state.
        generation: Current generation counter.
        pid: Process ID of the live run, if any.
        args: Arguments of the live or most recent run.
        run_count: Number of processes spawned so far.
        last_exit_code: Exit code of the last run that finished on its own.
        last_error: Spawn failure of the last run, if it failed to start.
        started_at: ISO 8601 timestamp of the last spawn.
        stopped_at: ISO 8601 timestamp of the last natural exit.
    """

    state: PluginState = PluginState.IDLE
    generation: int = 0
    pid: int | None = None
    args: tuple[str, ...] = ()
    run_count: int = 0
    last_exit_code: int | None = None
    last_error: str | None = None
    started_at: str | None = None
    stopped_at: str | None = None

    def to_dict(self) -> dict[str, object]:
        """Return the status as a plain dictionary."""
        return {
            "state": self.state.value,
            "generation": self.generation,
            "pid": self.pid,
            "args": list(self.args),
            "run_count": self.run_count,
            "last_exit_code": self.last_exit_code,
            "last_error": self.last_error,
            "started_at": self.started_at,
            "stopped_at": self.stopped_at,
        }
