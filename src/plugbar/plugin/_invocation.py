"""A single execution of a plugin executable.

This module provides the Invocation class, which spawns one child process,
forwards its stdout and stderr text, and reports how it ended.
"""

import contextlib
import os
import signal
import subprocess
from collections.abc import Awaitable, Callable, Mapping, Sequence
from pathlib import Path
from typing import final

import anyio
import anyio.abc
from anyio.streams.text import TextReceiveStream

from ._models import Channel, Completion, LineEvent

LineHandler = Callable[[LineEvent], Awaitable[None]]


def _build_env(extra: Mapping[str, str]) -> dict[str, str] | None:
    """Layer plugin environment variables over the current environment."""
    if not extra:
        return None
    return {**os.environ, **extra}


def _kill_process(process: anyio.abc.Process) -> None:
    """Send SIGKILL to the process group, or to the process alone."""
    if hasattr(os, "killpg"):
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            return
        except PermissionError:
            # Group already reaped and its id reused
            pass
        else:
            return
    with contextlib.suppress(ProcessLookupError):
        process.kill()


@final
class Invocation:
    """One spawned run of a plugin executable.

    The process is started by ``run()``, which hands stdout and stderr text
    to a handler and returns a Completion once the process has exited and
    both pipes are drained. By default every completed line is handed over
    as it arrives, terminator included. With ``whole_output`` each channel
    is collected instead and handed over once, when the process closes it.
    Text of one channel keeps the order it was written in; no order is kept
    between the two channels.

    Attributes:
        path: The executable to run.
        args: Arguments passed after the executable.
        env: Extra environment variables for the child.
        whole_output: Deliver one event per channel per run.
    """

    __slots__ = ("_killed", "_process", "args", "env", "path", "whole_output")

    def __init__(
        self,
        path: Path,
        args: Sequence[str] = (),
        env: Mapping[str, str] | None = None,
        *,
        whole_output: bool = False,
    ) -> None:
        self.path = Path(path)
        self.args: tuple[str, ...] = tuple(args)
        self.env: Mapping[str, str] = env or {}
        self.whole_output = whole_output
        self._process: anyio.abc.Process | None = None
        self._killed = False

    @property
    def pid(self) -> int | None:
        """Return the process ID once spawned, None otherwise."""
        return self._process.pid if self._process is not None else None

    @property
    def returncode(self) -> int | None:
        """Return the exit code once the process has exited."""
        return self._process.returncode if self._process is not None else None

    @property
    def killed(self) -> bool:
        """Return True if kill() has been requested."""
        return self._killed

    async def run(
        self,
        on_line: LineHandler,
        *,
        on_spawn: Callable[[int], None] | None = None,
    ) -> Completion:
        """Spawn the process and stream its output until it exits.

        Spawn failures are reported through the returned Completion rather
        than raised. If the surrounding scope is cancelled, the process is
        killed and reaped before the cancellation propagates.

        Args:
            on_line: Awaited once per line, or once per channel with
                ``whole_output``.
            on_spawn: Called with the process ID right after spawning.

        Returns:
            How the process ended.
        """
        if self._killed:
            return Completion(exit_code=None, error="killed before spawn")

        try:
            process = await anyio.open_process(
                [str(self.path), *self.args],
                env=_build_env(self.env),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            return Completion(exit_code=None, error=f"{self.path}: {e.strerror or e}")

        self._process = process
        if self._killed:
            _kill_process(process)
        elif on_spawn is not None:
            on_spawn(process.pid)

        try:
            async with anyio.create_task_group() as tg:
                if process.stdout is not None:
                    tg.start_soon(self._pump, process.stdout, Channel.STDOUT, on_line)
                if process.stderr is not None:
                    tg.start_soon(self._pump, process.stderr, Channel.STDERR, on_line)
                exit_code = await process.wait()
        finally:
            with anyio.CancelScope(shield=True):
                if process.returncode is None:
                    _kill_process(process)
                await process.aclose()

        return Completion(exit_code=exit_code)

    def kill(self) -> None:
        """Forcefully terminate the process.

        Safe to call before the process is spawned, in which case it is
        killed as soon as it exists, and after it has exited.
        """
        self._killed = True
        if self._process is None or self._process.returncode is not None:
            return
        _kill_process(self._process)

    async def _pump(
        self,
        stream: anyio.abc.ByteReceiveStream,
        channel: Channel,
        on_line: LineHandler,
    ) -> None:
        pending = ""
        try:
            async for chunk in TextReceiveStream(stream, errors="replace"):
                pending += chunk
                if self.whole_output:
                    continue
                *lines, pending = pending.split("\n")
                for line in lines:
                    await on_line(LineEvent(channel, f"{line}\n"))
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            # Pipe closed underneath us by a kill
            return

        if pending:
            await on_line(LineEvent(channel, pending))
