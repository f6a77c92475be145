"""Single-shot cancellable timer."""

from collections.abc import Callable
from typing import final

import anyio
import anyio.abc


@final
class Timer:
    """Calls a function once after a delay unless cancelled first.

    The timer runs as a task in the task group passed to ``schedule()``.
    Cancelling before the delay elapses guarantees the callback never runs.
    """

    __slots__ = ("_callback", "_delay", "_fired", "_scope")

    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self._delay = delay
        self._callback = callback
        self._scope = anyio.CancelScope()
        self._fired = False

    @property
    def delay(self) -> float:
        """Return the configured delay in seconds."""
        return self._delay

    @property
    def pending(self) -> bool:
        """Return True until the timer fires or is cancelled."""
        return not self._fired and not self._scope.cancel_called

    def schedule(self, task_group: anyio.abc.TaskGroup) -> None:
        """Start counting down in the given task group."""
        task_group.start_soon(self._run)

    def cancel(self) -> None:
        """Prevent the callback from running. Idempotent."""
        self._scope.cancel()

    async def _run(self) -> None:
        with self._scope:
            await anyio.sleep(self._delay)
            self._fired = True
            self._callback()
