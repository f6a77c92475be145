"""Construction helpers that pick the supervisor for a plugin spec."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
import anyio.abc
from structlog.typing import FilteringBoundLogger

from ._interval import IntervalPlugin
from ._models import ExecutionModel, PluginSpec
from ._protocol import PluginDelegate, PluginProtocol
from ._stream import StreamPlugin


def create_plugin(
    spec: PluginSpec,
    delegate: PluginDelegate,
    task_group: anyio.abc.TaskGroup,
    *,
    logger: FilteringBoundLogger | None = None,
) -> PluginProtocol:
    """Create and autostart the supervisor matching ``spec.model``.

    Args:
        spec: Plugin configuration.
        delegate: Consumer of output lines, held weakly.
        task_group: Task group processes and timers run in.
        logger: Logger to bind plugin context to.

    Returns:
        A running StreamPlugin or IntervalPlugin.
    """
    if spec.model == ExecutionModel.INTERVAL:
        return IntervalPlugin(spec, delegate, task_group, logger=logger)
    return StreamPlugin(spec, delegate, task_group, logger=logger)


@asynccontextmanager
async def open_plugin(
    spec: PluginSpec,
    delegate: PluginDelegate,
    *,
    logger: FilteringBoundLogger | None = None,
) -> AsyncIterator[PluginProtocol]:
    """Run a plugin for the duration of an ``async with`` block.

    The plugin autostarts on entry. On exit it is detached and the block
    waits until its process has been killed and reaped.

    Example:
        >>> async with open_plugin(PluginSpec(path=Path("cpu.sh")), sink) as plugin:
        ...     plugin.invoke(["--verbose"])
        ...     await anyio.sleep(5)
    """
    async with anyio.create_task_group() as tg:
        plugin = create_plugin(spec, delegate, tg, logger=logger)
        try:
            yield plugin
        finally:
            plugin.detach()
