"""Coordinator for running several plugins side by side.

This module provides the PluginHost class that runs one supervisor per
plugin spec inside a single anyio task group and routes commands to them by
name.
"""

import signal
from collections.abc import Callable, Sequence
from typing import final

import anyio
import anyio.abc
import structlog
from structlog.typing import FilteringBoundLogger

from plugbar.exceptions import PluginNotFoundError, PluginSpecError

from ._factory import create_plugin
from ._models import PluginSpec, PluginState
from ._output import ConsoleDelegate
from ._protocol import PluginDelegate, PluginProtocol

DelegateFactory = Callable[[PluginSpec], PluginDelegate]


@final
class PluginHost:
    """Runs a collection of plugins until shutdown.

    Plugins autostart when ``run()`` begins. Commands issued by name are
    forwarded to the matching supervisor. The host keeps a strong reference
    to every delegate it creates, since supervisors only hold them weakly.
    """

    __slots__ = (
        "_delegate_factory",
        "_delegates",
        "_logger",
        "_plugins",
        "_shutdown_event",
        "_specs",
    )

    def __init__(
        self,
        specs: Sequence[PluginSpec],
        delegate_factory: DelegateFactory | None = None,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the host.

        Args:
            specs: Plugins to run. Display names must be unique.
            delegate_factory: Builds the delegate for each plugin. Prints to
                the console when None.
            logger: Logger passed on to every supervisor.

        Raises:
            PluginSpecError: If two specs share a display name.
        """
        self._specs: dict[str, PluginSpec] = {}
        for spec in specs:
            name = spec.display_name
            if name in self._specs:
                msg = f"Duplicate plugin name '{name}'"
                raise PluginSpecError(msg, plugin_name=name)
            self._specs[name] = spec

        self._delegate_factory: DelegateFactory = delegate_factory or (
            lambda spec: ConsoleDelegate(spec.display_name)
        )
        self._logger: FilteringBoundLogger = logger or structlog.get_logger(
            "plugbar.host"
        )
        self._delegates: dict[str, PluginDelegate] = {}
        self._plugins: dict[str, PluginProtocol] = {}
        self._shutdown_event: anyio.Event | None = None

    @property
    def names(self) -> list[str]:
        """Return the plugin names in configuration order."""
        return list(self._specs)

    @property
    def plugins(self) -> dict[str, PluginProtocol]:
        """Return the running supervisors by name (empty outside ``run()``)."""
        return self._plugins

    def get_plugin(self, name: str) -> PluginProtocol:
        """Get a running plugin by name.

        Raises:
            PluginNotFoundError: If no plugin with that name is running.
        """
        plugin = self._plugins.get(name)
        if plugin is None:
            msg = f"Plugin '{name}' not found"
            raise PluginNotFoundError(msg, plugin_name=name)
        return plugin

    def start_plugin(self, name: str) -> None:
        """Start a plugin.

        Raises:
            PluginNotFoundError: If no plugin with that name is running.
        """
        self.get_plugin(name).start()

    def stop_plugin(self, name: str) -> None:
        """Stop a plugin.

        Raises:
            PluginNotFoundError: If no plugin with that name is running.
        """
        self.get_plugin(name).stop()

    def restart_plugin(self, name: str) -> None:
        """Restart a plugin.

        Raises:
            PluginNotFoundError: If no plugin with that name is running.
        """
        self.get_plugin(name).restart()

    def invoke_plugin(self, name: str, args: Sequence[str]) -> None:
        """Invoke a plugin with arguments.

        Raises:
            PluginNotFoundError: If no plugin with that name is running.
        """
        self.get_plugin(name).invoke(args)

    def get_status(self) -> dict[str, dict[str, object]]:
        """Get status summary for all running plugins.

        Returns:
            Dictionary mapping plugin names to status dictionaries.
        """
        summary: dict[str, dict[str, object]] = {}
        for name, plugin in self._plugins.items():
            data = plugin.status().to_dict()
            data["model"] = plugin.model.value
            data["path"] = str(plugin.spec.path)
            summary[name] = data
        return summary

    def _start_plugins(self, task_group: anyio.abc.TaskGroup) -> None:
        for name, spec in self._specs.items():
            delegate = self._delegate_factory(spec)
            self._delegates[name] = delegate
            self._plugins[name] = create_plugin(
                spec, delegate, task_group, logger=self._logger
            )
        self._logger.info("host_started", plugins=list(self._specs))

    def _detach_all(self) -> None:
        for plugin in self._plugins.values():
            if plugin.state != PluginState.DETACHED:
                plugin.detach()

    async def run(self) -> None:
        """Run every plugin until shutdown.

        Blocks until ``shutdown()`` is called or SIGINT/SIGTERM arrives, then
        detaches all plugins and waits for their processes to be reaped.
        """
        self._shutdown_event = anyio.Event()

        async def handle_signals() -> None:
            with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:
                async for _ in signals:
                    await self.shutdown()
                    break

        try:
            async with anyio.create_task_group() as tg:
                tg.start_soon(handle_signals)
                self._start_plugins(tg)

                await self._shutdown_event.wait()

                self._detach_all()
                # The signal listener never returns on its own
                tg.cancel_scope.cancel()
        finally:
            self._detach_all()
            self._logger.info("host_stopped")
            self._plugins.clear()
            self._delegates.clear()
            self._shutdown_event = None

    async def shutdown(self) -> None:
        """Trigger shutdown of all plugins.

        Sets the shutdown event, which causes ``run()`` to detach every
        plugin and return.
        """
        if self._shutdown_event is not None:
            self._shutdown_event.set()
