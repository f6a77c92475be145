"""Async runner for the serve command.

This module provides the async entry point that coordinates running the
plugin host and the control app together using anyio.
"""

import anyio
import uvicorn

from plugbar.config import ControlConfig
from plugbar.plugin import PluginHost, create_control_app


async def run_serve(host: PluginHost, control: ControlConfig) -> None:
    """Run the host with its control API.

    The control server shares the event loop with the plugins, so route
    handlers issue commands on the thread the supervisors live on.

    Args:
        host: The plugin host to run and control.
        control: Where to bind the control API.
    """
    control_app = create_control_app(host)

    uvicorn_config = uvicorn.Config(
        app=control_app,
        host=control.host,
        port=control.port,
        log_level="warning",
        access_log=False,
    )
    control_server = uvicorn.Server(uvicorn_config)

    async with anyio.create_task_group() as tg:
        tg.start_soon(control_server.serve)

        # Run the host (blocks until shutdown)
        await host.run()

        # Host has shut down, stop the control server
        control_server.should_exit = True
