"""FastAPI control endpoints for the plugin host.

This module provides REST API endpoints for controlling and monitoring the
plugins run by a PluginHost.
"""

# pyright: reportUnusedFunction=false
# FastAPI route handlers are registered via decorators, not direct calls

from typing import Never

from fastapi import APIRouter, FastAPI, HTTPException, status
from pydantic import BaseModel, Field

from plugbar.exceptions import PluginNotFoundError

from ._host import PluginHost


class PluginStatusResponse(BaseModel):
    """Response model for plugin status."""

    name: str
    model: str
    path: str
    state: str
    generation: int
    pid: int | None
    args: list[str]
    run_count: int
    last_exit_code: int | None
    last_error: str | None
    started_at: str | None
    stopped_at: str | None


class HostStatusResponse(BaseModel):
    """Response model for overall host status."""

    plugins: dict[str, PluginStatusResponse]
    total_plugins: int
    running_plugins: int


class InvokeRequest(BaseModel):
    """Request body for invoking a plugin with arguments."""

    args: list[str] = Field(default_factory=list)


class MessageResponse(BaseModel):
    """Response model for simple message responses."""

    message: str


def _build_plugin_status(name: str, data: dict[str, object]) -> PluginStatusResponse:
    """Build a PluginStatusResponse from raw status data.

    Args:
        name: The plugin name.
        data: Raw status dictionary from the host.

    Returns:
        PluginStatusResponse with properly typed fields.
    """
    pid = data.get("pid")
    generation = data.get("generation")
    run_count = data.get("run_count")
    last_exit_code = data.get("last_exit_code")
    args = data.get("args")

    return PluginStatusResponse(
        name=name,
        model=str(data.get("model", "unknown")),
        path=str(data.get("path", "")),
        state=str(data.get("state", "unknown")),
        generation=generation if isinstance(generation, int) else 0,
        pid=pid if isinstance(pid, int) else None,
        args=[str(arg) for arg in args] if isinstance(args, list) else [],
        run_count=run_count if isinstance(run_count, int) else 0,
        last_exit_code=last_exit_code if isinstance(last_exit_code, int) else None,
        last_error=str(data["last_error"]) if data.get("last_error") else None,
        started_at=str(data["started_at"]) if data.get("started_at") else None,
        stopped_at=str(data["stopped_at"]) if data.get("stopped_at") else None,
    )


def _raise_not_found(name: str, cause: PluginNotFoundError) -> Never:
    """Raise HTTP 404 for plugin not found.

    Raises:
        HTTPException: Always raises with 404 status.
    """
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Plugin '{name}' not found",
    ) from cause


def create_control_router(host: PluginHost) -> APIRouter:
    """Create a FastAPI router for plugin control endpoints.

    Commands return as soon as they are issued; their effects follow
    asynchronously.

    Args:
        host: The PluginHost instance to control.

    Returns:
        A FastAPI APIRouter with control endpoints.
    """
    router = APIRouter(prefix="/plugins", tags=["plugins"])

    @router.get("", response_model=HostStatusResponse)
    async def get_host_status() -> HostStatusResponse:
        """Get status of every plugin."""
        plugins = {
            name: _build_plugin_status(name, data)
            for name, data in host.get_status().items()
        }
        running_count = sum(1 for p in plugins.values() if p.state == "running")

        return HostStatusResponse(
            plugins=plugins,
            total_plugins=len(plugins),
            running_plugins=running_count,
        )

    @router.post("/shutdown", response_model=MessageResponse)
    async def shutdown_host() -> MessageResponse:
        """Trigger shutdown of the host."""
        await host.shutdown()
        return MessageResponse(message="Shutdown initiated")

    @router.get("/{name}", response_model=PluginStatusResponse)
    async def get_plugin_status(name: str) -> PluginStatusResponse:
        """Get status of a specific plugin."""
        data = host.get_status().get(name)
        if data is None:
            _raise_not_found(name, PluginNotFoundError(name, plugin_name=name))
        return _build_plugin_status(name, data)

    @router.post("/{name}/start", response_model=MessageResponse)
    async def start_plugin(name: str) -> MessageResponse:
        """Start a specific plugin."""
        try:
            host.start_plugin(name)
        except PluginNotFoundError as e:
            _raise_not_found(name, e)

        return MessageResponse(message=f"Plugin '{name}' start requested")

    @router.post("/{name}/stop", response_model=MessageResponse)
    async def stop_plugin(name: str) -> MessageResponse:
        """Stop a specific plugin."""
        try:
            host.stop_plugin(name)
        except PluginNotFoundError as e:
            _raise_not_found(name, e)

        return MessageResponse(message=f"Plugin '{name}' stop requested")

    @router.post("/{name}/restart", response_model=MessageResponse)
    async def restart_plugin(name: str) -> MessageResponse:
        """Restart a specific plugin."""
        try:
            host.restart_plugin(name)
        except PluginNotFoundError as e:
            _raise_not_found(name, e)

        return MessageResponse(message=f"Plugin '{name}' restart requested")

    @router.post("/{name}/invoke", response_model=MessageResponse)
    async def invoke_plugin(name: str, request: InvokeRequest) -> MessageResponse:
        """Invoke a specific plugin with arguments."""
        try:
            host.invoke_plugin(name, request.args)
        except PluginNotFoundError as e:
            _raise_not_found(name, e)

        return MessageResponse(message=f"Plugin '{name}' invoke requested")

    return router


def create_control_app(host: PluginHost) -> FastAPI:
    """Create a FastAPI application exposing the control router.

    Args:
        host: The PluginHost instance to control.

    Returns:
        A FastAPI app with the plugin control routes mounted.
    """
    app = FastAPI(title="plugbar control", docs_url=None, redoc_url=None)
    app.include_router(create_control_router(host))
    return app
