# pyright: reportUnusedCallResult=false
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing
"""The command-line interface for plugbar."""

from functools import partial
from pathlib import Path
from typing import Annotated, Literal

import anyio
from cyclopts import App, Parameter
from rich.console import Console

from plugbar.config import (
    Config,
    discover_plugins,
    find_config_file,
    parse_duration,
    spec_from_path,
)
from plugbar.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
    PluginSpecError,
)
from plugbar.plugin import ConsoleDelegate, ExecutionModel, PluginHost, PluginSpec
from plugbar.utils import create_logger

from ._shared import ExitCode, exit_with_error, format_json, spec_records, spec_table

OutputFormat = Literal["table", "json"]


def _parse_env(pairs: list[str] | None) -> dict[str, str]:
    """Parse repeated ``KEY=VALUE`` options into a mapping."""
    env: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            msg = f"Invalid --env value {pair!r}, expected KEY=VALUE"
            raise ValueError(msg)
        env[key] = value
    return env


def _load_config(config_path: Path | None, error_console: Console) -> Config:
    """Load the explicit or discovered config file, or defaults."""
    path = config_path or find_config_file()
    if path is None:
        return Config()
    try:
        return Config.from_file(path)
    except FileNotFoundError:
        exit_with_error(
            f"Config file not found: {path}", ExitCode.NOT_FOUND, console=error_console
        )
    except ConfigValidationError as e:
        exit_with_error(str(e), ExitCode.VALIDATION_ERROR, console=error_console)
    except ConfigLoadError as e:
        exit_with_error(str(e), ExitCode.LOAD_ERROR, console=error_console)


def _resolve_specs(
    config: Config, plugin_dir: Path | None, error_console: Console
) -> list[PluginSpec]:
    """Combine configured plugins with plugins discovered in a directory."""
    try:
        specs = config.to_specs()
    except ConfigError as e:
        exit_with_error(str(e), ExitCode.VALIDATION_ERROR, console=error_console)

    if plugin_dir is not None:
        try:
            specs.extend(discover_plugins(plugin_dir))
        except FileNotFoundError as e:
            exit_with_error(str(e), ExitCode.NOT_FOUND, console=error_console)
    return specs


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Create the plugbar CLI application.

    Args:
        console: Console for plugin output and listings.
        error_console: Console for error messages.
        exit_on_error: Whether cyclopts exits on parse errors.

    Returns:
        The configured cyclopts App.
    """
    out = console if console is not None else Console()
    err = error_console if error_console is not None else Console(stderr=True)
    app = App(
        name="plugbar",
        help="Drive a text surface from the output of plugin executables.",
        help_on_error=True,
        console=out,
        error_console=err,
        exit_on_error=exit_on_error,
    )

    @app.command(name="run")
    def run(  # pyright: ignore[reportUnusedFunction]
        path: Path,
        *args: str,
        interval: Annotated[
            str | None,
            Parameter(help="Re-run every INTERVAL (e.g. 10s, 5m). Implies interval."),
        ] = None,
        env: Annotated[
            list[str] | None,
            Parameter(name="--env", help="Extra environment variable KEY=VALUE."),
        ] = None,
        name: Annotated[str | None, Parameter(help="Display name.")] = None,
        log_level: Annotated[str, Parameter(help="Log level.")] = "info",
    ) -> None:
        """Run one plugin in the foreground until interrupted.

        Without --interval, the execution model is inferred from the file
        name: ``cpu.10s.sh`` runs every ten seconds, ``feed.sh`` streams.
        Put plugin arguments that start with a hyphen after ``--``.

        Args:
            path: The plugin executable.
            args: Arguments passed to the plugin.
        """
        try:
            inferred = spec_from_path(path)
            if interval is not None:
                delay = parse_duration(interval)
                model = ExecutionModel.INTERVAL
            else:
                delay = inferred.interval
                model = inferred.model
            spec = PluginSpec(
                path=path,
                args=tuple(args),
                env=_parse_env(env),
                model=model,
                interval=delay,
                name=name or inferred.name,
            )
        except (PluginSpecError, ValueError) as e:
            exit_with_error(str(e), ExitCode.VALIDATION_ERROR, console=err)

        if not path.exists():
            exit_with_error(
                f"Plugin not found: {path}", ExitCode.NOT_FOUND, console=err
            )

        delegate = ConsoleDelegate(spec.display_name, console=out)
        host = PluginHost(
            [spec], lambda _: delegate, logger=create_logger(log_level)
        )
        anyio.run(host.run)

    @app.command(name="serve")
    def serve(  # pyright: ignore[reportUnusedFunction]
        *,
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to config file.")
        ] = None,
        plugin_dir: Annotated[
            Path | None, Parameter(name="--dir", help="Directory of plugins.")
        ] = None,
        control_port: Annotated[
            int | None, Parameter(help="Port for the control API.")
        ] = None,
        no_control: Annotated[
            bool, Parameter(help="Disable the control API.")
        ] = False,
    ) -> None:
        """Run every configured plugin with an HTTP control API."""
        from ._runner import run_serve  # noqa: PLC0415

        loaded = _load_config(config, err)
        specs = _resolve_specs(loaded, plugin_dir, err)
        if not specs:
            exit_with_error(
                "No plugins configured. Use --config or --dir.",
                ExitCode.NOT_FOUND,
                console=err,
            )

        logger = create_logger(
            loaded.logging.level.value,
            log_format=loaded.logging.format.value,  # type: ignore[arg-type]
            log_file=loaded.logging.file,
        )
        try:
            host = PluginHost(
                specs,
                lambda spec: ConsoleDelegate(spec.display_name, console=out),
                logger=logger,
            )
        except PluginSpecError as e:
            exit_with_error(str(e), ExitCode.VALIDATION_ERROR, console=err)

        control = loaded.control
        if control_port is not None:
            control = control.model_copy(update={"port": control_port})

        if no_control or not control.enabled:
            anyio.run(host.run)
        else:
            out.print(
                f"Control API on http://{control.host}:{control.port}/plugins",
                highlight=False,
            )
            anyio.run(partial(run_serve, host, control))

    @app.command(name="list")
    def list_plugins(  # pyright: ignore[reportUnusedFunction]
        *,
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to config file.")
        ] = None,
        plugin_dir: Annotated[
            Path | None, Parameter(name="--dir", help="Directory of plugins.")
        ] = None,
        output_format: Annotated[
            OutputFormat, Parameter(name="--format", help="Output format.")
        ] = "table",
    ) -> None:
        """List the plugins that serve would run."""
        loaded = _load_config(config, err)
        specs = _resolve_specs(loaded, plugin_dir, err)

        if output_format == "json":
            out.print(format_json(spec_records(specs)), highlight=False, markup=False)
        else:
            out.print(spec_table(specs))

    return app


app = create_app()


def main() -> None:
    """Default entrypoint for the `plugbar` CLI."""
    app = create_app()
    app()


if __name__ == "__main__":
    main()
