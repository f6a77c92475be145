"""Plugin discovery from a directory of executables.

Plugin files follow the menu-bar naming convention
``<name>.<interval>.<ext>``: ``cpu.10s.sh`` is an interval plugin re-run
every ten seconds, while a file without an interval segment such as
``feed.sh`` is a stream plugin.
"""

import os
from pathlib import Path

from plugbar.plugin import ExecutionModel, PluginSpec

from ._duration import is_duration, parse_duration


def spec_from_path(path: Path) -> PluginSpec:
    """Build a plugin spec from a plugin file name.

    Args:
        path: The plugin executable.

    Returns:
        An interval spec if the file name carries an interval segment,
        otherwise a stream spec. The name is the first dotted segment.
    """
    parts = path.name.split(".")
    name = parts[0] or path.name

    for segment in parts[1:]:
        if is_duration(segment):
            return PluginSpec(
                path=path,
                model=ExecutionModel.INTERVAL,
                interval=parse_duration(segment),
                name=name,
            )

    return PluginSpec(path=path, model=ExecutionModel.STREAM, name=name)


def _is_plugin_file(path: Path) -> bool:
    return (
        not path.name.startswith(".")
        and path.is_file()
        and os.access(path, os.X_OK)
    )


def discover_plugins(directory: Path) -> list[PluginSpec]:
    """Find every executable plugin file in a directory.

    Hidden files and files without the executable bit are skipped.

    Args:
        directory: The plugin directory.

    Returns:
        Specs for the discovered plugins, sorted by file name.

    Raises:
        FileNotFoundError: If the directory does not exist.
    """
    if not directory.is_dir():
        msg = f"Plugin directory not found: {directory}"
        raise FileNotFoundError(msg)

    return [
        spec_from_path(path)
        for path in sorted(directory.iterdir())
        if _is_plugin_file(path)
    ]
