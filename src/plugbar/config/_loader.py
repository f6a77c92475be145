# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""TOML configuration file loading."""

import os
import tomllib
from pathlib import Path
from typing import Any

from plugbar.exceptions import ConfigLoadError

CONFIG_FILE_NAME = "plugbar.toml"


def read_toml_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Read and parse a TOML file.

    Args:
        path: Path to the TOML file.

    Returns:
        Parsed TOML content as dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be parsed.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file: {e}"
        raise ConfigLoadError(
            msg,
            path=path,
            line=getattr(e, "lineno", None),
            column=getattr(e, "colno", None),
        ) from e


def find_config_file(start: Path | None = None) -> Path | None:
    """Locate the configuration file.

    Checks, in order, the PLUGBAR_CONFIG environment variable, then
    ``plugbar.toml`` in ``start`` (default: the working directory).

    Returns:
        The config file path, or None if no file was found.
    """
    explicit = os.environ.get("PLUGBAR_CONFIG")
    if explicit:
        return Path(explicit)

    candidate = (start or Path.cwd()) / CONFIG_FILE_NAME
    return candidate if candidate.is_file() else None
