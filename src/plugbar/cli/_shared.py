"""Helpers shared by the plugbar commands: exit codes, listings, errors."""

from collections.abc import Sequence
from enum import IntEnum
from typing import Never

import orjson
from rich.console import Console
from rich.table import Table

from plugbar.plugin import PluginSpec

__all__ = [
    "ExitCode",
    "exit_with_error",
    "format_json",
    "format_table",
    "spec_records",
    "spec_table",
]

SPEC_COLUMNS = ("Name", "Model", "Interval", "Path", "Args")


class ExitCode(IntEnum):
    """Process exit statuses of the plugbar CLI."""

    SUCCESS = 0
    LOAD_ERROR = 1
    VALIDATION_ERROR = 2
    NOT_FOUND = 3
    INTERNAL_ERROR = 5


def format_json(data: object) -> str:
    """Render ``data`` as indented JSON text."""
    return orjson.dumps(data, option=orjson.OPT_INDENT_2).decode()


def format_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> Table:
    """Build a rich Table from header names and string cells."""
    table = Table(*headers)
    for row in rows:
        table.add_row(*row)
    return table


def spec_records(specs: Sequence[PluginSpec]) -> list[dict[str, object]]:
    """Describe plugin specs as JSON-ready dictionaries."""
    return [
        {
            "name": spec.display_name,
            "path": str(spec.path),
            "model": spec.model.value,
            "interval": spec.interval,
            "args": list(spec.args),
        }
        for spec in specs
    ]


def spec_table(specs: Sequence[PluginSpec]) -> Table:
    """Describe plugin specs as a table, one row per plugin."""
    rows = [
        [
            spec.display_name,
            spec.model.value,
            f"{spec.interval:g}s" if spec.interval is not None else "-",
            str(spec.path),
            " ".join(spec.args),
        ]
        for spec in specs
    ]
    return format_table(SPEC_COLUMNS, rows)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.INTERNAL_ERROR,
    *,
    console: Console | None = None,
) -> Never:
    """Report ``message`` on the error console and exit with ``code``.

    Raises:
        SystemExit: Always.
    """
    err = console if console is not None else Console(stderr=True)
    err.print(f"[red]Error:[/red] {message}", highlight=False)
    raise SystemExit(code)
