"""Console delegate for printing plugin output.

This module provides a PluginDelegate implementation that prints plugin
output to a terminal.
"""

from typing import final

from rich.console import Console
from rich.style import Style
from rich.text import Text


@final
class ConsoleDelegate:
    """Delegate that writes plugin lines to a console with a name prefix.

    Each line of the received text is printed as `[name] line`, so a whole
    interval run comes out one prefixed line at a time. Color coding:
    - stdout: Default styling
    - stderr: Dim red styling
    """

    __slots__ = ("__weakref__", "_console", "_name", "_stderr_style", "_stdout_style")

    def __init__(self, name: str, console: Console | None = None) -> None:
        """Initialize the delegate.

        Args:
            name: Plugin name shown in the prefix.
            console: Rich Console instance for output. If None, creates a new one.
        """
        self._name = name
        self._console = console or Console()
        self._stdout_style = Style()
        self._stderr_style = Style(color="red", dim=True)

    @property
    def name(self) -> str:
        """Return the plugin name shown in the prefix."""
        return self._name

    async def on_output_line(self, text: str) -> None:
        self._print(text, self._stdout_style)

    async def on_error_line(self, text: str) -> None:
        self._print(text, self._stderr_style)

    def _print(self, output: str, style: Style) -> None:
        for line in output.splitlines():
            text = Text()
            _ = text.append(f"[{self._name}]", style=Style(color="blue", bold=True))
            _ = text.append(" ")
            _ = text.append(line, style=style)
            self._console.print(text)
