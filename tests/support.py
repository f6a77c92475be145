"""Helpers shared by the plugbar test suites."""

import stat
from collections.abc import Callable
from pathlib import Path

import anyio


class RecordingDelegate:
    """Delegate that records every line it receives.

    ``on_line`` is called after each stdout line is recorded, which lets
    tests issue commands from inside a delivery callback.
    """

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.errors: list[str] = []
        self.on_line: Callable[[str], None] | None = None

    async def on_output_line(self, text: str) -> None:
        self.lines.append(text)
        if self.on_line is not None:
            self.on_line(text)

    async def on_error_line(self, text: str) -> None:
        self.errors.append(text)


def write_script(path: Path, body: str) -> Path:
    """Write an executable shell script and return its path."""
    path.write_text(f"#!/bin/sh\n{body}\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


async def eventually(
    predicate: Callable[[], bool], timeout: float = 5.0, step: float = 0.02
) -> None:
    """Poll ``predicate`` until it holds, failing after ``timeout`` seconds."""
    with anyio.fail_after(timeout):
        while not predicate():
            await anyio.sleep(step)


MakeScript = Callable[[str, str], Path]
