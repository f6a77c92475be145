"""Shared test fixtures for plugbar tests."""

import io
from pathlib import Path

import pytest
from rich.console import Console

from tests.support import MakeScript, RecordingDelegate, write_script


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def delegate() -> RecordingDelegate:
    return RecordingDelegate()


@pytest.fixture
def make_script(tmp_path: Path) -> MakeScript:
    """Return a function that writes executable shell scripts into tmp_path."""

    def _make(name: str, body: str) -> Path:
        return write_script(tmp_path / name, body)

    return _make


@pytest.fixture
def console() -> Console:
    """Console that records output in memory without styling."""
    return Console(file=io.StringIO(), width=200, no_color=True, highlight=False)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("PLUGBAR_CONFIG", "PLUGBAR_DEBUG", "PLUGBAR_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
