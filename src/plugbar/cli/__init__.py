"""The plugbar command-line interface."""

from ._app import app, create_app, main
from ._shared import ExitCode

__all__ = ["ExitCode", "app", "create_app", "main"]
