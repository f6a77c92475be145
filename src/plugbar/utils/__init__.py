"""Shared utilities for plugbar."""

from ._logging import LogFormatType, create_logger

__all__ = ["LogFormatType", "create_logger"]
