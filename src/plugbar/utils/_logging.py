"""Standalone structlog loggers for plugbar.

Loggers built here are wrapped around their own output (a stream, a log
file, or a size-rotated log file) with ``structlog.wrap_logger`` and never
touch structlog's global configuration, so several hosts or tests can log
to different places in one process.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from os import getenv
from pathlib import Path
from typing import Literal, TextIO, cast

import structlog
from structlog.typing import FilteringBoundLogger, Processor

LogFormatType = Literal["json", "text"]

_DEBUG_ENV = "PLUGBAR_DEBUG"
_LEVEL_ENV = "PLUGBAR_LOG_LEVEL"


def _level_number(name: str) -> int:
    return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)


def _get_log_level() -> int:
    """Resolve the level from PLUGBAR_DEBUG, then PLUGBAR_LOG_LEVEL, then INFO."""
    if getenv(_DEBUG_ENV):
        return logging.DEBUG
    return _level_number(getenv(_LEVEL_ENV, "info"))


def _log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Convert a level name to its number; unknown names mean INFO.

    With ``respect_env``, a set PLUGBAR_DEBUG forces DEBUG regardless.
    """
    if respect_env and getenv(_DEBUG_ENV):
        return logging.DEBUG
    return _level_number(level)


def _build_processors(log_format: LogFormatType) -> list[Processor]:
    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if log_format == "json":
        processors += [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    return processors


def _file_logger(
    path: Path, level: int, max_bytes: int | None, backup_count: int | None
) -> logging.Logger:
    """Return the private stdlib logger that appends to ``path``.

    One logger exists per resolved path. Creating it again replaces and
    closes the previous handler, so repeated calls never leak open files.
    Rotation is used when both ``max_bytes`` and ``backup_count`` are set.
    """
    resolved = path.resolve()
    target = logging.getLogger(f"plugbar.file:{resolved}")
    for old in list(target.handlers):
        target.removeHandler(old)
        old.close()
    target.propagate = False
    target.setLevel(level)

    handler: logging.Handler
    if max_bytes is not None and backup_count is not None:
        handler = RotatingFileHandler(
            resolved, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    else:
        handler = logging.FileHandler(resolved, encoding="utf-8")
    handler.setLevel(level)
    # Messages arrive fully rendered
    handler.setFormatter(logging.Formatter("%(message)s"))
    target.addHandler(handler)
    return target


def _create_logger(
    *,
    log_file_path: str | None = None,
    stream: TextIO | None = None,
    log_level: int | None = None,
    log_format: LogFormatType = "text",
    max_bytes: int | None = None,
    backup_count: int | None = None,
) -> FilteringBoundLogger:
    level = log_level if log_level is not None else _get_log_level()

    sink: object
    if not log_file_path:
        sink = structlog.PrintLoggerFactory(file=stream or sys.stderr)()
    else:
        path = Path(log_file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        sink = _file_logger(path, level, max_bytes, backup_count)

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            sink,
            processors=_build_processors(log_format),
            wrapper_class=structlog.make_filtering_bound_logger(level),
            context_class=dict,
        ),
    )


def create_logger(
    level: str | None = None,
    *,
    log_format: LogFormatType = "text",
    log_file: str = "",
    stream: TextIO | None = None,
    max_bytes: int | None = None,
    backup_count: int | None = None,
) -> FilteringBoundLogger:
    """Create the logger shared by the CLI, the host and its plugins.

    Level precedence: PLUGBAR_DEBUG, then ``level``, then PLUGBAR_LOG_LEVEL,
    then INFO.

    Args:
        level: Level name (debug, info, warning, error).
        log_format: "json" for one object per line, "text" for key=value.
        log_file: Append to this file instead of ``stream`` when set.
        stream: Where to write without a log file (default stderr).
        max_bytes: Rotate the log file past this size. Needs backup_count.
        backup_count: Rotated files to keep. Needs max_bytes.

    Returns:
        A level-filtering bound logger.
    """
    return _create_logger(
        log_file_path=log_file or None,
        stream=stream,
        log_level=(
            _log_level_from_string(level, respect_env=True)
            if level is not None
            else None
        ),
        log_format=log_format,
        max_bytes=max_bytes,
        backup_count=backup_count,
    )
