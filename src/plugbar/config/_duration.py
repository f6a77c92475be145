"""Parsing of human-readable durations such as ``10s`` or ``5m``."""

import re

_DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h|d)?\s*$")

_UNIT_SECONDS: dict[str, float] = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
    "d": 86400.0,
}


def parse_duration(value: str | float) -> float:
    """Convert a duration to a positive number of seconds.

    Accepts a number of seconds or a string made of a number and an optional
    unit (``ms``, ``s``, ``m``, ``h``, ``d``). A bare number means seconds.

    Args:
        value: The duration to parse.

    Returns:
        The duration in seconds.

    Raises:
        ValueError: If the value is malformed or not positive.

    Example:
        >>> parse_duration("10s")
        10.0
        >>> parse_duration("1.5m")
        90.0
    """
    if isinstance(value, bool):
        msg = f"Invalid duration: {value!r}"
        raise ValueError(msg)

    if isinstance(value, int | float):
        seconds = float(value)
    else:
        match = _DURATION_PATTERN.match(value)
        if match is None:
            msg = f"Invalid duration: {value!r}"
            raise ValueError(msg)
        number, unit = match.groups()
        seconds = float(number) * _UNIT_SECONDS[unit or "s"]

    if seconds <= 0:
        msg = f"Duration must be positive: {value!r}"
        raise ValueError(msg)
    return seconds


def is_duration(value: str) -> bool:
    """Return True if ``value`` is a duration with an explicit unit.

    Used to recognise the interval segment of plugin file names like
    ``cpu.10s.sh``, where a bare number is not treated as a duration.
    """
    match = _DURATION_PATTERN.match(value)
    if match is None or match.group(2) is None:
        return False
    return float(match.group(1)) > 0
