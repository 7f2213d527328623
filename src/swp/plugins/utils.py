"""Size parsing and formatting helpers."""

from __future__ import annotations

import re

from .errors import ConfigurationError

_SIZE_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)\s*([KMGT]?B?)$")
_UNIT_MULTIPLIERS = {
    "": 1,
    "B": 1,
    "K": 1024,
    "KB": 1024,
    "M": 1024**2,
    "MB": 1024**2,
    "G": 1024**3,
    "GB": 1024**3,
    "T": 1024**4,
    "TB": 1024**4,
}
_UNITS = ("B", "KB", "MB", "GB", "TB")
_THRESHOLD = 1024.0


def parse_size_string(size_str: str) -> int:
    """Parse a human-readable size such as ``"100MB"``, ``"1.5 GB"`` or ``"500k"``.

    Args:
        size_str: Size expression; units are case-insensitive and 1024-based.

    Returns:
        int: Size in bytes, truncated toward zero.

    Raises:
        ConfigurationError: If the expression does not match the size grammar.
    """
    match = _SIZE_PATTERN.match(size_str.strip().upper())
    if match is None:
        raise ConfigurationError(f"Invalid size format: {size_str}")

    number = float(match.group(1))
    unit = match.group(2)
    multiplier = _UNIT_MULTIPLIERS.get(unit)
    if multiplier is None:
        raise ConfigurationError(f"Unknown unit: {unit}")
    return int(number * multiplier)


def format_size(size: int) -> str:
    """Format a byte count using the largest fitting binary unit.

    Values of 100 or more in the chosen unit have no decimals, values of 10 or
    more have one, anything smaller has two.
    """
    value = float(size)
    unit_index = 0
    while value >= _THRESHOLD and unit_index < len(_UNITS) - 1:
        value /= _THRESHOLD
        unit_index += 1

    unit = _UNITS[unit_index]
    if unit_index == 0:
        return f"{size} {unit}"
    if value >= 100.0:
        return f"{value:.0f} {unit}"
    if value >= 10.0:
        return f"{value:.1f} {unit}"
    return f"{value:.2f} {unit}"


__all__ = ["parse_size_string", "format_size"]
