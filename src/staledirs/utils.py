"""Shared utility functions."""

from __future__ import annotations

import logging
import numbers
import os
from datetime import timedelta
from pathlib import Path

import humanfriendly
from humanfriendly.text import tokenize

log = logging.getLogger(__name__)

# humanfriendly knows no months and reads "M" as minutes; 30.44 days.
_MONTH_SECONDS = 2_630_016
_MONTH_UNITS = ("mo", "month", "months")


def xdg_config_home() -> Path:
    """Return XDG_CONFIG_HOME, defaulting to ~/.config."""
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


def bytes_to_human(size_bytes: int) -> str:
    """Convert byte count to a human-readable string."""
    if size_bytes < 0:
        return f"-{bytes_to_human(-size_bytes)}"
    if size_bytes == 0:
        return "0 B"

    units = ("B", "KiB", "MiB", "GiB", "TiB", "PiB")
    value = float(size_bytes)
    for unit in units[:-1]:
        if abs(value) < 1024:
            return f"{value:.1f} {unit}" if unit != "B" else f"{int(value)} B"
        value /= 1024
    return f"{value:.1f} {units[-1]}"


def parse_size(text: str) -> int:
    """Parse a byte size such as ``0B``, ``512``, ``10KB`` or ``1.5GiB``.

    Decimal suffixes (KB, MB, ...) are powers of 1000, binary suffixes
    (KiB, MiB, ...) powers of 1024.

    Raises:
        ValueError: If the text is not a size.
    """
    try:
        return humanfriendly.parse_size(text)
    except humanfriendly.InvalidSize as e:
        raise ValueError(f"invalid size: {text!r}") from e


def _duration_seconds(value: float, unit: str, text: str) -> float:
    if unit == "M" or unit.lower() in _MONTH_UNITS:
        return value * _MONTH_SECONDS
    try:
        return humanfriendly.parse_timespan(f"{value} {unit}")
    except humanfriendly.InvalidTimespan as e:
        raise ValueError(f"invalid duration: {text!r}") from e


def parse_duration(text: str) -> timedelta:
    """Parse a human duration such as ``90d``, ``6months`` or ``2weeks 3days``.

    Every number needs a unit.  ``m`` is minutes and ``M`` is months.

    Raises:
        ValueError: If the text is empty or contains an unknown unit.
    """
    tokens = tokenize(text)
    if not tokens or len(tokens) % 2:
        raise ValueError(f"invalid duration: {text!r}")
    seconds = 0.0
    for value, unit in zip(tokens[::2], tokens[1::2]):
        if not isinstance(value, numbers.Number) or not isinstance(unit, str):
            raise ValueError(f"invalid duration: {text!r}")
        seconds += _duration_seconds(value, unit, text)
    return timedelta(seconds=seconds)


def format_elapsed(seconds: float) -> str:
    """Format an elapsed time as a human-readable string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f} ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds) // 60
    secs = seconds - minutes * 60
    return f"{minutes}m {secs:.0f}s"
