"""Duration parsing utilities."""

import re
from datetime import timedelta

from readthrough.types import Duration

_DURATION_PATTERN = re.compile(r"^(\d+)(ms|s|m|h|d)$")
_UNITS: dict[str, float] = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 3_600,
    "d": 86_400,
}


def parse_duration(duration: Duration) -> float:
    """Parse a duration to seconds.

    Accepts plain seconds (int or float), a ``timedelta``, or a string such
    as ``"500ms"``, ``"30s"``, ``"10m"``, ``"2h"`` or ``"1d"``.
    """
    if isinstance(duration, timedelta):
        seconds = duration.total_seconds()
    elif isinstance(duration, bool):
        raise ValueError(f"Invalid duration: {duration!r}")
    elif isinstance(duration, (int, float)):
        seconds = float(duration)
    else:
        match = _DURATION_PATTERN.match(duration)
        if not match:
            raise ValueError(f"Invalid duration: {duration!r}")
        value, unit = match.groups()
        seconds = int(value) * _UNITS[unit]

    if seconds < 0:
        raise ValueError(f"Invalid duration: {duration!r}")
    return seconds
