from __future__ import annotations

import re

from windbarb.core.exceptions import InvalidDuration

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

_DURATION_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)([a-z]+)$")
_UNIT_MS = {
    "min": MINUTE_MS,
    "h": HOUR_MS,
    "d": DAY_MS,
}


def parse_duration(token: str) -> int:
    """Parse a compact duration token such as ``10min``, ``4h`` or ``2d`` into milliseconds."""
    raw = str(token).strip() if token is not None else ""
    match = _DURATION_PATTERN.match(raw)
    if not match:
        raise InvalidDuration(f"Invalid duration format: {token!r} (expected <number>(min|h|d))")

    value = float(match.group(1))
    unit = match.group(2)
    factor = _UNIT_MS.get(unit)
    if factor is None:
        raise InvalidDuration(f"Unknown duration unit: {unit!r} in {token!r}")

    milliseconds = int(round(value * factor))
    if milliseconds <= 0:
        raise InvalidDuration(f"Duration must be positive: {token!r}")
    return milliseconds


def format_duration(milliseconds: float) -> str:
    if milliseconds % DAY_MS == 0:
        return f"{int(milliseconds // DAY_MS)}d"
    if milliseconds % HOUR_MS == 0:
        return f"{int(milliseconds // HOUR_MS)}h"
    return f"{round(milliseconds / MINUTE_MS, 3):g}min"
