from __future__ import annotations

from math import atan2, cos, degrees, hypot, radians, sin
from statistics import fmean, median_high

_DEGENERATE_RESULTANT = 1e-9


def mean_value(values: list[float | None]) -> float | None:
    real = [v for v in values if v is not None]
    return fmean(real) if real else None


def median_value(values: list[float | None]) -> float | None:
    """Upper median: for an even count the larger of the two middle values."""
    real = [v for v in values if v is not None]
    return median_high(real) if real else None


def circular_mean(directions: list[float | None]) -> float | None:
    """Mean of compass angles in degrees, via the mean unit vector.

    Returns a value in ``[0, 360)``. Opposing angles that cancel out (a resultant of
    length ~0, e.g. ``[0, 90, 180, 270]``) have no defined mean and yield ``0.0``.
    """
    angles = [a for a in directions if a is not None]
    if not angles:
        return None
    x = fmean(cos(radians(a)) for a in angles)
    y = fmean(sin(radians(a)) for a in angles)
    if hypot(x, y) < _DEGENERATE_RESULTANT:
        return 0.0
    return round(degrees(atan2(y, x)) % 360.0, 6) % 360.0
