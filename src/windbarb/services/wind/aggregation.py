from __future__ import annotations

from datetime import datetime, timedelta
from math import ceil, floor

from windbarb.core.exceptions import ConfigError
from windbarb.models import WindObservation
from windbarb.services.wind.constants import LEGACY_HOURS_PER_BIN, MAX_LEGACY_BINS, UTC
from windbarb.services.wind.math_utils import circular_mean, mean_value


def legacy_bin_count(hours: float) -> int:
    return min(MAX_LEGACY_BINS, ceil(hours / LEGACY_HOURS_PER_BIN))


def aggregate_bins(
    observations: list[WindObservation],
    hours: float,
    reference: datetime | None = None,
) -> list[WindObservation]:
    """Average observations of the last ``hours`` into at most 12 equal bins.

    Each populated bin is stamped at its midpoint; empty bins are omitted.
    """
    if hours <= 0:
        raise ConfigError(f"Hours must be positive, got {hours}")
    if not observations:
        return []

    now = reference or datetime.now(UTC)
    bin_count = legacy_bin_count(hours)
    span_seconds = hours * 3600.0
    bin_seconds = span_seconds / bin_count
    window_start = now - timedelta(seconds=span_seconds)

    bins: list[list[WindObservation]] = [[] for _ in range(bin_count)]
    for observation in observations:
        index = floor((observation.timestamp - window_start).total_seconds() / bin_seconds)
        if 0 <= index < bin_count:
            bins[index].append(observation)

    aggregated: list[WindObservation] = []
    for index, items in enumerate(bins):
        if not items:
            continue
        aggregated.append(
            WindObservation(
                timestamp=window_start + timedelta(seconds=(index + 0.5) * bin_seconds),
                speed_mps=mean_value([item.speed_mps for item in items]),
                direction_deg=circular_mean([item.direction_deg for item in items]),
                gust_mps=mean_value([item.gust_mps for item in items]),
                is_forecast=False,
            )
        )
    return aggregated
