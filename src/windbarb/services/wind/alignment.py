from __future__ import annotations

import logging
from bisect import bisect_left
from datetime import datetime, timedelta
from math import isfinite

from pydantic import ValidationError

from windbarb.models import RawHistoryPoint, WindObservation
from windbarb.services.wind.constants import ALIGNMENT_TOLERANCE_MS

logger = logging.getLogger(__name__)


def parse_state(state: str | None) -> float | None:
    """Numeric value of a sensor state, ``None`` for ``unknown``/``unavailable``/garbage."""
    if state is None:
        return None
    try:
        value = float(str(state).strip())
    except ValueError:
        return None
    return value if isfinite(value) else None


def group_history_by_entity(history: list[list[RawHistoryPoint]]) -> dict[str, list[RawHistoryPoint]]:
    """Index per-entity history arrays by the entity id of their first point."""
    grouped: dict[str, list[RawHistoryPoint]] = {}
    for points in history:
        if not points:
            continue
        entity_id = points[0].entity_id
        if entity_id in grouped:
            continue
        grouped[entity_id] = sorted(points, key=lambda point: point.last_updated)
    return grouped


class _Timeline:
    """Sorted history points of one entity with a bisectable timestamp index."""

    def __init__(self, points: list[RawHistoryPoint]) -> None:
        self.points = points
        self.timestamps = [point.last_updated for point in points]

    def closest(self, target: datetime, tolerance_ms: float) -> RawHistoryPoint | None:
        return find_closest_point(self.points, target, tolerance_ms, self.timestamps)


def find_closest_point(
    points: list[RawHistoryPoint],
    target: datetime,
    tolerance_ms: float = ALIGNMENT_TOLERANCE_MS,
    timestamps: list[datetime] | None = None,
) -> RawHistoryPoint | None:
    """Nearest point to ``target`` strictly within ``tolerance_ms``, or ``None``.

    ``points`` must be ascending by ``last_updated``; pass their ``timestamps`` to
    skip rebuilding the bisect index on repeated lookups.
    """
    if not points:
        return None
    if timestamps is None:
        timestamps = [point.last_updated for point in points]
    index = bisect_left(timestamps, target)
    best: RawHistoryPoint | None = None
    best_diff = timedelta(milliseconds=tolerance_ms)
    # Earlier neighbour first so that equidistant matches keep the older point.
    for candidate in (index - 1, index):
        if candidate < 0 or candidate >= len(points):
            continue
        diff = abs(timestamps[candidate] - target)
        if diff < best_diff:
            best_diff = diff
            best = points[candidate]
    return best


def align_history(
    history: list[list[RawHistoryPoint]],
    direction_entity: str,
    speed_entity: str,
    gust_entity: str | None = None,
    tolerance_ms: float = ALIGNMENT_TOLERANCE_MS,
) -> list[WindObservation]:
    """Join speed, direction and gust histories into observations on the speed timeline.

    Every parseable speed point looks up its nearest direction point within
    ``tolerance_ms``; without one (or with an unparseable one) the sample is dropped.
    Gust is attached the same way but is optional.
    """
    if not history:
        return []

    grouped = group_history_by_entity(history)
    speed_points = grouped.get(speed_entity, [])
    directions = _Timeline(grouped.get(direction_entity, []))
    gusts = _Timeline(grouped.get(gust_entity, [])) if gust_entity else None

    observations: list[WindObservation] = []
    dropped = 0
    for speed_point in speed_points:
        speed = parse_state(speed_point.state)
        if speed is None or speed < 0:
            continue

        direction_point = directions.closest(speed_point.last_updated, tolerance_ms)
        direction = parse_state(direction_point.state) if direction_point is not None else None
        if direction is None:
            dropped += 1
            continue

        gust = None
        if gusts is not None:
            gust_point = gusts.closest(speed_point.last_updated, tolerance_ms)
            if gust_point is not None:
                gust = parse_state(gust_point.state)
                if gust is not None and gust < 0:
                    gust = None

        try:
            observations.append(
                WindObservation(
                    timestamp=speed_point.last_updated,
                    direction_deg=direction,
                    speed_mps=speed,
                    gust_mps=gust,
                    is_forecast=False,
                )
            )
        except ValidationError as exc:
            logger.debug("Skipping unalignable point at %s: %s", speed_point.last_updated.isoformat(), exc)

    logger.debug(
        "Aligned %d observations from %d speed / %d direction / %d gust points (%d without direction partner)",
        len(observations),
        len(speed_points),
        len(directions.points),
        len(gusts.points) if gusts is not None else 0,
        dropped,
    )
    observations.sort(key=lambda observation: observation.timestamp)
    return observations
