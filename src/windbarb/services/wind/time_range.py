from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime, timedelta

from windbarb.core.exceptions import ConfigError, InvalidDuration, InvalidRange, InvalidTimestamp
from windbarb.models import RangeConfig, TimeInterval, ViewportBudgets, ViewportCategory
from windbarb.services.wind.constants import MAX_SAMPLE_TIMES, MOBILE_MAX_WIDTH_PX, TABLET_MAX_WIDTH_PX, UTC
from windbarb.utils.durations import parse_duration

logger = logging.getLogger(__name__)

_DEFAULT_BUDGETS = ViewportBudgets()


def parse_timestamp(raw: str) -> datetime:
    normalized = str(raw).strip().replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise InvalidTimestamp(f"Invalid timestamp: {raw!r}") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def resolve_instant(raw: str, anchor: datetime, reference: datetime) -> datetime:
    """Resolve ``now``, ``-<duration>`` (relative to ``anchor``) or an absolute timestamp."""
    value = str(raw).strip()
    if value == "now":
        return reference
    if value.startswith("-"):
        return anchor - timedelta(milliseconds=parse_duration(value[1:]))
    return parse_timestamp(value)


def resolve_time_range(start: str, end: str, reference: datetime | None = None) -> TimeInterval:
    """Resolve declarative range bounds into a concrete interval.

    ``end`` is resolved first against ``reference`` (wall-clock UTC when omitted);
    a relative ``start`` is then anchored on the resolved end.
    """
    now = reference or datetime.now(UTC)
    end_at = resolve_instant(end, now, now)
    start_at = resolve_instant(start, end_at, now)
    if start_at >= end_at:
        raise InvalidRange(
            f"Start time ({start_at.isoformat()}) must be before end time ({end_at.isoformat()})"
        )
    return TimeInterval(start=start_at, end=end_at)


def viewport_category(width: float) -> ViewportCategory:
    if width < MOBILE_MAX_WIDTH_PX:
        return ViewportCategory.MOBILE
    if width < TABLET_MAX_WIDTH_PX:
        return ViewportCategory.TABLET
    return ViewportCategory.DESKTOP


def point_budget(category: ViewportCategory, budgets: ViewportBudgets | None) -> int:
    configured = getattr(budgets, category.value, None) if budgets is not None else None
    return configured or getattr(_DEFAULT_BUDGETS, category.value)


def calculate_interval(interval: TimeInterval, config: RangeConfig, viewport_width: float) -> float:
    """Sampling step in milliseconds for ``interval`` rendered at ``viewport_width`` pixels."""
    if config.interval and config.interval != "auto":
        return float(parse_duration(config.interval))

    category = viewport_category(viewport_width)
    budget = point_budget(category, config.screen_multiplier)
    step = interval.duration_ms / budget

    if config.min_interval:
        step = max(step, float(parse_duration(config.min_interval)))
    if config.max_interval:
        step = min(step, float(parse_duration(config.max_interval)))

    logger.debug(
        "Auto interval for %s viewport (%spx, budget=%s): %.0fms over %.0fms",
        category.value,
        viewport_width,
        budget,
        step,
        interval.duration_ms,
    )
    return step


def first_hour_boundary(start: datetime) -> datetime:
    boundary = start.replace(minute=0, second=0, microsecond=0)
    if boundary < start:
        boundary += timedelta(hours=1)
    return boundary


@dataclass(frozen=True)
class SampleTimeSequence:
    """Sample instants anchored on the first hour boundary at or after ``interval.start``.

    Iterating yields ``boundary, boundary + step, ...`` up to and including
    ``interval.end``. Each iteration starts over, so the sequence can be consumed
    any number of times.
    """

    interval: TimeInterval
    interval_ms: float

    def __post_init__(self) -> None:
        if self.interval_ms <= 0:
            raise InvalidDuration(f"Sampling interval must be positive, got {self.interval_ms}ms")
        if len(self) > MAX_SAMPLE_TIMES:
            raise ConfigError(
                f"Sampling interval of {self.interval_ms:g}ms yields more than {MAX_SAMPLE_TIMES} sample times; "
                "use a coarser interval or a shorter range"
            )

    def __iter__(self) -> Iterator[datetime]:
        first = first_hour_boundary(self.interval.start)
        step = timedelta(milliseconds=self.interval_ms)
        index = 0
        current = first
        while current <= self.interval.end:
            yield current
            index += 1
            current = first + step * index

    def __len__(self) -> int:
        first = first_hour_boundary(self.interval.start)
        if first > self.interval.end:
            return 0
        return (self.interval.end - first) // timedelta(milliseconds=self.interval_ms) + 1
