from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from bisect import bisect_left, bisect_right
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta

from windbarb.core.exceptions import ConfigError
from windbarb.models import RangeConfig, SamplingMode, TimeInterval, WindObservation
from windbarb.services.wind.constants import DEFAULT_MIN_POINTS, DEFAULT_WINDOW_MS
from windbarb.services.wind.math_utils import circular_mean, median_value
from windbarb.services.wind.time_range import SampleTimeSequence
from windbarb.utils.durations import parse_duration

logger = logging.getLogger(__name__)


def _nearest(observations: list[WindObservation], timestamps: list[datetime], target: datetime) -> WindObservation:
    """Nearest observation to ``target``; equidistant neighbours resolve to the earlier one."""
    index = bisect_left(timestamps, target)
    if index == 0:
        return observations[0]
    if index == len(observations):
        return observations[-1]
    before = target - timestamps[index - 1]
    after = timestamps[index] - target
    return observations[index] if after < before else observations[index - 1]


class SamplingStrategy(ABC):
    """Reduces aligned observations to at most one observation per sample time."""

    mode: SamplingMode

    @abstractmethod
    def sample(
        self,
        observations: list[WindObservation],
        sample_times: Iterable[datetime],
        config: RangeConfig | None = None,
    ) -> list[WindObservation]:
        raise NotImplementedError


_REGISTRY: dict[SamplingMode, type[SamplingStrategy]] = {}


def register_sampler(mode: SamplingMode) -> Callable[[type[SamplingStrategy]], type[SamplingStrategy]]:
    def decorator(cls: type[SamplingStrategy]) -> type[SamplingStrategy]:
        cls.mode = mode
        _REGISTRY[mode] = cls
        return cls

    return decorator


def sampler_for(mode: SamplingMode | str | None) -> SamplingStrategy:
    if mode is None:
        return SinglePointSampler()
    try:
        key = SamplingMode(mode)
    except ValueError as exc:
        raise ConfigError(f"Unknown sampling mode: {mode!r}") from exc
    strategy_cls = _REGISTRY.get(key)
    if strategy_cls is None:
        raise ConfigError(f"No sampler registered for mode: {key.value}")
    return strategy_cls()


@register_sampler(SamplingMode.SINGLE_POINT)
class SinglePointSampler(SamplingStrategy):
    """Picks the closest raw observation for every sample time, however far away it is."""

    def sample(
        self,
        observations: list[WindObservation],
        sample_times: Iterable[datetime],
        config: RangeConfig | None = None,
    ) -> list[WindObservation]:
        if not observations:
            return []
        ordered = sorted(observations, key=lambda item: item.timestamp)
        timestamps = [item.timestamp for item in ordered]
        return [_nearest(ordered, timestamps, sample_time).at(sample_time) for sample_time in sample_times]


@register_sampler(SamplingMode.WINDOWED_REPRESENTATIVE)
class WindowedRepresentativeSampler(SamplingStrategy):
    """Summarises the observations inside ``±window_size/2`` around each sample time.

    With at least ``min_points`` observations the sample carries the median speed,
    the circular-mean direction and the median of the gusts present. Sparser windows
    fall back to their nearest observation; empty windows leave a gap.
    """

    def sample(
        self,
        observations: list[WindObservation],
        sample_times: Iterable[datetime],
        config: RangeConfig | None = None,
    ) -> list[WindObservation]:
        window_ms = parse_duration(config.window_size) if config and config.window_size else DEFAULT_WINDOW_MS
        min_points = config.min_points if config and config.min_points else DEFAULT_MIN_POINTS
        half_window = timedelta(milliseconds=window_ms / 2)

        ordered = sorted(observations, key=lambda item: item.timestamp)
        timestamps = [item.timestamp for item in ordered]
        sampled: list[WindObservation] = []
        gaps = 0
        for sample_time in sample_times:
            lo = bisect_left(timestamps, sample_time - half_window)
            hi = bisect_right(timestamps, sample_time + half_window)
            window = ordered[lo:hi]
            if not window:
                gaps += 1
                continue
            if len(window) < min_points:
                sampled.append(_nearest(window, timestamps[lo:hi], sample_time).at(sample_time))
                continue
            sampled.append(self._representative(window, sample_time))

        if gaps:
            logger.debug("Windowed sampling left %d gaps (window=%sms, min_points=%s)", gaps, window_ms, min_points)
        return sampled

    @staticmethod
    def _representative(window: list[WindObservation], sample_time: datetime) -> WindObservation:
        return WindObservation(
            timestamp=sample_time,
            speed_mps=median_value([item.speed_mps for item in window]),
            direction_deg=circular_mean([item.direction_deg for item in window]),
            gust_mps=median_value([item.gust_mps for item in window]),
            is_forecast=False,
        )


def sample_wind_data(
    observations: list[WindObservation],
    interval: TimeInterval,
    interval_ms: float,
    config: RangeConfig | None = None,
) -> list[WindObservation]:
    """Sample ``observations`` on the hour-anchored grid with the configured strategy."""
    strategy = sampler_for(config.sampling if config else None)
    sample_times = SampleTimeSequence(interval, interval_ms)
    return strategy.sample(observations, sample_times, config)
