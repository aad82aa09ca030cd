from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any

from windbarb.core.config import Settings
from windbarb.core.exceptions import AppValidationError, ConfigError
from windbarb.models import (
    ForecastFormat,
    RangeConfig,
    WindObservation,
    WindSeriesResponse,
    WindSourceConfig,
    apply_range_defaults,
)
from windbarb.services.home_assistant_client import HomeAssistantClient
from windbarb.services.wind.aggregation import aggregate_bins
from windbarb.services.wind.alignment import align_history
from windbarb.services.wind.constants import UTC
from windbarb.services.wind.forecast import forecast_parser_for
from windbarb.services.wind.sampling import sample_wind_data
from windbarb.services.wind.time_range import calculate_interval, resolve_time_range, viewport_category
from windbarb.services.wind.units import normalize_speed_units
from windbarb.utils.durations import format_duration, parse_duration

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No historical data available. Check entity names and history retention."


def source_config_from_settings(settings: Settings) -> WindSourceConfig:
    if not settings.wind_direction_entity or not settings.wind_speed_entity:
        raise AppValidationError("WIND_DIRECTION_ENTITY and WIND_SPEED_ENTITY are required")
    try:
        forecast_format = ForecastFormat(settings.forecast_format)
    except ValueError as exc:
        raise ConfigError(f"Unknown FORECAST_FORMAT: {settings.forecast_format!r}") from exc
    return WindSourceConfig(
        direction_entity=settings.wind_direction_entity,
        speed_entity=settings.wind_speed_entity,
        gust_entity=settings.wind_gust_entity,
        speed_unit=settings.wind_speed_unit,
        forecast_format=forecast_format,
        forecast_entity=settings.forecast_entity,
        forecast_direction_entity=settings.forecast_direction_entity,
        forecast_speed_entity=settings.forecast_speed_entity,
        forecast_gust_entity=settings.forecast_gust_entity,
        forecast_hours=settings.forecast_hours,
        forecast_display_hours=settings.forecast_display_hours,
    )


def default_range_from_settings(settings: Settings) -> RangeConfig:
    return apply_range_defaults(
        {
            "start": settings.time_range_start,
            "end": settings.time_range_end,
            "interval": settings.time_range_interval,
            "sampling": settings.time_range_sampling,
            "window_size": settings.time_range_window_size,
        }
    )


def merge_observations(*sequences: list[WindObservation]) -> list[WindObservation]:
    merged = [item for sequence in sequences for item in sequence]
    merged.sort(key=lambda item: item.timestamp)
    return merged


class WindSeriesService:
    """Fetches raw history and forecasts from Home Assistant and runs the sampling pipeline."""

    def __init__(self, source: WindSourceConfig, client: HomeAssistantClient, default_range: RangeConfig | None = None) -> None:
        self.source = source
        self.client = client
        self.default_range = default_range or apply_range_defaults(None)

    def resolve_config(self, overrides: RangeConfig | Mapping[str, Any] | None = None) -> RangeConfig:
        base = self.default_range.model_dump(exclude_none=True)
        if isinstance(overrides, RangeConfig):
            base.update(overrides.model_dump(exclude_none=True))
        elif overrides:
            base.update({key: value for key, value in overrides.items() if value is not None})
        return apply_range_defaults(base)

    async def build_series(
        self,
        overrides: RangeConfig | Mapping[str, Any] | None = None,
        viewport_width: float = 1024,
        include_forecast: bool = True,
        reference: datetime | None = None,
    ) -> WindSeriesResponse:
        now = reference or datetime.now(UTC)
        history = await self.build_history(overrides, viewport_width=viewport_width, reference=now)
        forecast = await self.build_forecast(reference=now) if include_forecast else []
        if forecast:
            display_end = now + timedelta(hours=min(self.source.forecast_display_hours, self.source.forecast_hours))
            forecast = [item for item in forecast if item.timestamp <= display_end]

        data = merge_observations(history.data, forecast)
        logger.info(
            "Built wind series: %d historical + %d forecast observations (%s to %s)",
            len(history.data),
            len(forecast),
            history.start_utc.isoformat() if history.start_utc else "-",
            history.end_utc.isoformat() if history.end_utc else "-",
        )
        return history.model_copy(
            update={
                "data": data,
                "forecast_count": len(forecast),
                "message": None if data else NO_DATA_MESSAGE,
            }
        )

    async def build_history(
        self,
        overrides: RangeConfig | Mapping[str, Any] | None = None,
        viewport_width: float = 1024,
        reference: datetime | None = None,
    ) -> WindSeriesResponse:
        now = reference or datetime.now(UTC)
        config = self.resolve_config(overrides)
        interval = resolve_time_range(config.start, config.end, reference=now)
        step_ms = calculate_interval(interval, config, viewport_width)

        fetch_start = interval.start - timedelta(milliseconds=parse_duration(config.window_size) / 2)
        raw_history = await self.client.fetch_history(self.source.history_entities, fetch_start, interval.end)
        aligned = align_history(
            raw_history,
            self.source.direction_entity,
            self.source.speed_entity,
            self.source.gust_entity,
        )
        aligned = normalize_speed_units(aligned, self.source.speed_unit)
        sampled = sample_wind_data(aligned, interval, step_ms, config)
        logger.info(
            "Sampled %d of %d aligned observations (%s, step=%s)",
            len(sampled),
            len(aligned),
            config.sampling.value,
            format_duration(step_ms),
        )

        return WindSeriesResponse(
            generated_at_utc=now,
            start_utc=interval.start,
            end_utc=interval.end,
            interval_ms=step_ms,
            interval_label=format_duration(step_ms),
            sampling=config.sampling,
            viewport_category=viewport_category(viewport_width),
            historical_count=len(sampled),
            data=sampled,
            message=None if sampled else NO_DATA_MESSAGE,
        )

    async def build_forecast(self, reference: datetime | None = None) -> list[WindObservation]:
        now = reference or datetime.now(UTC)
        if not self.source.has_forecast:
            return []
        parser = forecast_parser_for(self.source.forecast_format)
        roles = parser.entity_roles(self.source)
        attributes: dict[str, Mapping[str, Any] | None] = {}
        for role, entity_id in roles.items():
            state = await self.client.get_entity_state(entity_id)
            if state is None:
                logger.warning("Forecast entity %s (%s) not found", entity_id, role)
            attributes[role] = state.attributes if state is not None else None
        return parser.parse(attributes, reference=now, horizon_hours=self.source.forecast_hours)

    async def build_binned_series(self, hours: float, reference: datetime | None = None) -> WindSeriesResponse:
        """Legacy fixed-bin series for a flat hour count."""
        if hours <= 0:
            raise AppValidationError("Hours must be positive")
        now = reference or datetime.now(UTC)
        start = now - timedelta(hours=hours)
        raw_history = await self.client.fetch_history(self.source.history_entities, start, now)
        aligned = align_history(
            raw_history,
            self.source.direction_entity,
            self.source.speed_entity,
            self.source.gust_entity,
        )
        aligned = normalize_speed_units(aligned, self.source.speed_unit)
        binned = aggregate_bins(aligned, hours, reference=now)
        return WindSeriesResponse(
            generated_at_utc=now,
            start_utc=start,
            end_utc=now,
            historical_count=len(binned),
            data=binned,
            message=None if binned else NO_DATA_MESSAGE,
        )
