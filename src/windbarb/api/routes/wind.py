from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query

from windbarb.api.dependencies import get_refresher, get_service
from windbarb.api.route_utils import SERVICE_ERROR_RESPONSES, await_service_or_http, call_service_or_http
from windbarb.models import (
    RangeResolutionResponse,
    RefreshState,
    SamplingMode,
    WindObservation,
    WindSeriesResponse,
    range_config_for_hours,
)
from windbarb.services import WindSeriesRefresher, WindSeriesService
from windbarb.services.wind.constants import UTC
from windbarb.services.wind.time_range import (
    SampleTimeSequence,
    calculate_interval,
    resolve_time_range,
    viewport_category,
)
from windbarb.utils.durations import format_duration

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Wind"])


def _range_overrides(
    start: str | None,
    end: str | None,
    interval: str | None,
    sampling: SamplingMode | None,
    window_size: str | None,
    min_interval: str | None,
    max_interval: str | None,
    min_points: int | None,
) -> dict[str, object]:
    values = {
        "start": start,
        "end": end,
        "interval": interval,
        "sampling": sampling,
        "window_size": window_size,
        "min_interval": min_interval,
        "max_interval": max_interval,
        "min_points": min_points,
    }
    return {key: value for key, value in values.items() if value is not None}


@router.get(
    "/api/wind/series",
    response_model=WindSeriesResponse,
    summary="Sampled wind observations for a time range, with forecast appended",
    description=(
        "Resolves the time range (absolute ISO timestamps, 'now' or relative '-<n>(min|h|d)'), sizes the sampling "
        "interval for the viewport width, samples aligned Home Assistant history and appends forecast observations."
    ),
    responses=SERVICE_ERROR_RESPONSES,
)
async def wind_series(
    start: str | None = Query(None, description="Range start, e.g. -24h or 2025-01-01T00:00:00Z"),
    end: str | None = Query(None, description="Range end, e.g. now"),
    interval: str | None = Query(None, description="auto or an explicit duration such as 15min"),
    sampling: SamplingMode | None = Query(None),
    window_size: str | None = Query(None),
    min_interval: str | None = Query(None),
    max_interval: str | None = Query(None),
    min_points: int | None = Query(None, ge=1),
    time_period: float | None = Query(None, gt=0, description="Legacy hour count, used as start=-<hours>h when start is omitted"),
    viewport_width: int = Query(1024, ge=1, description="Rendering width in pixels"),
    include_forecast: bool = Query(True),
    service: WindSeriesService = Depends(get_service),
) -> WindSeriesResponse:
    overrides = _range_overrides(start, end, interval, sampling, window_size, min_interval, max_interval, min_points)
    if time_period is not None and start is None:
        overrides["start"] = call_service_or_http(
            lambda: range_config_for_hours(time_period).start,
            logger=logger,
            endpoint="wind/series",
        )
    logger.info("Handling series request overrides=%s viewport_width=%s", overrides, viewport_width)
    return await await_service_or_http(
        lambda: service.build_series(overrides, viewport_width=viewport_width, include_forecast=include_forecast),
        logger=logger,
        endpoint="wind/series",
        context={"start": start, "end": end},
    )


@router.get(
    "/api/wind/range",
    response_model=RangeResolutionResponse,
    summary="Resolve a time range into its interval and sample times without fetching history",
    responses={400: SERVICE_ERROR_RESPONSES[400]},
)
def resolve_range(
    start: str | None = Query(None),
    end: str | None = Query(None),
    interval: str | None = Query(None),
    sampling: SamplingMode | None = Query(None),
    window_size: str | None = Query(None),
    min_interval: str | None = Query(None),
    max_interval: str | None = Query(None),
    min_points: int | None = Query(None, ge=1),
    viewport_width: int = Query(1024, ge=1),
    service: WindSeriesService = Depends(get_service),
) -> RangeResolutionResponse:
    overrides = _range_overrides(start, end, interval, sampling, window_size, min_interval, max_interval, min_points)

    def _resolve() -> RangeResolutionResponse:
        config = service.resolve_config(overrides)
        resolved = resolve_time_range(config.start, config.end, reference=datetime.now(UTC))
        step_ms = calculate_interval(resolved, config, viewport_width)
        return RangeResolutionResponse(
            start_utc=resolved.start,
            end_utc=resolved.end,
            duration_ms=resolved.duration_ms,
            interval_ms=step_ms,
            interval_label=format_duration(step_ms),
            viewport_category=viewport_category(viewport_width),
            sampling=config.sampling,
            window_size=config.window_size,
            min_points=config.min_points,
            sample_times=list(SampleTimeSequence(resolved, step_ms)),
        )

    return call_service_or_http(_resolve, logger=logger, endpoint="wind/range")


@router.get(
    "/api/wind/binned",
    response_model=WindSeriesResponse,
    summary="Legacy fixed-bin wind averages over the last N hours",
    responses=SERVICE_ERROR_RESPONSES,
)
async def wind_binned(
    hours: float = Query(24, gt=0, le=24 * 31),
    service: WindSeriesService = Depends(get_service),
) -> WindSeriesResponse:
    return await await_service_or_http(
        lambda: service.build_binned_series(hours),
        logger=logger,
        endpoint="wind/binned",
        context={"hours": hours},
    )


@router.get(
    "/api/wind/forecast",
    response_model=list[WindObservation],
    summary="Forecast observations normalized from the configured forecast entities",
    responses=SERVICE_ERROR_RESPONSES,
)
async def wind_forecast(service: WindSeriesService = Depends(get_service)) -> list[WindObservation]:
    return await await_service_or_http(
        lambda: service.build_forecast(),
        logger=logger,
        endpoint="wind/forecast",
    )


@router.get(
    "/api/wind/latest",
    response_model=RefreshState,
    summary="Series produced by the most recent background refresh",
    responses={503: {"description": "Background refresh is disabled or not configured."}},
)
def wind_latest(refresher: WindSeriesRefresher = Depends(get_refresher)) -> RefreshState:
    return refresher.current
