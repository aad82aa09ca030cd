from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, HTTPException, Request, status

from windbarb.core.config import Settings, get_settings
from windbarb.services import HomeAssistantClient, WindSeriesRefresher, WindSeriesService
from windbarb.services.wind_service import default_range_from_settings, source_config_from_settings


@lru_cache(maxsize=1)
def _cached_client(base_url: str, token: str, timeout_seconds: float) -> HomeAssistantClient:
    return HomeAssistantClient(base_url, token, timeout_seconds)


@lru_cache(maxsize=1)
def _cached_service(settings: Settings) -> WindSeriesService:
    client = _cached_client(settings.ha_base_url, settings.ha_token, settings.request_timeout_seconds)
    return WindSeriesService(
        source=source_config_from_settings(settings),
        client=client,
        default_range=default_range_from_settings(settings),
    )


def get_service(settings: Settings = Depends(get_settings)) -> WindSeriesService:
    try:
        return _cached_service(settings)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc


def get_refresher(request: Request) -> WindSeriesRefresher:
    refresher = getattr(request.app.state, "refresher", None)
    if refresher is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Background refresh is disabled or not configured.",
        )
    return refresher


def build_refresher(settings: Settings) -> WindSeriesRefresher:
    return WindSeriesRefresher(
        _cached_service(settings),
        interval_seconds=settings.refresh_interval_seconds,
        viewport_width=settings.default_viewport_width,
    )


def clear_dependency_caches() -> None:
    _cached_client.cache_clear()
    _cached_service.cache_clear()
