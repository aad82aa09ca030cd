from __future__ import annotations

import asyncio
import logging

import pytest
from fastapi import HTTPException

from windbarb.api.dependencies import clear_dependency_caches, get_service
from windbarb.api.route_utils import await_service_or_http, call_service_or_http
from windbarb.core.config import Settings
from windbarb.core.exceptions import InvalidDuration, UpstreamServiceError


def test_call_service_or_http_returns_result():
    assert call_service_or_http(lambda: 42, logger=logging.getLogger("test"), endpoint="wind/test") == 42


def test_call_service_or_http_maps_config_error_to_400():
    def _fail():
        raise InvalidDuration("Invalid duration format: '10mins'")

    with pytest.raises(HTTPException) as exc:
        call_service_or_http(_fail, logger=logging.getLogger("test"), endpoint="wind/test")
    assert exc.value.status_code == 400
    assert exc.value.detail == "Invalid duration format: '10mins'"


def test_call_service_or_http_maps_runtime_error_to_502():
    with pytest.raises(HTTPException) as exc:
        call_service_or_http(
            lambda: (_ for _ in ()).throw(RuntimeError("upstream failed")),
            logger=logging.getLogger("test"),
            endpoint="wind/test",
            context={"start": "-24h"},
        )
    assert exc.value.status_code == 502
    assert exc.value.detail == "upstream failed"


def test_await_service_or_http_maps_upstream_error_to_502():
    async def _fail():
        raise UpstreamServiceError("HA_TOKEN environment variable is required")

    with pytest.raises(HTTPException) as exc:
        asyncio.run(await_service_or_http(_fail, logger=logging.getLogger("test"), endpoint="wind/series"))
    assert exc.value.status_code == 502


def test_get_service_reports_missing_entities_as_unavailable():
    clear_dependency_caches()
    settings = Settings(
        ha_base_url="http://ha.local",
        ha_token="secret",
        request_timeout_seconds=5.0,
        wind_direction_entity="",
        wind_speed_entity="sensor.speed",
    )
    with pytest.raises(HTTPException) as exc:
        get_service(settings)
    assert exc.value.status_code == 503
    assert "WIND_DIRECTION_ENTITY" in exc.value.detail
