from datetime import timedelta

from fastapi.testclient import TestClient

from windbarb.main import app, get_service
from windbarb.models import RawHistoryPoint, WindSourceConfig
from windbarb.services import HomeAssistantClient, WindSeriesRefresher, WindSeriesService


class FakeClient:
    """Returns a steady 2-minute history covering whatever period is requested."""

    async def fetch_history(self, entity_ids, start_utc, end_utc=None):
        history = []
        for entity_id, state in zip(entity_ids, ("225", "6.5", "9.0")):
            points = []
            current = start_utc
            while current <= end_utc:
                points.append(RawHistoryPoint(entity_id=entity_id, state=state, last_updated=current))
                current += timedelta(minutes=2)
            history.append(points)
        return history

    async def get_entity_state(self, entity_id):
        return None


SOURCE = WindSourceConfig(
    direction_entity="sensor.wind_direction",
    speed_entity="sensor.wind_speed",
    gust_entity="sensor.wind_gust",
)

app.dependency_overrides[get_service] = lambda: WindSeriesService(SOURCE, FakeClient())
client = TestClient(app)


def test_series_endpoint_happy_path():
    response = client.get(
        "/api/wind/series",
        params={"start": "-3h", "interval": "1h", "include_forecast": "false"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["intervalMs"] == 3_600_000
    assert payload["interval"] == "1h"
    assert payload["sampling"] == "windowed_representative"
    assert payload["viewportCategory"] == "desktop"
    assert 3 <= len(payload["data"]) <= 4
    first = payload["data"][0]
    assert first["direction"] == 225.0
    assert first["speed"] == 6.5
    assert first["gust"] == 9.0
    assert first["isForecast"] is False
    assert "X-Request-ID" in response.headers


def test_series_endpoint_invalid_duration_token():
    response = client.get("/api/wind/series", params={"window_size": "10minutes"})
    assert response.status_code == 400
    assert "Invalid duration" in response.json()["detail"]


def test_series_endpoint_inverted_range():
    response = client.get("/api/wind/series", params={"start": "-1h", "end": "-2h"})
    assert response.status_code == 400
    assert "must be before" in response.json()["detail"]


def test_series_endpoint_rejects_unknown_sampling_mode():
    response = client.get("/api/wind/series", params={"sampling": "mean"})
    assert response.status_code == 422


def test_series_endpoint_upstream_error():
    app.dependency_overrides[get_service] = lambda: WindSeriesService(SOURCE, HomeAssistantClient("", ""))
    try:
        response = client.get("/api/wind/series")
    finally:
        app.dependency_overrides[get_service] = lambda: WindSeriesService(SOURCE, FakeClient())
    assert response.status_code == 502
    assert "HA_BASE_URL" in response.json()["detail"]


def test_range_endpoint_resolves_interval_for_viewport():
    response = client.get("/api/wind/range", params={"start": "-24h", "viewport_width": 300})

    assert response.status_code == 200
    payload = response.json()
    assert payload["durationMs"] == 24 * 3_600_000
    assert payload["intervalMs"] == 4_320_000
    assert payload["interval"] == "72min"
    assert payload["viewportCategory"] == "mobile"
    assert payload["windowSize"] == "10min"
    assert payload["minPoints"] == 3
    assert payload["sampleTimes"] == sorted(payload["sampleTimes"])
    assert 20 <= len(payload["sampleTimes"]) <= 21


def test_range_endpoint_rejects_min_above_max():
    response = client.get("/api/wind/range", params={"min_interval": "6h", "max_interval": "1h"})
    assert response.status_code == 400


def test_binned_endpoint_returns_legacy_bins():
    response = client.get("/api/wind/binned", params={"hours": 6})
    assert response.status_code == 200
    payload = response.json()
    assert len(payload["data"]) == 3
    assert all(item["speed"] == 6.5 for item in payload["data"])


def test_binned_endpoint_rejects_non_positive_hours():
    response = client.get("/api/wind/binned", params={"hours": 0})
    assert response.status_code == 422


def test_forecast_endpoint_without_forecast_entities():
    response = client.get("/api/wind/forecast")
    assert response.status_code == 200
    assert response.json() == []


def test_latest_endpoint_without_refresher():
    app.state.refresher = None
    response = client.get("/api/wind/latest")
    assert response.status_code == 503


def test_latest_endpoint_reports_refresher_state():
    app.state.refresher = WindSeriesRefresher(WindSeriesService(SOURCE, FakeClient()))
    try:
        response = client.get("/api/wind/latest")
    finally:
        app.state.refresher = None
    assert response.status_code == 200
    payload = response.json()
    assert payload["sequence"] == 0
    assert payload["series"] is None


def test_series_endpoint_maps_legacy_time_period_to_start():
    response = client.get("/api/wind/series", params={"time_period": 2, "interval": "1h", "include_forecast": "false"})
    assert response.status_code == 200
    payload = response.json()
    assert 2 <= len(payload["data"]) <= 3


def test_range_endpoint_rejects_interval_with_too_many_samples():
    response = client.get("/api/wind/range", params={"start": "-24h", "interval": "0.001min"})
    assert response.status_code == 400
    assert "sample times" in response.json()["detail"]
