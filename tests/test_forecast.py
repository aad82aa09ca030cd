from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from windbarb.core.exceptions import ConfigError
from windbarb.models import ForecastFormat, WindSourceConfig
from windbarb.services.wind.forecast import (
    GriddedForecastParser,
    TimeSeriesForecastParser,
    forecast_parser_for,
    parse_gridded_forecast,
    parse_period_hours,
    parse_time_series_forecast,
    parse_valid_time,
)

UTC = ZoneInfo("UTC")
NOW = datetime(2025, 1, 1, 12, 30, tzinfo=UTC)


def _hour(offset):
    return datetime(2025, 1, 1, 12, tzinfo=UTC) + timedelta(hours=offset)


def _entry(offset, value, period="PT1H"):
    return {"validTime": f"{_hour(offset).isoformat()}/{period}", "value": value}


def test_parse_period_hours_variants():
    assert parse_period_hours("PT1H") == 1
    assert parse_period_hours("PT3H") == 3
    assert parse_period_hours("P1DT6H") == 30
    assert parse_period_hours("P2D") == 48
    assert parse_period_hours("PT30M") == 1
    assert parse_period_hours("garbage") == 1
    assert parse_period_hours(None) == 1


def test_parse_valid_time_splits_start_and_period():
    start, hours = parse_valid_time("2025-01-01T13:00:00Z/PT2H")
    assert start == _hour(1)
    assert hours == 2
    assert parse_valid_time("2025-01-01T13:00:00+00:00") == (_hour(1), 1)
    assert parse_valid_time("not a time/PT1H") is None
    assert parse_valid_time("") is None


def test_gridded_forecast_expands_periods_into_hours():
    properties = {
        "windSpeed": {"values": [_entry(1, 5.0, "PT3H")]},
        "windDirection": {"values": [_entry(1, 270.0, "PT3H")]},
    }
    forecast = parse_gridded_forecast(properties, reference=NOW)

    assert [item.timestamp for item in forecast] == [_hour(1), _hour(2), _hour(3)]
    assert all(item.is_forecast for item in forecast)
    assert all(item.speed_mps == 5.0 and item.direction_deg == 270.0 for item in forecast)
    assert all(item.gust_mps is None for item in forecast)


def test_gridded_forecast_drops_past_instants_and_truncates_to_horizon():
    properties = {
        "properties": {
            "windSpeed": {"values": [_entry(-1, 2.0, "PT4H"), _entry(3, 4.0, "PT2H")]},
            "windDirection": {"values": [_entry(-1, 90.0, "PT4H"), _entry(3, 180.0, "PT2H")]},
        }
    }
    forecast = parse_gridded_forecast(properties, reference=NOW, horizon=3)

    assert [item.timestamp for item in forecast] == [_hour(1), _hour(2), _hour(3)]
    assert [item.speed_mps for item in forecast] == [2.0, 2.0, 4.0]
    assert all(item.timestamp > NOW for item in forecast)


def test_gridded_forecast_matches_gusts_by_valid_time():
    properties = {
        "windSpeed": {"values": [_entry(1, 5.0), _entry(2, 6.0)]},
        "windDirection": {"values": [_entry(1, 10.0), _entry(2, 20.0)]},
        "windGust": {"values": [_entry(2, 9.0)]},
    }
    forecast = parse_gridded_forecast(properties, reference=NOW)
    assert [item.gust_mps for item in forecast] == [None, 9.0]


def test_gridded_forecast_skips_invalid_entries():
    properties = {
        "windSpeed": {"values": [_entry(1, None), {"validTime": "bad", "value": 3.0}, _entry(3, 4.0)]},
        "windDirection": {"values": [_entry(1, 10.0), {"validTime": "bad", "value": 30.0}, _entry(3, 40.0)]},
    }
    forecast = parse_gridded_forecast(properties, reference=NOW)
    assert [item.timestamp for item in forecast] == [_hour(3)]


def test_time_series_forecast_converts_kph_and_bounds_horizon():
    directions = [_entry(offset, 200.0) for offset in range(0, 6)]
    speeds = [_entry(offset, 36.0) for offset in range(0, 6)]
    gusts = [_entry(2, 54.0)]
    forecast = parse_time_series_forecast(directions, speeds, gusts, reference=NOW, hours=3)

    assert [item.timestamp for item in forecast] == [_hour(1), _hour(2), _hour(3)]
    assert forecast[0].speed_mps == pytest.approx(10.0)
    assert forecast[0].gust_mps is None
    assert forecast[1].gust_mps == pytest.approx(15.0)
    assert all(item.is_forecast for item in forecast)


def test_time_series_forecast_without_gust_list():
    forecast = parse_time_series_forecast([_entry(1, 0.0)], [_entry(1, 7.2)], None, reference=NOW)
    assert len(forecast) == 1
    assert forecast[0].speed_mps == pytest.approx(2.0)
    assert forecast[0].gust_mps is None


def test_time_series_forecast_skips_entries_without_valid_time():
    forecast = parse_time_series_forecast(
        [{"value": 90.0}, _entry(2, 90.0)],
        [_entry(1, 10.0), _entry(2, 10.0)],
        reference=NOW,
    )
    assert [item.timestamp for item in forecast] == [_hour(2)]


def _time_series_source(**overrides):
    values = {
        "direction_entity": "sensor.dir",
        "speed_entity": "sensor.speed",
        "forecast_format": ForecastFormat.TIME_SERIES,
        "forecast_direction_entity": "sensor.fc_dir",
        "forecast_speed_entity": "sensor.fc_speed",
    }
    values.update(overrides)
    return WindSourceConfig(**values)


def test_forecast_parser_for_resolves_formats():
    assert isinstance(forecast_parser_for("gridded"), GriddedForecastParser)
    assert isinstance(forecast_parser_for(ForecastFormat.TIME_SERIES), TimeSeriesForecastParser)
    with pytest.raises(ConfigError):
        forecast_parser_for("csv")


def test_parser_entity_roles():
    parser = TimeSeriesForecastParser()
    assert parser.entity_roles(_time_series_source()) == {"direction": "sensor.fc_dir", "speed": "sensor.fc_speed"}
    assert parser.entity_roles(_time_series_source(forecast_gust_entity="sensor.fc_gust"))["gust"] == "sensor.fc_gust"
    assert parser.entity_roles(_time_series_source(forecast_speed_entity=None)) == {}

    gridded = GriddedForecastParser()
    source = _time_series_source(forecast_format=ForecastFormat.GRIDDED, forecast_entity="weather.home")
    assert gridded.entity_roles(source) == {"forecast": "weather.home"}


def test_time_series_parser_tolerates_missing_gust_entity():
    parser = TimeSeriesForecastParser()
    forecast = parser.parse(
        {
            "direction": {"values": [_entry(1, 90.0)]},
            "speed": {"values": [_entry(1, 18.0)]},
            "gust": None,
        },
        reference=NOW,
    )
    assert len(forecast) == 1
    assert forecast[0].speed_mps == pytest.approx(5.0)


def test_parser_returns_empty_when_required_attributes_missing(caplog):
    parser = TimeSeriesForecastParser()
    forecast = parser.parse({"direction": {"values": [_entry(1, 90.0)]}, "speed": None}, reference=NOW)
    assert forecast == []
    assert "unavailable" in caplog.text


def test_parser_returns_empty_on_malformed_payload():
    parser = GriddedForecastParser()
    assert parser.parse({"forecast": {"windSpeed": 5, "windDirection": "north"}}, reference=NOW) == []
    assert parser.parse({}, reference=NOW) == []


def test_gridded_period_keeps_only_future_hours():
    properties = {
        "windSpeed": {"values": [{"validTime": "2025-01-01T11:00:00Z/PT3H", "value": 10}]},
        "windDirection": {"values": [{"validTime": "2025-01-01T11:00:00Z/PT3H", "value": 0}]},
    }
    forecast = parse_gridded_forecast(properties, reference=NOW)
    assert [item.timestamp for item in forecast] == [_hour(1)]
    assert forecast[0].speed_mps == 10

    everything = parse_gridded_forecast(properties, reference=_hour(-2))
    assert [item.timestamp for item in everything] == [_hour(-1), _hour(0), _hour(1)]
