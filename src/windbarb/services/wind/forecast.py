from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime, timedelta
from math import isfinite
from typing import Any

from pydantic import ValidationError

from windbarb.core.exceptions import ConfigError
from windbarb.models import ForecastFormat, WindObservation, WindSourceConfig
from windbarb.services.wind.constants import FORECAST_STEP_MS, KPH_PER_MPS, UTC

logger = logging.getLogger(__name__)

_PERIOD_PATTERN = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$")


def parse_period_hours(raw: str | None) -> int:
    """Whole hours in an ISO-8601 period such as ``PT3H`` or ``P1DT6H``; 1 when absent or unusable."""
    if not raw:
        return 1
    match = _PERIOD_PATTERN.match(raw.strip().upper())
    if not match:
        return 1
    days = int(match.group(1) or 0)
    hours = int(match.group(2) or 0)
    total = days * 24 + hours
    return total if total > 0 else 1


def parse_valid_time(valid_time: str) -> tuple[datetime, int] | None:
    """Split ``"<ISO start>/<period>"`` into an aware start instant and an hour count."""
    if not isinstance(valid_time, str) or not valid_time.strip():
        return None
    start_raw, _, period_raw = valid_time.strip().partition("/")
    try:
        start = datetime.fromisoformat(start_raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if start.tzinfo is None:
        start = start.replace(tzinfo=UTC)
    return start, parse_period_hours(period_raw or None)


def _number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if isfinite(number) else None


def _values(container: Any) -> list[Any]:
    if isinstance(container, Mapping):
        container = container.get("values")
    return list(container) if isinstance(container, list) else []


def _expand_hours(
    start: datetime,
    hours: int,
    direction: float,
    speed: float,
    gust: float | None,
) -> list[WindObservation]:
    expanded: list[WindObservation] = []
    for hour in range(hours):
        try:
            expanded.append(
                WindObservation(
                    timestamp=start + timedelta(milliseconds=hour * FORECAST_STEP_MS),
                    direction_deg=direction,
                    speed_mps=speed,
                    gust_mps=gust,
                    is_forecast=True,
                )
            )
        except ValidationError:
            logger.debug("Skipping forecast value outside physical bounds at %s", start.isoformat())
            return []
    return expanded


def parse_gridded_forecast(
    properties: Mapping[str, Any],
    reference: datetime | None = None,
    horizon: int = 48,
) -> list[WindObservation]:
    """Expand gridded ``validTime`` periods into hourly forecast observations.

    ``properties`` holds ``windSpeed.values`` and ``windDirection.values`` (and
    optionally ``windGust.values``), either at the top level or under a
    ``properties`` key. Speeds are taken as provided. Only instants strictly after
    ``reference`` survive and the result is truncated to ``horizon`` entries.
    """
    now = reference or datetime.now(UTC)
    if isinstance(properties.get("properties"), Mapping):
        properties = properties["properties"]

    speeds = _values(properties.get("windSpeed"))
    directions = _values(properties.get("windDirection"))
    gusts_by_time = {
        entry.get("validTime"): _number(entry.get("value"))
        for entry in _values(properties.get("windGust"))
        if isinstance(entry, Mapping)
    }

    forecast: list[WindObservation] = []
    for speed_entry, direction_entry in zip(speeds, directions):
        if not isinstance(speed_entry, Mapping) or not isinstance(direction_entry, Mapping):
            continue
        speed = _number(speed_entry.get("value"))
        direction = _number(direction_entry.get("value"))
        if speed is None or direction is None:
            continue
        period = parse_valid_time(speed_entry.get("validTime"))
        if period is None:
            continue
        start, hours = period
        gust = gusts_by_time.get(speed_entry.get("validTime"))
        forecast.extend(
            item for item in _expand_hours(start, hours, direction, speed, gust) if item.timestamp > now
        )

    forecast.sort(key=lambda item: item.timestamp)
    return forecast[: max(0, horizon)]


def parse_time_series_forecast(
    direction_values: list[Any],
    speed_values: list[Any],
    gust_values: list[Any] | None = None,
    reference: datetime | None = None,
    hours: int = 48,
) -> list[WindObservation]:
    """Build forecast observations from parallel direction/speed ``values`` lists.

    Entries are paired by list position. Speeds and gusts arrive in km/h and are
    converted to m/s; a gust belongs to a speed entry only when their ``validTime``
    strings are identical. Instants outside ``(reference, reference + hours]`` are dropped.
    """
    now = reference or datetime.now(UTC)
    horizon_end = now + timedelta(hours=hours)
    gusts_by_time: dict[str, float | None] = {}
    for entry in gust_values or []:
        if isinstance(entry, Mapping) and entry.get("validTime") not in gusts_by_time:
            gusts_by_time[entry.get("validTime")] = _number(entry.get("value"))

    forecast: list[WindObservation] = []
    for direction_entry, speed_entry in zip(direction_values, speed_values):
        if not isinstance(direction_entry, Mapping) or not isinstance(speed_entry, Mapping):
            continue
        if not direction_entry.get("validTime") or not speed_entry.get("validTime"):
            continue
        direction = _number(direction_entry.get("value"))
        speed_kph = _number(speed_entry.get("value"))
        if direction is None or speed_kph is None:
            continue
        period = parse_valid_time(speed_entry["validTime"])
        if period is None:
            continue
        start, period_hours = period
        gust_kph = gusts_by_time.get(speed_entry["validTime"])
        gust = gust_kph / KPH_PER_MPS if gust_kph is not None else None
        forecast.extend(
            item
            for item in _expand_hours(start, period_hours, direction, speed_kph / KPH_PER_MPS, gust)
            if now < item.timestamp <= horizon_end
        )

    forecast.sort(key=lambda item: item.timestamp)
    return forecast


class ForecastParser(ABC):
    """Turns forecast entity attributes into forecast observations.

    ``entity_roles`` names the entities a format needs; ``parse`` receives their
    attributes keyed by the same role names.
    """

    format: ForecastFormat
    optional_roles: frozenset[str] = frozenset()

    @abstractmethod
    def entity_roles(self, source: WindSourceConfig) -> dict[str, str]:
        raise NotImplementedError

    @abstractmethod
    def _parse(
        self,
        attributes: Mapping[str, Mapping[str, Any]],
        reference: datetime,
        horizon_hours: int,
    ) -> list[WindObservation]:
        raise NotImplementedError

    def parse(
        self,
        attributes: Mapping[str, Mapping[str, Any] | None],
        reference: datetime | None = None,
        horizon_hours: int = 48,
    ) -> list[WindObservation]:
        now = reference or datetime.now(UTC)
        attributes = {
            role: value
            for role, value in attributes.items()
            if isinstance(value, Mapping) or role not in self.optional_roles
        }
        missing = [role for role, value in attributes.items() if not isinstance(value, Mapping)]
        if missing or not attributes:
            logger.warning("Forecast (%s) unavailable: missing attributes for %s", self.format.value, missing or "all roles")
            return []
        try:
            forecast = self._parse(attributes, now, horizon_hours)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Forecast (%s) payload is malformed: %s", self.format.value, str(exc))
            return []
        if not forecast:
            logger.warning("Forecast (%s) produced no future observations", self.format.value)
        return forecast


class GriddedForecastParser(ForecastParser):
    format = ForecastFormat.GRIDDED

    def entity_roles(self, source: WindSourceConfig) -> dict[str, str]:
        return {"forecast": source.forecast_entity} if source.forecast_entity else {}

    def _parse(
        self,
        attributes: Mapping[str, Mapping[str, Any]],
        reference: datetime,
        horizon_hours: int,
    ) -> list[WindObservation]:
        return parse_gridded_forecast(attributes["forecast"], reference=reference, horizon=horizon_hours)


class TimeSeriesForecastParser(ForecastParser):
    format = ForecastFormat.TIME_SERIES
    optional_roles = frozenset({"gust"})

    def entity_roles(self, source: WindSourceConfig) -> dict[str, str]:
        if not source.forecast_direction_entity or not source.forecast_speed_entity:
            return {}
        roles = {
            "direction": source.forecast_direction_entity,
            "speed": source.forecast_speed_entity,
        }
        if source.forecast_gust_entity:
            roles["gust"] = source.forecast_gust_entity
        return roles

    def _parse(
        self,
        attributes: Mapping[str, Mapping[str, Any]],
        reference: datetime,
        horizon_hours: int,
    ) -> list[WindObservation]:
        gust_attributes = attributes.get("gust")
        return parse_time_series_forecast(
            _values(attributes["direction"]),
            _values(attributes["speed"]),
            _values(gust_attributes) if gust_attributes is not None else None,
            reference=reference,
            hours=horizon_hours,
        )


_PARSERS: dict[ForecastFormat, type[ForecastParser]] = {
    ForecastFormat.GRIDDED: GriddedForecastParser,
    ForecastFormat.TIME_SERIES: TimeSeriesForecastParser,
}


def forecast_parser_for(forecast_format: ForecastFormat | str) -> ForecastParser:
    try:
        key = ForecastFormat(forecast_format)
    except ValueError as exc:
        raise ConfigError(f"Unknown forecast format: {forecast_format!r}") from exc
    return _PARSERS[key]()
