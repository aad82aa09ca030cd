from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class ForecastFormat(str, Enum):
    GRIDDED = "gridded"
    TIME_SERIES = "time_series"


class WindSourceConfig(BaseModel):
    direction_entity: str
    speed_entity: str
    gust_entity: str | None = None
    speed_unit: str = "m/s"
    forecast_format: ForecastFormat = ForecastFormat.TIME_SERIES
    forecast_entity: str | None = None
    forecast_direction_entity: str | None = None
    forecast_speed_entity: str | None = None
    forecast_gust_entity: str | None = None
    forecast_hours: int = Field(default=48, ge=1)
    forecast_display_hours: int = Field(default=6, ge=0)

    @property
    def history_entities(self) -> list[str]:
        entities = [self.direction_entity, self.speed_entity]
        if self.gust_entity:
            entities.append(self.gust_entity)
        return entities

    @property
    def has_forecast(self) -> bool:
        if self.forecast_format == ForecastFormat.GRIDDED:
            return bool(self.forecast_entity)
        return bool(self.forecast_direction_entity and self.forecast_speed_entity)
