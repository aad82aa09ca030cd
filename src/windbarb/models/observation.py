from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class WindObservation(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: datetime
    direction_deg: float = Field(alias="direction")
    speed_mps: float = Field(ge=0, alias="speed")
    gust_mps: float | None = Field(default=None, ge=0, alias="gust")
    is_forecast: bool = Field(default=False, alias="isForecast")

    @field_validator("direction_deg")
    @classmethod
    def _normalize_direction(cls, value: float) -> float:
        normalized = value % 360.0
        # Tiny negative angles wrap to exactly 360.0 in float arithmetic.
        return 0.0 if normalized >= 360.0 else normalized

    def at(self, timestamp: datetime) -> WindObservation:
        """Return a copy relabelled to ``timestamp``."""
        return self.model_copy(update={"timestamp": timestamp})


class TimeInterval(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_order(self) -> TimeInterval:
        if self.start >= self.end:
            raise ValueError("Interval start must be before end")
        return self

    @property
    def duration_ms(self) -> float:
        return (self.end - self.start).total_seconds() * 1000.0


class RawHistoryPoint(BaseModel):
    entity_id: str
    state: str
    last_updated: datetime
    last_changed: datetime | None = None


class EntityState(BaseModel):
    entity_id: str
    state: str
    attributes: dict[str, Any] = Field(default_factory=dict)
    last_updated: datetime | None = None
