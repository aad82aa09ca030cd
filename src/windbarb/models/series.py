from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from windbarb.models.observation import WindObservation
from windbarb.models.range_config import SamplingMode, ViewportCategory


class WindSeriesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    generated_at_utc: datetime = Field(alias="generatedAt")
    start_utc: datetime | None = Field(default=None, alias="start")
    end_utc: datetime | None = Field(default=None, alias="end")
    interval_ms: float | None = Field(default=None, alias="intervalMs")
    interval_label: str | None = Field(default=None, alias="interval")
    sampling: SamplingMode | None = None
    viewport_category: ViewportCategory | None = Field(default=None, alias="viewportCategory")
    historical_count: int = Field(default=0, alias="historicalCount")
    forecast_count: int = Field(default=0, alias="forecastCount")
    data: list[WindObservation]
    message: str | None = None


class RefreshState(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sequence: int
    completed_at_utc: datetime | None = Field(default=None, alias="completedAt")
    series: WindSeriesResponse | None = None
    error: str | None = None


class RangeResolutionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_utc: datetime = Field(alias="start")
    end_utc: datetime = Field(alias="end")
    duration_ms: float = Field(alias="durationMs")
    interval_ms: float = Field(alias="intervalMs")
    interval_label: str = Field(alias="interval")
    viewport_category: ViewportCategory = Field(alias="viewportCategory")
    sampling: SamplingMode
    window_size: str = Field(alias="windowSize")
    min_points: int = Field(alias="minPoints")
    sample_times: list[datetime] = Field(alias="sampleTimes")
