from windbarb.models.observation import EntityState, RawHistoryPoint, TimeInterval, WindObservation
from windbarb.models.range_config import (
    RangeConfig,
    SamplingMode,
    ViewportBudgets,
    ViewportCategory,
    apply_range_defaults,
    range_config_for_hours,
)
from windbarb.models.series import RangeResolutionResponse, RefreshState, WindSeriesResponse
from windbarb.models.source import ForecastFormat, WindSourceConfig

__all__ = [
    "EntityState",
    "ForecastFormat",
    "RangeConfig",
    "RangeResolutionResponse",
    "RawHistoryPoint",
    "RefreshState",
    "SamplingMode",
    "TimeInterval",
    "ViewportBudgets",
    "ViewportCategory",
    "WindObservation",
    "WindSeriesResponse",
    "WindSourceConfig",
    "apply_range_defaults",
    "range_config_for_hours",
]
