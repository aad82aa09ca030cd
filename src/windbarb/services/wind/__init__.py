from windbarb.services.wind.aggregation import aggregate_bins
from windbarb.services.wind.alignment import align_history
from windbarb.services.wind.forecast import (
    ForecastParser,
    GriddedForecastParser,
    TimeSeriesForecastParser,
    forecast_parser_for,
)
from windbarb.services.wind.math_utils import circular_mean
from windbarb.services.wind.sampling import (
    SamplingStrategy,
    SinglePointSampler,
    WindowedRepresentativeSampler,
    sample_wind_data,
    sampler_for,
)
from windbarb.services.wind.time_range import (
    SampleTimeSequence,
    calculate_interval,
    resolve_time_range,
    viewport_category,
)

__all__ = [
    "ForecastParser",
    "GriddedForecastParser",
    "SampleTimeSequence",
    "SamplingStrategy",
    "SinglePointSampler",
    "TimeSeriesForecastParser",
    "WindowedRepresentativeSampler",
    "aggregate_bins",
    "align_history",
    "calculate_interval",
    "circular_mean",
    "forecast_parser_for",
    "resolve_time_range",
    "sample_wind_data",
    "sampler_for",
    "viewport_category",
]
