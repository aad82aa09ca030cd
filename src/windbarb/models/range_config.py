from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from windbarb.core.exceptions import ConfigError
from windbarb.utils.durations import parse_duration

DEFAULT_START = "-24h"
DEFAULT_END = "now"
DEFAULT_INTERVAL = "auto"
DEFAULT_WINDOW_SIZE = "10min"
DEFAULT_MIN_INTERVAL = "5min"
DEFAULT_MAX_INTERVAL = "4h"
DEFAULT_MIN_POINTS = 3


class SamplingMode(str, Enum):
    WINDOWED_REPRESENTATIVE = "windowed_representative"
    SINGLE_POINT = "single_point"


class ViewportCategory(str, Enum):
    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"


class ViewportBudgets(BaseModel):
    model_config = ConfigDict(frozen=True)

    mobile: int | None = Field(default=20, ge=0)
    tablet: int | None = Field(default=40, ge=0)
    desktop: int | None = Field(default=80, ge=0)


class RangeConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: str = DEFAULT_START
    end: str = DEFAULT_END
    interval: str | None = None
    sampling: SamplingMode | None = None
    window_size: str | None = None
    min_interval: str | None = None
    max_interval: str | None = None
    min_points: int | None = Field(default=None, ge=1)
    screen_multiplier: ViewportBudgets | None = None


def range_config_for_hours(hours: float) -> RangeConfig:
    """Map a legacy ``time_period`` hour count onto a relative range."""
    # Fixed-point rendering; the duration grammar has no exponent form.
    token = f"{hours:.6f}".rstrip("0").rstrip(".")
    return apply_range_defaults({"start": f"-{token}h"})


def apply_range_defaults(partial: RangeConfig | Mapping[str, Any] | None) -> RangeConfig:
    """Return a fully-populated, validated copy of ``partial``.

    Unset fields receive the production defaults (windowed sampling over 10 minute
    windows, intervals clamped to 5min..4h). Duration tokens are parsed once here so
    malformed configuration fails before any history is fetched.
    """
    if partial is None:
        values: dict[str, Any] = {}
    elif isinstance(partial, RangeConfig):
        values = partial.model_dump(exclude_none=True)
    else:
        values = {key: value for key, value in partial.items() if value is not None}

    try:
        given = RangeConfig.model_validate(values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid time range configuration: {exc.errors()[0].get('msg')}") from exc

    config = RangeConfig(
        start=given.start or DEFAULT_START,
        end=given.end or DEFAULT_END,
        interval=given.interval or DEFAULT_INTERVAL,
        sampling=given.sampling or SamplingMode.WINDOWED_REPRESENTATIVE,
        window_size=given.window_size or DEFAULT_WINDOW_SIZE,
        min_interval=given.min_interval or DEFAULT_MIN_INTERVAL,
        max_interval=given.max_interval or DEFAULT_MAX_INTERVAL,
        min_points=given.min_points or DEFAULT_MIN_POINTS,
        screen_multiplier=given.screen_multiplier or ViewportBudgets(),
    )

    if config.interval != "auto":
        parse_duration(config.interval)
    parse_duration(config.window_size)
    min_ms = parse_duration(config.min_interval)
    max_ms = parse_duration(config.max_interval)
    if min_ms > max_ms:
        raise ConfigError(
            f"min_interval ({config.min_interval}) must not exceed max_interval ({config.max_interval})"
        )
    return config
