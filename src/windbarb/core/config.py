from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    ha_base_url: str
    ha_token: str
    request_timeout_seconds: float
    wind_direction_entity: str
    wind_speed_entity: str
    wind_gust_entity: str | None = None
    wind_speed_unit: str = "m/s"
    forecast_format: str = "time_series"
    forecast_entity: str | None = None
    forecast_direction_entity: str | None = None
    forecast_speed_entity: str | None = None
    forecast_gust_entity: str | None = None
    forecast_hours: int = 48
    forecast_display_hours: int = 6
    time_range_start: str = "-24h"
    time_range_end: str = "now"
    time_range_interval: str = "auto"
    time_range_sampling: str = "windowed_representative"
    time_range_window_size: str = "10min"
    default_viewport_width: int = 1024
    refresh_enabled: bool = True
    refresh_interval_seconds: float = 300.0


def _strip_wrapping_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def _load_dotenv_if_present() -> None:
    env_paths = [
        Path.cwd() / ".env",
        Path(__file__).resolve().parents[3] / ".env",
    ]
    for env_path in env_paths:
        if not env_path.exists():
            continue
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            key = key.strip()
            value = _strip_wrapping_quotes(value.strip())
            if key:
                os.environ.setdefault(key, value)
        break


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _env_optional(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


def _normalize_base_url(raw_url: str) -> str:
    """Strip trailing slashes and a trailing ``/api`` segment.

    Both ``http://homeassistant.local:8123`` and
    ``http://homeassistant.local:8123/api/`` resolve to the same host root.
    """
    url = raw_url.strip().rstrip("/")
    if url.endswith("/api"):
        url = url[: -len("/api")]
    return url


def get_settings() -> Settings:
    _load_dotenv_if_present()
    return Settings(
        ha_base_url=_normalize_base_url(os.getenv("HA_BASE_URL", "")),
        ha_token=os.getenv("HA_TOKEN", ""),
        request_timeout_seconds=float(os.getenv("REQUEST_TIMEOUT_SECONDS", "20")),
        wind_direction_entity=os.getenv("WIND_DIRECTION_ENTITY", "").strip(),
        wind_speed_entity=os.getenv("WIND_SPEED_ENTITY", "").strip(),
        wind_gust_entity=_env_optional("WIND_GUST_ENTITY"),
        wind_speed_unit=os.getenv("WIND_SPEED_UNIT", "m/s").strip(),
        forecast_format=os.getenv("FORECAST_FORMAT", "time_series").strip().lower(),
        forecast_entity=_env_optional("FORECAST_ENTITY"),
        forecast_direction_entity=_env_optional("FORECAST_DIRECTION_ENTITY"),
        forecast_speed_entity=_env_optional("FORECAST_SPEED_ENTITY"),
        forecast_gust_entity=_env_optional("FORECAST_GUST_ENTITY"),
        forecast_hours=int(os.getenv("FORECAST_HOURS", "48")),
        forecast_display_hours=int(os.getenv("FORECAST_DISPLAY_HOURS", "6")),
        time_range_start=os.getenv("TIME_RANGE_START", "-24h").strip(),
        time_range_end=os.getenv("TIME_RANGE_END", "now").strip(),
        time_range_interval=os.getenv("TIME_RANGE_INTERVAL", "auto").strip(),
        time_range_sampling=os.getenv("TIME_RANGE_SAMPLING", "windowed_representative").strip(),
        time_range_window_size=os.getenv("TIME_RANGE_WINDOW_SIZE", "10min").strip(),
        default_viewport_width=int(os.getenv("DEFAULT_VIEWPORT_WIDTH", "1024")),
        refresh_enabled=_env_bool("REFRESH_ENABLED", True),
        refresh_interval_seconds=float(os.getenv("REFRESH_INTERVAL_SECONDS", str(5 * 60))),
    )


get_settings = lru_cache(maxsize=1)(get_settings)


def clear_settings_cache() -> None:
    get_settings.cache_clear()  # type: ignore[attr-defined]
