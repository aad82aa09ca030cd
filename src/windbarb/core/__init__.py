from windbarb.core.config import Settings, get_settings
from windbarb.core.exceptions import (
    AppValidationError,
    ConfigError,
    InvalidDuration,
    InvalidRange,
    InvalidTimestamp,
    UpstreamServiceError,
)
from windbarb.core.logging import configure_logging

__all__ = [
    "Settings",
    "get_settings",
    "AppValidationError",
    "ConfigError",
    "InvalidDuration",
    "InvalidRange",
    "InvalidTimestamp",
    "UpstreamServiceError",
    "configure_logging",
]
