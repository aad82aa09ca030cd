class AppValidationError(ValueError):
    """Raised when user input or domain constraints are invalid."""


class ConfigError(AppValidationError):
    """Raised when a range or sampling configuration cannot be resolved."""


class InvalidDuration(ConfigError):
    """Raised when a duration token does not match ``<number>(min|h|d)``."""


class InvalidRange(ConfigError):
    """Raised when a resolved time range is empty or inverted."""


class InvalidTimestamp(ConfigError):
    """Raised when an absolute range bound is not a valid ISO-8601 timestamp."""


class UpstreamServiceError(RuntimeError):
    """Raised when the Home Assistant host is unreachable or misconfigured."""
