import logging
import os

_CONFIGURED = False
_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}

# Pipeline loggers that WIND_DEBUG switches to DEBUG regardless of LOG_LEVEL.
PIPELINE_LOGGERS = (
    "windbarb.services.wind",
    "windbarb.services.refresher",
)


def _resolve_log_level(name: str = "LOG_LEVEL", default: str = "INFO") -> int:
    raw = os.getenv(name, default).strip().upper()
    if raw in _LEVELS:
        return getattr(logging, raw, logging.INFO)
    return logging.INFO


def _wind_debug_enabled() -> bool:
    return os.getenv("WIND_DEBUG", "").strip().lower() in {"1", "true", "yes", "on"}


def configure_logging() -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return

    level = _resolve_log_level()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("uvicorn.error").setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(level)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    if _wind_debug_enabled():
        for name in PIPELINE_LOGGERS:
            logging.getLogger(name).setLevel(logging.DEBUG)
    _CONFIGURED = True
