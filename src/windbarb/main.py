import logging
from contextlib import asynccontextmanager
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI
from fastapi import Request

from windbarb.api import get_service, router
from windbarb.api.dependencies import build_refresher
from windbarb.core.config import get_settings
from windbarb.core.logging import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {"name": "Wind", "description": "Sampled wind history, forecast merging and background refresh state."},
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    app.state.refresher = None
    if settings.refresh_enabled and settings.wind_direction_entity and settings.wind_speed_entity:
        try:
            app.state.refresher = build_refresher(settings)
        except ValueError as exc:
            logger.warning("Background refresh disabled: %s", str(exc))
        else:
            app.state.refresher.start()
    else:
        logger.info("Background refresh disabled (REFRESH_ENABLED=%s)", settings.refresh_enabled)
    try:
        yield
    finally:
        if app.state.refresher is not None:
            await app.state.refresher.stop()


app = FastAPI(
    title="Wind Barb Series API",
    version="1.0.0",
    description=(
        "Turns irregular Home Assistant wind history and forecast attributes into evenly-timed, "
        "outlier-resistant wind observation series for timeline plotting."
    ),
    openapi_tags=OPENAPI_TAGS,
    lifespan=lifespan,
)
app.include_router(router)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or uuid4().hex[:12]
    request.state.request_id = request_id
    started = perf_counter()
    logger.info(
        "request.start id=%s method=%s path=%s",
        request_id,
        request.method,
        request.url.path,
    )
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = (perf_counter() - started) * 1000.0
        logger.exception(
            "request.error id=%s method=%s path=%s duration_ms=%.2f",
            request_id,
            request.method,
            request.url.path,
            elapsed_ms,
        )
        raise
    elapsed_ms = (perf_counter() - started) * 1000.0
    response.headers["X-Request-ID"] = request_id
    logger.info(
        "request.end id=%s method=%s path=%s status=%s duration_ms=%.2f",
        request_id,
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


__all__ = ["app", "get_service"]
