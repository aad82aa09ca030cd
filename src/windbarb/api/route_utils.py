from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, TypeVar

from fastapi import HTTPException

T = TypeVar("T")

SERVICE_ERROR_RESPONSES = {
    400: {"description": "Invalid time range, duration token or sampling configuration."},
    502: {"description": "Home Assistant host is unreachable or misconfigured."},
}


def _to_http_exception(
    exc: Exception,
    *,
    logger: logging.Logger,
    endpoint: str,
    context: dict[str, Any] | None,
) -> HTTPException:
    if isinstance(exc, ValueError):
        return HTTPException(status_code=400, detail=str(exc))
    context_text = ""
    if context:
        context_text = " " + " ".join(f"{key}={value}" for key, value in context.items())
    logger.warning("Upstream Home Assistant failure on %s endpoint%s: detail=%s", endpoint, context_text, str(exc))
    return HTTPException(status_code=502, detail=str(exc))


def call_service_or_http(
    call: Callable[[], T],
    *,
    logger: logging.Logger,
    endpoint: str,
    context: dict[str, Any] | None = None,
) -> T:
    try:
        return call()
    except (ValueError, RuntimeError) as exc:
        raise _to_http_exception(exc, logger=logger, endpoint=endpoint, context=context) from exc


async def await_service_or_http(
    call: Callable[[], Awaitable[T]],
    *,
    logger: logging.Logger,
    endpoint: str,
    context: dict[str, Any] | None = None,
) -> T:
    try:
        return await call()
    except (ValueError, RuntimeError) as exc:
        raise _to_http_exception(exc, logger=logger, endpoint=endpoint, context=context) from exc
