"""
Request observability for the API.

Assigns a request ID (or reuses the caller's X-Request-ID), stores it in the
log context and logs one line per completed request.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from vis_site.logging_config import LogContext, get_logger

_request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

logger = get_logger(__name__)


def generate_request_id() -> str:
    return str(uuid.uuid4())


def get_request_id() -> str | None:
    """Get the current request ID from context."""
    return _request_id_ctx.get()


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """
    Adds X-Request-ID to every response and logs request completion.

    Requests slower than `slow_request_threshold_ms` are logged at WARNING.
    """

    def __init__(self, app: ASGIApp, *, slow_request_threshold_ms: float = 1000.0) -> None:
        super().__init__(app)
        self.slow_request_threshold_ms = slow_request_threshold_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or generate_request_id()
        token = _request_id_ctx.set(request_id)
        LogContext.set_request_id(request_id)
        LogContext.set_endpoint(str(request.url.path))
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "error_type": type(exc).__name__,
                    "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                },
                exc_info=True,
            )
            raise
        finally:
            _request_id_ctx.reset(token)
            LogContext.clear()

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = request_id
        meta: dict[str, Any] = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(duration_ms, 2),
        }
        if duration_ms >= self.slow_request_threshold_ms:
            meta["slow_request"] = True
            logger.warning("request_completed_slow", extra=meta)
        else:
            logger.info("request_completed", extra=meta)
        return response
