"""Request logging middleware for the KHQR API."""
from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .monitoring import observe_request

logger = logging.getLogger("khqr.http")


def route_path(request: Request) -> str:
    """Templated route path when routing matched, raw URL path otherwise."""

    route = request.scope.get("route")
    return route.path if route else request.url.path


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, route, status and latency of every request."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:  # type: ignore[override]
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            path = route_path(request)
            logger.log(
                _level_for(status_code),
                "request completed" if status_code < 500 else "request failed",
                extra={
                    "method": request.method,
                    "path": path,
                    "status_code": status_code,
                    "client": request.client.host if request.client else None,
                    "duration_ms": round(duration_ms, 2),
                },
            )
            observe_request(request.method, path, status_code, duration_ms)
