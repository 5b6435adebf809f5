"""
Request metrics middleware.

Labels requests by route template rather than raw path, so
``/api/items/1`` and ``/api/items/2`` share one series.
"""

import time
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware


def endpoint_label(request: Request) -> str:
    """Matched route template, or the raw path when no route matched (404s)."""
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Reports method, endpoint label, status and duration to ``track_func``."""

    def __init__(self, app, track_func: Callable):
        super().__init__(app)
        self.track_func = track_func

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)

        self.track_func(
            method=request.method,
            endpoint=endpoint_label(request),
            status_code=response.status_code,
            duration=time.time() - start_time,
        )
        return response
