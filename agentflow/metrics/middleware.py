"""Request count and latency metrics."""

import re
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.routing import Match
from starlette.responses import Response

from agentflow.metrics.service import MetricsService, RequestMetric, RequestTimeMetric

IGNORED_PATHS = [re.compile(p) for p in (r"^/health/check", r"^/swagger-api", r"^/metrics")]


def _route_path(request: Request) -> str:
    """Template of the route that serves ``request``, include prefixes and all."""
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", None) or request.url.path
    return request.url.path


class MetricsMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, metrics: MetricsService):
        super().__init__(app)
        self.metrics = metrics

    @staticmethod
    def is_ignored(path: str) -> bool:
        return not path or any(pattern.match(path) for pattern in IGNORED_PATHS)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if self.is_ignored(request.url.path):
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        path = _route_path(request)

        self.metrics.inc_gauge(
            RequestMetric,
            1,
            {"path": path, "method": request.method, "status": str(response.status_code)},
        )
        self.metrics.observe_histogram(
            RequestTimeMetric,
            time.perf_counter() - start,
            {"path": path, "method": request.method},
        )
        return response
