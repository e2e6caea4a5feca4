"""Metrics wiring: middleware, exposition route and the instance gauge ticker."""

import asyncio
import os
from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST

from agentflow.bootstrapper import AppExtension
from agentflow.config import Settings
from agentflow.core.logging import get_logger
from agentflow.metrics.middleware import MetricsMiddleware
from agentflow.metrics.service import (
    InstanceMetric,
    MetricsService,
    RequestMetric,
    RequestTimeMetric,
)

logger = get_logger(__name__)

router = APIRouter(tags=["metrics"])


@router.get("/metrics", response_class=PlainTextResponse)
async def get_metrics(request: Request) -> PlainTextResponse:
    """Prometheus text exposition."""
    metrics: MetricsService = request.app.state.metrics
    return PlainTextResponse(metrics.get_all(), media_type=CONTENT_TYPE_LATEST)


class MetricsExtension(AppExtension):
    name = "metrics"

    def __init__(self, metrics: Optional[MetricsService] = None):
        self.metrics = metrics or MetricsService()
        self._ticker: Optional[asyncio.Task] = None
        self._settings: Optional[Settings] = None

    def setup(self, app: FastAPI, settings: Settings) -> None:
        self._settings = settings
        app.state.metrics = self.metrics
        if not settings.metrics_enabled:
            return

        self.metrics.register_gauge(RequestMetric, "HTTP requests served", ["path", "method", "status"])
        self.metrics.register_histogram(RequestTimeMetric, "HTTP request duration in seconds", ["path", "method"])
        self.metrics.register_gauge(InstanceMetric, "Running application instance", ["version", "pid", "app"])

        app.add_middleware(MetricsMiddleware, metrics=self.metrics)
        app.include_router(router)

    def tick_instance(self) -> None:
        settings = self._settings
        self.metrics.inc_gauge(
            InstanceMetric,
            1,
            {"version": settings.app_version, "pid": str(os.getpid()), "app": settings.app_name},
        )

    async def _run_ticker(self, interval: float) -> None:
        while True:
            self.tick_instance()
            await asyncio.sleep(interval)

    async def startup(self, app: FastAPI) -> None:
        if not self._settings.metrics_enabled:
            return
        interval = max(1, self._settings.metrics_instance_interval_seconds)
        self._ticker = asyncio.create_task(self._run_ticker(interval))

    async def shutdown(self, app: FastAPI) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            try:
                await self._ticker
            except asyncio.CancelledError:
                pass
            self._ticker = None
        gateway = self._settings.prometheus_pushgateway_url
        if gateway:
            try:
                self.metrics.push_metrics(gateway, self._settings.app_name)
            except OSError as exc:
                logger.warning("Failed to push metrics", data={"gateway": gateway, "error": str(exc)})
