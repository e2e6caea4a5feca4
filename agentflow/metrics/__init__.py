"""Prometheus metrics."""

from agentflow.metrics.middleware import MetricsMiddleware
from agentflow.metrics.service import (
    InstanceMetric,
    MetricsService,
    RequestMetric,
    RequestTimeMetric,
)

__all__ = [
    "InstanceMetric",
    "MetricsMiddleware",
    "MetricsService",
    "RequestMetric",
    "RequestTimeMetric",
]
