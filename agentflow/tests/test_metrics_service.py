"""Tests for the prometheus-backed MetricsService."""

import pytest
from fastapi import APIRouter, FastAPI
from fastapi.testclient import TestClient

from agentflow.metrics.middleware import MetricsMiddleware
from agentflow.metrics.service import MetricsService, RequestMetric, RequestTimeMetric


@pytest.fixture
def metrics():
    return MetricsService()


def test_counter_exposed_with_total_suffix(metrics):
    metrics.register_counter("jobs", "Jobs processed", ["queue"])
    metrics.inc_counter("jobs", 2, {"queue": "default"})

    assert metrics.registry.get_sample_value("jobs_total", {"queue": "default"}) == 2.0
    assert "jobs_total" in metrics.get_all()


def test_gauge_set_and_inc(metrics):
    metrics.register_gauge("workers", "Active workers")
    metrics.set_gauge("workers", 3)
    metrics.inc_gauge("workers", 2)

    assert metrics.registry.get_sample_value("workers") == 5


def test_histogram_observe(metrics):
    metrics.register_histogram("latency", "Latency", ["path"], buckets=[0.1, 1.0])
    metrics.observe_histogram("latency", 0.5, {"path": "/x"})

    assert metrics.registry.get_sample_value("latency_bucket", {"path": "/x", "le": "0.1"}) == 0.0
    assert metrics.registry.get_sample_value("latency_bucket", {"path": "/x", "le": "1.0"}) == 1.0
    assert metrics.registry.get_sample_value("latency_count", {"path": "/x"}) == 1.0


def test_registration_is_idempotent(metrics):
    first = metrics.register_gauge("g", "Gauge")
    assert metrics.register_gauge("g", "Gauge") is first


def test_unregistered_metric_updates_are_ignored(metrics):
    metrics.inc_counter("missing")
    metrics.set_gauge("missing", 1)
    metrics.observe_histogram("missing", 1)
    assert "missing" not in metrics.get_all()


def test_wrong_labels_raise(metrics):
    metrics.register_gauge("requests", "Requests", ["path", "method"])
    with pytest.raises(ValueError):
        metrics.inc_gauge("requests", 1, {"path": "/x"})


def test_clear_all(metrics):
    metrics.register_counter("c", "Counter")
    metrics.register_histogram("h", "Histogram")
    metrics.clear_all()

    assert metrics.get_counter("c") is None
    assert metrics.get_all().strip() == ""
    # Names are free again after clearing
    metrics.register_counter("c", "Counter")


def test_middleware_labels_full_route_template(metrics):
    metrics.register_gauge(RequestMetric, "Requests", ["path", "method", "status"])
    metrics.register_histogram(RequestTimeMetric, "Request time", ["path", "method"])

    graphs = APIRouter(prefix="/graphs")
    legacy = APIRouter(prefix="/graphs")

    @graphs.get("/{graph_id}")
    async def get_graph(graph_id: str):
        return {"id": graph_id}

    @legacy.get("/{graph_id}")
    async def get_legacy_graph(graph_id: str):
        return {"id": graph_id}

    v1 = APIRouter(prefix="/v1")
    v1.include_router(graphs)
    v0 = APIRouter(prefix="/v0")
    v0.include_router(legacy)

    app = FastAPI()
    app.include_router(v1)
    app.include_router(v0)
    app.add_middleware(MetricsMiddleware, metrics=metrics)

    with TestClient(app) as client:
        client.get("/v1/graphs/a")
        client.get("/v1/graphs/b")
        client.get("/v0/graphs/a")
        client.get("/nowhere")

    def requests(path, status="200"):
        return metrics.registry.get_sample_value(
            RequestMetric, {"path": path, "method": "GET", "status": status}
        )

    assert requests("/v1/graphs/{graph_id}") == 2
    assert requests("/v0/graphs/{graph_id}") == 1
    assert requests("/nowhere", "404") == 1
    assert requests("/graphs/{graph_id}") is None
