"""Map-backed wrapper around prometheus_client primitives."""

from typing import Dict, List, Optional, Sequence

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    pushadd_to_gateway,
)

Labels = Dict[str, str]

RequestMetric = "requests"
RequestTimeMetric = "requests_time"
InstanceMetric = "instance"


class MetricsService:
    """Owns a private registry; metrics are addressed by name.

    Updates to a name that was never registered are ignored. Label names
    must match the ones given at registration, otherwise ``ValueError``.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        self._counters: Dict[str, Counter] = {}
        self._gauges: Dict[str, Gauge] = {}
        self._histograms: Dict[str, Histogram] = {}

    def get_all(self) -> str:
        return generate_latest(self.registry).decode("utf-8")

    def clear_all(self) -> None:
        for metric in [*self._counters.values(), *self._gauges.values(), *self._histograms.values()]:
            self.registry.unregister(metric)
        self._counters.clear()
        self._gauges.clear()
        self._histograms.clear()

    def get_counter(self, name: str) -> Optional[Counter]:
        return self._counters.get(name)

    def get_gauge(self, name: str) -> Optional[Gauge]:
        return self._gauges.get(name)

    def get_histogram(self, name: str) -> Optional[Histogram]:
        return self._histograms.get(name)

    def register_counter(self, name: str, description: str, labels: Sequence[str] = ()) -> Counter:
        if name not in self._counters:
            self._counters[name] = Counter(name, description, list(labels), registry=self.registry)
        return self._counters[name]

    def register_gauge(self, name: str, description: str, labels: Sequence[str] = ()) -> Gauge:
        if name not in self._gauges:
            self._gauges[name] = Gauge(name, description, list(labels), registry=self.registry)
        return self._gauges[name]

    def register_histogram(
        self,
        name: str,
        description: str,
        labels: Sequence[str] = (),
        buckets: Optional[List[float]] = None,
    ) -> Histogram:
        if name not in self._histograms:
            kwargs = {"buckets": buckets} if buckets else {}
            self._histograms[name] = Histogram(
                name, description, list(labels), registry=self.registry, **kwargs
            )
        return self._histograms[name]

    @staticmethod
    def _child(metric, labels: Optional[Labels]):
        return metric.labels(**labels) if labels else metric

    def inc_counter(self, name: str, value: float = 1, labels: Optional[Labels] = None) -> None:
        counter = self._counters.get(name)
        if counter is not None:
            self._child(counter, labels).inc(value)

    def set_gauge(self, name: str, value: float, labels: Optional[Labels] = None) -> None:
        gauge = self._gauges.get(name)
        if gauge is not None:
            self._child(gauge, labels).set(value)

    def inc_gauge(self, name: str, value: float = 1, labels: Optional[Labels] = None) -> None:
        gauge = self._gauges.get(name)
        if gauge is not None:
            self._child(gauge, labels).inc(value)

    def observe_histogram(self, name: str, value: float, labels: Optional[Labels] = None) -> None:
        histogram = self._histograms.get(name)
        if histogram is not None:
            self._child(histogram, labels).observe(value)

    def push_metrics(self, gateway_url: str, job_name: str) -> None:
        pushadd_to_gateway(gateway_url, job=job_name, registry=self.registry, timeout=10)
