from __future__ import annotations

from threading import Lock

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Gauge, Histogram, generate_latest


class RequestMetrics:
    """HTTP request instruments backed by a registry this object owns.

    Nothing is registered globally: the server builds one instance at startup and
    hands it to the middleware, the instrumented routes and the scrape endpoint.
    """

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self.requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["path", "code"],
            registry=self.registry,
        )
        self.request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "Request latency in seconds",
            ["path"],
            registry=self.registry,
        )
        self.in_flight_requests = Gauge(
            "http_in_flight_requests",
            "Current number of in-flight HTTP requests.",
            registry=self.registry,
        )
        # prometheus_client gauges have no public read; mirror the value for the drain check.
        self._lock = Lock()
        self._in_flight = 0

    def observe_request(self, path: str, status_code: int, elapsed_seconds: float) -> None:
        self.request_duration_seconds.labels(path=path).observe(elapsed_seconds)
        self.requests_total.labels(path=path, code=str(status_code)).inc()

    def request_started(self) -> None:
        with self._lock:
            self._in_flight += 1
            self.in_flight_requests.inc()

    def request_finished(self) -> None:
        with self._lock:
            self._in_flight -= 1
            self.in_flight_requests.dec()

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

    def render(self) -> bytes:
        return generate_latest(self.registry)
