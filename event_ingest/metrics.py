"""
Prometheus metrics for the event ingest service.
"""
from prometheus_client import Counter, Histogram, Gauge, Info, CollectorRegistry


class Metrics:
    """
    Centralized metrics for the event ingest service.

    Each instance owns its registry, so several apps can live in one process.
    """

    def __init__(self, service_name: str = "event-ingest", version: str = "0.1.0", registry=None):
        self.service_name = service_name
        self.version = version
        self.registry = registry or CollectorRegistry()

        # HTTP Metrics
        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["service", "method", "path", "status"],
            registry=self.registry,
        )

        self.http_request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["service", "method", "path"],
            registry=self.registry,
        )

        self.http_requests_active = Gauge(
            "http_requests_active",
            "Number of active HTTP requests",
            ["service"],
            registry=self.registry,
        )
        self.http_requests_active.labels(service=service_name).set(0)

        # Application Info
        self.app_info = Info(
            "app",
            "Application information",
            registry=self.registry,
        )
        self.app_info.info({"service": service_name, "version": version})

        self.app_up = Gauge(
            "app_up",
            "Application up status (1=up, 0=down)",
            ["service", "version"],
            registry=self.registry,
        )
        self.app_up.labels(service=service_name, version=version).set(1)

        # Ingestion metrics
        self.events_accepted_total = Counter(
            "event_ingest_events_accepted_total",
            "Total events accepted",
            registry=self.registry,
        )

        self.events_rejected_total = Counter(
            "event_ingest_events_rejected_total",
            "Total events rejected, by error class",
            ["reason"],
            registry=self.registry,
        )

        self.event_size_bytes = Histogram(
            "event_ingest_event_size_bytes",
            "Accepted request body size in bytes",
            buckets=(256, 1024, 4096, 16384, 65536, 262144, 1048576),
            registry=self.registry,
        )

    def record_event_accepted(self, size_bytes: int):
        """Record an accepted event."""
        self.events_accepted_total.inc()
        self.event_size_bytes.observe(size_bytes)

    def record_event_rejected(self, reason: str):
        """Record a rejected request; ``reason`` is the error class name."""
        self.events_rejected_total.labels(reason=reason).inc()
