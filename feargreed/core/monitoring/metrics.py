"""Prometheus metrics helpers for the ingestion service."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest


class MetricsCollector:
    """Collects and exposes ingestion, retention and source request metrics."""

    def __init__(self, *, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.source_request_seconds = Histogram(
            "feargreed_source_request_seconds",
            "Latency distribution for requests to the index provider.",
            ("endpoint",),
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, float("inf")),
            registry=self.registry,
        )
        self.source_failures_total = Counter(
            "feargreed_source_failures_total",
            "Failed requests to the index provider.",
            ("endpoint",),
            registry=self.registry,
        )
        self.ingestion_runs_total = Counter(
            "feargreed_ingestion_runs_total",
            "Ingestion and retention runs grouped by job and outcome.",
            ("job", "outcome"),
            registry=self.registry,
        )
        self.records_inserted_total = Counter(
            "feargreed_records_inserted_total",
            "Daily index records inserted into the store.",
            ("job",),
            registry=self.registry,
        )
        self.records_purged_total = Counter(
            "feargreed_records_purged_total",
            "Daily index records removed by the retention sweep.",
            registry=self.registry,
        )
        self.last_success_timestamp = Gauge(
            "feargreed_last_success_timestamp_seconds",
            "Unix time of the last successful run per job.",
            ("job",),
            registry=self.registry,
        )

    def observe_request(self, endpoint: str, latency_seconds: float, *, success: bool = True) -> None:
        """Record one request to the provider."""

        self.source_request_seconds.labels(endpoint=endpoint).observe(latency_seconds)
        if not success:
            self.source_failures_total.labels(endpoint=endpoint).inc()

    def record_run(self, job: str, outcome: str, *, inserted: int = 0, success_at: float | None = None) -> None:
        """Record the outcome of an ingestion run."""

        self.ingestion_runs_total.labels(job=job, outcome=outcome).inc()
        if inserted:
            self.records_inserted_total.labels(job=job).inc(inserted)
        if success_at is not None:
            self.last_success_timestamp.labels(job=job).set(success_at)

    def record_purge(self, deleted: int, *, success_at: float) -> None:
        """Record a completed retention sweep."""

        self.ingestion_runs_total.labels(job="retention", outcome="purged").inc()
        self.records_purged_total.inc(deleted)
        self.last_success_timestamp.labels(job="retention").set(success_at)

    def render(self) -> bytes:
        """Render metrics in Prometheus exposition format."""

        return generate_latest(self.registry)


_DEFAULT_COLLECTOR: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Return the global metrics collector instance."""

    global _DEFAULT_COLLECTOR
    if _DEFAULT_COLLECTOR is None:
        _DEFAULT_COLLECTOR = MetricsCollector()
    return _DEFAULT_COLLECTOR


def configure_metrics_collector(collector: MetricsCollector | None) -> None:
    """Override the global metrics collector for application wiring or tests."""

    global _DEFAULT_COLLECTOR
    _DEFAULT_COLLECTOR = collector
