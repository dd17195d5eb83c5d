from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Gauge, Histogram, generate_latest


class ServiceMetrics:
    """
    Counters and timers exposed by the order service core.
    Each instance owns its registry so several services (or tests) can coexist.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry or CollectorRegistry()

        self.cache_hits = Counter(
            "order_cache_hits_total", "Reads served from the order cache", registry=self.registry
        )
        self.cache_misses = Counter(
            "order_cache_misses_total", "Reads that fell through to the store", registry=self.registry
        )
        self.cache_entries = Gauge(
            "order_cache_entries", "Orders currently held in the cache", registry=self.registry
        )
        self.store_errors = Counter(
            "order_store_errors_total",
            "Failed store operations",
            ["operation", "kind"],
            registry=self.registry,
        )
        self.store_latency = Histogram(
            "order_store_request_seconds",
            "Store operation latency",
            ["operation"],
            registry=self.registry,
        )
        self.ingest = Counter(
            "order_ingest_total", "Ingest outcomes", ["status"], registry=self.registry
        )
        self.not_found = Counter(
            "order_not_found_total", "Reads for ids absent from cache and store", registry=self.registry
        )
        self.ingest_validation_failures = Counter(
            "order_ingest_validation_failures_total",
            "Ingest calls rejected before reaching storage",
            ["reason"],
            registry=self.registry,
        )

    def record_cache_hit(self) -> None:
        self.cache_hits.inc()

    def record_cache_miss(self) -> None:
        self.cache_misses.inc()

    def record_not_found(self) -> None:
        self.not_found.inc()

    def record_store_error(self, operation: str, kind: str) -> None:
        self.store_errors.labels(operation=operation, kind=kind).inc()

    def record_ingest_success(self) -> None:
        self.ingest.labels(status="created").inc()

    def record_ingest_store_failure(self) -> None:
        self.ingest.labels(status="db_error").inc()

    def record_ingest_validation_failure(self, reason: str) -> None:
        self.ingest.labels(status="invalid").inc()
        self.ingest_validation_failures.labels(reason=reason).inc()

    def set_cache_size(self, size: int) -> None:
        self.cache_entries.set(size)

    @contextmanager
    def time_store(self, operation: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            self.store_latency.labels(operation=operation).observe(time.perf_counter() - start)

    def value(self, name: str, labels: Optional[dict] = None) -> float:
        """Current sample value, 0.0 if the series was never touched."""
        sample = self.registry.get_sample_value(name, labels or {})
        return sample if sample is not None else 0.0

    def render(self) -> Tuple[bytes, str]:
        return generate_latest(self.registry), CONTENT_TYPE_LATEST
