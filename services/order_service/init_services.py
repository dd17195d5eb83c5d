from __future__ import annotations

from typing import Optional

import structlog

from libs.order_common.config import Settings
from .consumer_runner import ConsumerRunner
from .ingest_pipeline import IngestPipeline
from .interfaces import OrderCacheProtocol, OrderStorage
from .metrics import ServiceMetrics
from .order_cache import OrderCache
from .query_service import QueryService
from .store_gateway import StoreGateway, build_engine

logger = structlog.get_logger(__name__)


class OrderServices:
    """Everything a request handler needs, built once and passed in explicitly."""

    def __init__(
        self,
        store: OrderStorage,
        cache: OrderCacheProtocol,
        metrics: ServiceMetrics,
        pipeline: IngestPipeline,
        query: QueryService,
        consumer_runner: Optional[ConsumerRunner] = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.metrics = metrics
        self.pipeline = pipeline
        self.query = query
        self.consumer_runner = consumer_runner
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        """Create the table, warm the cache, then open the consumer. Runs once."""
        if self._started:
            return

        if isinstance(self.store, StoreGateway):
            self.store.create_schema()

        loaded = self.cache.warm_from(self.store.list_all())
        self.metrics.set_cache_size(len(self.cache))
        logger.info("order cache warmed", orders=loaded)

        if self.consumer_runner is not None:
            self.consumer_runner.start()
        self._started = True

    def stop(self) -> None:
        if self.consumer_runner is not None:
            self.consumer_runner.stop()
        if isinstance(self.store, StoreGateway):
            self.store.dispose()
        self._started = False


def build_services(settings: Optional[Settings] = None) -> OrderServices:
    settings = settings or Settings()
    metrics = ServiceMetrics()

    store = StoreGateway(
        build_engine(settings),
        table_name=settings.orders_table,
        schema=settings.orders_schema,
        metrics=metrics,
        page_size=settings.warmup_page_size,
    )
    cache = OrderCache(stripes=settings.cache_lock_stripes)
    pipeline = IngestPipeline(
        store,
        cache,
        metrics=metrics,
        strict=settings.order_schema_strict,
        lock_stripes=settings.cache_lock_stripes,
    )
    query = QueryService(store, cache, metrics=metrics)

    consumer_runner = None
    if settings.consumer_enabled:
        consumer_runner = ConsumerRunner(
            pipeline,
            topic=settings.orders_topic,
            group_id=settings.consumer_group,
            bootstrap_servers=settings.kafka_bootstrap_servers,
        )

    return OrderServices(store, cache, metrics, pipeline, query, consumer_runner)
