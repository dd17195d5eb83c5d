from __future__ import annotations

from typing import Optional

import structlog

from .errors import OrderNotFound, StoreError
from .interfaces import OrderCacheProtocol, OrderStorage
from .metrics import ServiceMetrics

logger = structlog.get_logger(__name__)


class QueryService:
    def __init__(
        self,
        store: OrderStorage,
        cache: OrderCacheProtocol,
        metrics: Optional[ServiceMetrics] = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.metrics = metrics or ServiceMetrics()

    def get(self, order_uid: str) -> str:
        """
        Returns the verbatim payload for order_uid.
        Raises OrderNotFound if the store has no such row, StoreError if the store fails.
        """
        hit = self.cache.get(order_uid)
        if hit is not None:
            self.metrics.record_cache_hit()
            return hit

        self.metrics.record_cache_miss()
        try:
            raw = self.store.get(order_uid)
        except StoreError:
            logger.error("order lookup failed", order_uid=order_uid)
            raise

        if raw is None:
            self.metrics.record_not_found()
            # negative results are not cached
            raise OrderNotFound(order_uid)

        logger.info("order loaded from store", order_uid=order_uid)
        if not self.cache.insert_if_absent(order_uid, raw):
            # an ingest published a newer payload while we were reading
            newer = self.cache.get(order_uid)
            if newer is not None:
                return newer
        return raw
