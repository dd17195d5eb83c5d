from __future__ import annotations

from typing import Optional, Union

import structlog

from libs.order_common.models import OrderPayload
from libs.order_common.serdes_json import PayloadDecodeError, PayloadSchemaError, decode_order_payload
from .errors import MalformedJson, SchemaViolation, StoreError, ValidationError
from .interfaces import OrderCacheProtocol, OrderStorage
from .metrics import ServiceMetrics
from .order_cache import LockStripes

logger = structlog.get_logger(__name__)


class IngestPipeline:
    """
    validate -> durable write -> cache publish, in that order.
    The cache never shows an order the store has not committed.
    """

    def __init__(
        self,
        store: OrderStorage,
        cache: OrderCacheProtocol,
        metrics: Optional[ServiceMetrics] = None,
        strict: bool = False,
        lock_stripes: int = 64,
    ) -> None:
        self.store = store
        self.cache = cache
        self.metrics = metrics or ServiceMetrics()
        self.strict = strict
        self._write_locks = LockStripes(lock_stripes)

    def ingest(self, body: Union[bytes, str], order_uid: Optional[str] = None) -> OrderPayload:
        payload = self._validate(body, order_uid)

        # same-key ingests publish to the cache in the order they committed
        with self._write_locks.for_key(payload.order_uid):
            try:
                self.store.put(payload.order_uid, payload.raw)
            except StoreError:
                self.metrics.record_ingest_store_failure()
                raise
            self._publish(payload)

        self.metrics.record_ingest_success()
        logger.info("order stored", order_uid=payload.order_uid)
        return payload

    def _validate(self, body: Union[bytes, str], order_uid: Optional[str]) -> OrderPayload:
        try:
            return decode_order_payload(body, expected_order_uid=order_uid, strict=self.strict)
        except PayloadDecodeError as e:
            raise self._rejected(MalformedJson(str(e))) from e
        except PayloadSchemaError as e:
            raise self._rejected(SchemaViolation(str(e))) from e

    def _rejected(self, error: ValidationError) -> ValidationError:
        self.metrics.record_ingest_validation_failure(error.reason)
        logger.warning("invalid order data", reason=error.reason, error=str(error))
        return error

    def _publish(self, payload: OrderPayload) -> None:
        try:
            self.cache.insert(payload.order_uid, payload.raw)
        except Exception as e:
            # the row is committed; the next read of this id repopulates the cache
            logger.error("cache publish failed", order_uid=payload.order_uid, error=str(e))
