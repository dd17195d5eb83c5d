from __future__ import annotations

import threading
from typing import Callable, Optional

import structlog
from confluent_kafka import Consumer, KafkaError, KafkaException

from libs.order_common.config import KAFKA_BOOTSTRAP_SERVERS, ORDERS_TOPIC
from libs.order_common.kafka_factory import create_consumer

from .errors import StoreError, ValidationError
from .ingest_pipeline import IngestPipeline

logger = structlog.get_logger(__name__)


class ConsumerRunner:
    """Feeds raw order documents from a Kafka topic through the ingest pipeline."""

    def __init__(
        self,
        pipeline: IngestPipeline,
        topic: str = ORDERS_TOPIC,
        group_id: str = "order-service",
        bootstrap_servers: str = KAFKA_BOOTSTRAP_SERVERS,
        max_retries: int = 5,
        retry_backoff_sec: float = 2.0,
        consumer_factory: Optional[Callable[[], Consumer]] = None,
    ) -> None:
        self.pipeline = pipeline
        self.topic = topic
        self.group_id = group_id
        self.max_retries = max_retries
        self.retry_backoff_sec = retry_backoff_sec
        self._consumer_factory = consumer_factory or (
            lambda: create_consumer(group_id=group_id, auto_offset_reset="earliest", bootstrap_servers=bootstrap_servers)
        )
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_with_reconnect, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5)

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run_with_reconnect(self) -> None:
        """Wrapper that handles reconnection on failures."""
        retry_count = 0

        while not self._stop_event.is_set() and retry_count < self.max_retries:
            try:
                self._run()
                if self._stop_event.is_set():
                    break
                retry_count = 0
            except (KafkaException, StoreError) as e:
                retry_count += 1
                logger.error(
                    "consumer error",
                    attempt=retry_count,
                    max_retries=self.max_retries,
                    error=str(e),
                )
                if retry_count < self.max_retries:
                    logger.info("consumer reconnecting", backoff_sec=self.retry_backoff_sec)
                    self._stop_event.wait(self.retry_backoff_sec)

        if retry_count >= self.max_retries:
            logger.error("max retries reached, consumer stopped", topic=self.topic)

    def _run(self) -> None:
        """Main consumer loop."""
        consumer = self._consumer_factory()
        consumer.subscribe([self.topic])

        try:
            while not self._stop_event.is_set():
                msg = consumer.poll(1.0)
                if msg is None:
                    continue

                if msg.error():
                    # Topic not available yet - just wait, don't fail
                    if msg.error().code() == KafkaError.UNKNOWN_TOPIC_OR_PART:
                        continue
                    raise KafkaException(msg.error())

                try:
                    self.pipeline.ingest(msg.value())
                except ValidationError as e:
                    # a bad message is skipped, not retried
                    logger.warning("skipping invalid order message", topic=msg.topic(), error=str(e))
                except StoreError:
                    raise
                except Exception as e:
                    logger.exception("failed to process order message", topic=msg.topic(), error=str(e))

                # a StoreError propagates before the commit, so the message is redelivered
                consumer.commit(message=msg, asynchronous=False)

        finally:
            consumer.close()
