from confluent_kafka import Consumer
from .config import KAFKA_BOOTSTRAP_SERVERS


def create_consumer(group_id: str, auto_offset_reset: str = "earliest", bootstrap_servers: str = KAFKA_BOOTSTRAP_SERVERS) -> Consumer:
    # offsets are committed manually, only after the order is durably stored
    conf = {
        "bootstrap.servers": bootstrap_servers,
        "group.id": group_id,
        "auto.offset.reset": auto_offset_reset,
        "enable.auto.commit": False,
    }
    return Consumer(conf)
