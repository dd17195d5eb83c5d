import os
from typing import Optional

from pydantic import BaseModel


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./orders.db")
ORDERS_TABLE = os.getenv("ORDERS_TABLE", "orders")
ORDERS_SCHEMA = os.getenv("ORDERS_SCHEMA") or None
DB_POOL_TIMEOUT_SEC = float(os.getenv("DB_POOL_TIMEOUT_SEC", "5"))
DB_CONNECT_TIMEOUT_SEC = int(os.getenv("DB_CONNECT_TIMEOUT_SEC", "5"))
DB_STATEMENT_TIMEOUT_MS = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "5000"))

ORDER_SCHEMA_STRICT = _env_bool("ORDER_SCHEMA_STRICT")
WARMUP_PAGE_SIZE = int(os.getenv("WARMUP_PAGE_SIZE", "500"))
CACHE_LOCK_STRIPES = int(os.getenv("CACHE_LOCK_STRIPES", "64"))

KAFKA_BOOTSTRAP_SERVERS = os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092")
ORDERS_TOPIC = os.getenv("ORDERS_TOPIC", "orders.raw")
ORDERS_CONSUMER_ENABLED = _env_bool("ORDERS_CONSUMER_ENABLED")
ORDERS_CONSUMER_GROUP = os.getenv("ORDERS_CONSUMER_GROUP", "order-service")

LOG_LEVEL = os.getenv("LOG_LEVEL", "info")
LOG_JSON = _env_bool("LOG_JSON", "true")
PORT = int(os.getenv("PORT", "3000"))


class Settings(BaseModel):
    database_url: str = DATABASE_URL
    orders_table: str = ORDERS_TABLE
    orders_schema: Optional[str] = ORDERS_SCHEMA
    db_pool_timeout_sec: float = DB_POOL_TIMEOUT_SEC
    db_connect_timeout_sec: int = DB_CONNECT_TIMEOUT_SEC
    db_statement_timeout_ms: int = DB_STATEMENT_TIMEOUT_MS

    order_schema_strict: bool = ORDER_SCHEMA_STRICT
    warmup_page_size: int = WARMUP_PAGE_SIZE
    cache_lock_stripes: int = CACHE_LOCK_STRIPES

    kafka_bootstrap_servers: str = KAFKA_BOOTSTRAP_SERVERS
    orders_topic: str = ORDERS_TOPIC
    consumer_enabled: bool = ORDERS_CONSUMER_ENABLED
    consumer_group: str = ORDERS_CONSUMER_GROUP

    log_level: str = LOG_LEVEL
    log_json: bool = LOG_JSON
    port: int = PORT
