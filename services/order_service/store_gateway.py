from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

import structlog
from sqlalchemy import Column, MetaData, Table, Text, create_engine, insert, select, text, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.pool import StaticPool

from libs.order_common.config import Settings
from .errors import StoreConstraintViolation, StoreError, StoreTimeout, StoreUnavailable
from .metrics import ServiceMetrics

logger = structlog.get_logger(__name__)

# postgres: query_canceled (statement_timeout), lock_not_available
_TIMEOUT_SQLSTATES = {"57014", "55P03"}


def build_engine(settings: Settings) -> Engine:
    url = make_url(settings.database_url)

    if url.get_backend_name() == "sqlite":
        kwargs = {
            "connect_args": {"check_same_thread": False, "timeout": settings.db_connect_timeout_sec},
        }
        if url.database in (None, "", ":memory:"):
            # one shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)

    connect_args = {}
    if url.get_backend_name() == "postgresql":
        connect_args = {
            "connect_timeout": settings.db_connect_timeout_sec,
            "options": f"-c statement_timeout={settings.db_statement_timeout_ms}",
        }
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_timeout=settings.db_pool_timeout_sec,
        connect_args=connect_args,
    )


def orders_table(metadata: MetaData, name: str = "orders", schema: Optional[str] = None) -> Table:
    return Table(
        name,
        metadata,
        Column("order_uid", Text, primary_key=True),
        Column("order_data", Text, nullable=False),
        schema=schema,
    )


def _is_timeout(err: DBAPIError) -> bool:
    if getattr(err.orig, "pgcode", None) in _TIMEOUT_SQLSTATES:
        return True
    message = str(err.orig).lower()
    return "timeout" in message or "timed out" in message or "database is locked" in message


class StoreGateway:
    """
    The orders table: one row per order_uid, payload kept verbatim as text.
    All SQLAlchemy failures leave this class as StoreError subclasses.
    """

    def __init__(
        self,
        engine: Engine,
        table_name: str = "orders",
        schema: Optional[str] = None,
        metrics: Optional[ServiceMetrics] = None,
        page_size: int = 500,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        self.engine = engine
        self.metadata = MetaData()
        self.table = orders_table(self.metadata, table_name, schema)
        self.schema = schema
        self.metrics = metrics
        self.page_size = page_size

    @contextmanager
    def _operation(self, operation: str) -> Iterator[None]:
        try:
            if self.metrics is not None:
                with self.metrics.time_store(operation):
                    yield
            else:
                yield
        except PoolTimeoutError as e:
            raise self._fail(operation, StoreTimeout(f"{operation}: connection pool timeout"), e) from e
        except IntegrityError as e:
            raise self._fail(operation, StoreConstraintViolation(f"{operation}: {e.orig}"), e) from e
        except DBAPIError as e:
            err_cls = StoreTimeout if _is_timeout(e) else StoreUnavailable
            raise self._fail(operation, err_cls(f"{operation}: {e.orig}"), e) from e
        except SQLAlchemyError as e:
            raise self._fail(operation, StoreUnavailable(f"{operation}: {e}"), e) from e

    def _fail(self, operation: str, error: StoreError, cause: Exception) -> StoreError:
        logger.error("store operation failed", operation=operation, kind=error.reason, error=str(cause))
        if self.metrics is not None:
            self.metrics.record_store_error(operation, error.reason)
        return error

    def create_schema(self) -> None:
        with self._operation("create_schema"):
            with self.engine.begin() as conn:
                if self.schema and self.engine.dialect.name == "postgresql":
                    conn.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{self.schema}"'))
                self.metadata.create_all(conn)

    def get(self, order_uid: str) -> Optional[str]:
        stmt = select(self.table.c.order_data).where(self.table.c.order_uid == order_uid)
        with self._operation("get"):
            with self.engine.connect() as conn:
                return conn.execute(stmt).scalar_one_or_none()

    def put(self, order_uid: str, raw: str) -> None:
        """Upsert; returns only after the transaction has committed."""
        with self._operation("put"):
            with self.engine.begin() as conn:
                stmt = self._upsert_statement(order_uid, raw)
                if stmt is not None:
                    conn.execute(stmt)
                    return

                result = conn.execute(
                    update(self.table).where(self.table.c.order_uid == order_uid).values(order_data=raw)
                )
                if result.rowcount == 0:
                    conn.execute(insert(self.table).values(order_uid=order_uid, order_data=raw))

    def _upsert_statement(self, order_uid: str, raw: str):
        dialect = self.engine.dialect.name
        if dialect == "postgresql":
            stmt = pg_insert(self.table)
        elif dialect == "sqlite":
            stmt = sqlite_insert(self.table)
        else:
            return None
        stmt = stmt.values(order_uid=order_uid, order_data=raw)
        return stmt.on_conflict_do_update(
            index_elements=[self.table.c.order_uid],
            set_={"order_data": stmt.excluded.order_data},
        )

    def list_all(self, page_size: Optional[int] = None) -> Iterator[Tuple[str, str]]:
        """Every row exactly once, keyset-paginated by order_uid."""
        page_size = self.page_size if page_size is None else page_size
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        last_uid: Optional[str] = None

        while True:
            stmt = (
                select(self.table.c.order_uid, self.table.c.order_data)
                .order_by(self.table.c.order_uid)
                .limit(page_size)
            )
            if last_uid is not None:
                stmt = stmt.where(self.table.c.order_uid > last_uid)

            with self._operation("list_all"):
                with self.engine.connect() as conn:
                    rows = conn.execute(stmt).all()

            for row in rows:
                yield row.order_uid, row.order_data

            if len(rows) < page_size:
                return
            last_uid = rows[-1].order_uid

    def ping(self) -> bool:
        try:
            with self._operation("ping"):
                with self.engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
            return True
        except StoreError:
            return False

    def dispose(self) -> None:
        self.engine.dispose()
