import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from services.order_service.ingest_pipeline import IngestPipeline
from services.order_service.init_services import OrderServices
from services.order_service.metrics import ServiceMetrics
from services.order_service.order_cache import OrderCache
from services.order_service.query_service import QueryService
from services.order_service.store_gateway import StoreGateway
from services.order_service.tests.helpers import CountingStore


@pytest.fixture
def counting_store():
    return CountingStore()


@pytest.fixture
def metrics():
    return ServiceMetrics()


@pytest.fixture
def sqlite_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture
def gateway(sqlite_engine, metrics):
    gw = StoreGateway(sqlite_engine, metrics=metrics, page_size=3)
    gw.create_schema()
    return gw


@pytest.fixture
def sqlite_services(gateway, metrics):
    cache = OrderCache()
    pipeline = IngestPipeline(gateway, cache, metrics=metrics)
    query = QueryService(gateway, cache, metrics=metrics)
    return OrderServices(gateway, cache, metrics, pipeline, query)
