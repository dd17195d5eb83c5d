from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from libs.order_common.config import Settings
from libs.order_common.logging_setup import configure_logging
from services.order_service.app.api.routes import router, get_services
from services.order_service.init_services import OrderServices, build_services


def create_app(services: Optional[OrderServices] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    state = {"services": services}

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup: no traffic until the cache is warm
        if state["services"] is None:
            configure_logging("order-service", settings.log_level, settings.log_json)
            state["services"] = build_services(settings)
        state["services"].start()
        yield
        # Shutdown
        state["services"].stop()

    def _services() -> OrderServices:
        if state["services"] is None:
            raise RuntimeError("OrderServices are not built yet")
        return state["services"]

    app = FastAPI(title="order-service", lifespan=lifespan)
    app.include_router(router)
    app.dependency_overrides[get_services] = _services
    return app
