from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.concurrency import run_in_threadpool

from services.order_service.errors import (
    OrderNotFound,
    StoreConstraintViolation,
    StoreError,
    StoreTimeout,
    ValidationError,
)
from services.order_service.init_services import OrderServices

router = APIRouter()


def get_services() -> OrderServices:
    """
    This should be overridden in app/main.py so every handler shares the services built at startup.
    """
    raise RuntimeError("OrderServices dependency is not configured")


def _store_http_error(e: StoreError) -> HTTPException:
    if isinstance(e, StoreTimeout):
        return HTTPException(status_code=504, detail="Database timeout")
    if isinstance(e, StoreConstraintViolation):
        return HTTPException(status_code=500, detail="Database error")
    return HTTPException(status_code=503, detail="Database unavailable")


def _ingest(services: OrderServices, body: bytes, order_uid: Optional[str] = None) -> dict:
    try:
        payload = services.pipeline.ingest(body, order_uid=order_uid)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreError as e:
        raise _store_http_error(e)

    services.metrics.set_cache_size(len(services.cache))
    return {
        "message": f"Order with id {payload.order_uid} stored successfully",
        "orderUid": payload.order_uid,
    }


@router.put("/orders")
async def put_order(request: Request, services: OrderServices = Depends(get_services)):
    body = await request.body()
    return await run_in_threadpool(_ingest, services, body)


@router.post("/orders", status_code=201)
async def create_order(request: Request, services: OrderServices = Depends(get_services)):
    body = await request.body()
    return await run_in_threadpool(_ingest, services, body)


@router.put("/orders/{order_uid}")
async def put_order_by_id(order_uid: str, request: Request, services: OrderServices = Depends(get_services)):
    body = await request.body()
    return await run_in_threadpool(_ingest, services, body, order_uid)


@router.get("/orders/{order_uid}")
def get_order(order_uid: str, services: OrderServices = Depends(get_services)):
    try:
        raw = services.query.get(order_uid)
    except OrderNotFound:
        raise HTTPException(status_code=404, detail="Order not found")
    except StoreError as e:
        raise _store_http_error(e)

    services.metrics.set_cache_size(len(services.cache))
    # stored verbatim, returned verbatim
    return Response(content=raw, media_type="application/json")


@router.get("/health")
def health(services: OrderServices = Depends(get_services)):
    ping = getattr(services.store, "ping", None)
    store_ok = ping() if ping is not None else True
    return {
        "status": "OK",
        "cacheEntries": len(services.cache),
        "store": "ok" if store_ok else "unavailable",
    }


@router.get("/metrics")
def metrics(services: OrderServices = Depends(get_services)):
    content, content_type = services.metrics.render()
    return Response(content=content, media_type=content_type)
