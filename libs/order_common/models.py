from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class Delivery(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    zip: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    region: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)


class Payment(BaseModel):
    transaction: str = Field(..., min_length=1)
    request_id: str = ""
    currency: str = Field(..., min_length=1)
    provider: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)
    payment_dt: int
    bank: str
    delivery_cost: int
    goods_total: int
    custom_fee: int


class Item(BaseModel):
    chrt_id: int = Field(..., gt=0)
    track_number: str
    price: int = Field(..., gt=0)
    rid: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    sale: int
    size: str
    total_price: int
    nm_id: int
    brand: str = Field(..., min_length=1)
    status: int


class Order(BaseModel):
    """Full order document, checked only when strict validation is on."""

    order_uid: str = Field(..., min_length=1)
    track_number: str = Field(..., min_length=1)
    entry: str = Field(..., min_length=1)
    delivery: Delivery
    payment: Payment
    items: List[Item] = Field(..., min_length=1)
    locale: str
    internal_signature: str = ""
    customer_id: str
    delivery_service: str
    shardkey: str
    sm_id: int
    date_created: str
    oof_shard: str


class OrderPayload(BaseModel):
    """A validated order: its identifier plus the verbatim JSON text."""

    order_uid: str
    raw: str
    document: Dict[str, Any]

    model_config = ConfigDict(frozen=True)
