import copy
import json
import threading
from typing import Dict, List, Optional

from services.order_service.errors import StoreUnavailable


SAMPLE_ORDER = {
    "order_uid": "b563feb7b2b84b6test",
    "track_number": "WBILMTESTTRACK",
    "entry": "WBIL",
    "delivery": {
        "name": "Test Testov",
        "phone": "+9720000000",
        "zip": "2639809",
        "city": "Kiryat Mozkin",
        "address": "Ploshad Mira 15",
        "region": "Kraiot",
        "email": "test@gmail.com",
    },
    "payment": {
        "transaction": "b563feb7b2b84b6test",
        "request_id": "",
        "currency": "USD",
        "provider": "wbpay",
        "amount": 1817,
        "payment_dt": 1637907727,
        "bank": "alpha",
        "delivery_cost": 1500,
        "goods_total": 317,
        "custom_fee": 0,
    },
    "items": [
        {
            "chrt_id": 9934930,
            "track_number": "WBILMTESTTRACK",
            "price": 453,
            "rid": "ab4219087a764ae0btest",
            "name": "Mascaras",
            "sale": 30,
            "size": "0",
            "total_price": 317,
            "nm_id": 2389212,
            "brand": "Vivienne Sabo",
            "status": 202,
        }
    ],
    "locale": "en",
    "internal_signature": "",
    "customer_id": "test",
    "delivery_service": "meest",
    "shardkey": "9",
    "sm_id": 99,
    "date_created": "2021-11-26T06:22:19Z",
    "oof_shard": "1",
}


def make_order(order_uid: str = "ORD-1", **overrides) -> dict:
    order = copy.deepcopy(SAMPLE_ORDER)
    order["order_uid"] = order_uid
    order.update(overrides)
    return order


def make_body(order_uid: str = "ORD-1", **overrides) -> bytes:
    return json.dumps(make_order(order_uid, **overrides)).encode("utf-8")


class CountingStore:
    """In-memory OrderStorage double that counts calls and can be switched off."""

    def __init__(self, rows: Optional[Dict[str, str]] = None) -> None:
        self.rows: Dict[str, str] = dict(rows or {})
        self.get_calls: List[str] = []
        self.put_calls: List[str] = []
        self.list_calls = 0
        self.available = True
        self._lock = threading.Lock()

    def _check(self) -> None:
        if not self.available:
            raise StoreUnavailable("store is down")

    def get(self, order_uid: str) -> Optional[str]:
        with self._lock:
            self.get_calls.append(order_uid)
        self._check()
        return self.rows.get(order_uid)

    def put(self, order_uid: str, raw: str) -> None:
        with self._lock:
            self.put_calls.append(order_uid)
        self._check()
        self.rows[order_uid] = raw

    def list_all(self):
        self.list_calls += 1
        self._check()
        return iter(sorted(self.rows.items()))


