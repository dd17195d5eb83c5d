from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional, Tuple


class LockStripes:
    """
    Fixed set of locks; a key always maps to the same lock.
    Writers of the same key are serialized, writers of most other keys are not.
    """

    def __init__(self, stripes: int = 64) -> None:
        if stripes < 1:
            raise ValueError("stripes must be >= 1")
        self._locks: List[threading.Lock] = [threading.Lock() for _ in range(stripes)]

    def for_key(self, key: str) -> threading.Lock:
        return self._locks[hash(key) % len(self._locks)]


class OrderCache:
    """
    Process-local order_uid -> raw payload map, no eviction.

    Readers never take a lock: a single dict lookup is atomic, and values are
    immutable strings, so a reader sees either the previous or the new payload.
    """

    def __init__(self, stripes: int = 64) -> None:
        self._orders: Dict[str, str] = {}
        self._stripes = LockStripes(stripes)

    def get(self, order_uid: str) -> Optional[str]:
        return self._orders.get(order_uid)

    def insert(self, order_uid: str, raw: str) -> None:
        with self._stripes.for_key(order_uid):
            self._orders[order_uid] = raw

    def insert_if_absent(self, order_uid: str, raw: str) -> bool:
        with self._stripes.for_key(order_uid):
            if order_uid in self._orders:
                return False
            self._orders[order_uid] = raw
            return True

    def warm_from(self, entries: Iterable[Tuple[str, str]]) -> int:
        count = 0
        for order_uid, raw in entries:
            self.insert(order_uid, raw)
            count += 1
        return count

    def __len__(self) -> int:
        return len(self._orders)

    def __contains__(self, order_uid: object) -> bool:
        return order_uid in self._orders
