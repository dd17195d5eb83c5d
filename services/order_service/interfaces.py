from __future__ import annotations

from typing import Iterable, Iterator, Optional, Protocol, Tuple


class OrderStorage(Protocol):
    """Durable order table. Raises StoreError subclasses on failure."""

    def get(self, order_uid: str) -> Optional[str]: ...

    def put(self, order_uid: str, raw: str) -> None: ...

    def list_all(self) -> Iterator[Tuple[str, str]]: ...


class OrderCacheProtocol(Protocol):
    """In-memory order map. Never raises for a missing key."""

    def get(self, order_uid: str) -> Optional[str]: ...

    def insert(self, order_uid: str, raw: str) -> None: ...

    def insert_if_absent(self, order_uid: str, raw: str) -> bool: ...

    def warm_from(self, entries: Iterable[Tuple[str, str]]) -> int: ...

    def __len__(self) -> int: ...