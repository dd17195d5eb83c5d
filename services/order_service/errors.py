from __future__ import annotations


class OrderServiceError(Exception):
    """Base error for the order service."""

    reason = "error"


class ValidationError(OrderServiceError):
    """Client-caused; the payload never reaches storage or cache."""


class MalformedJson(ValidationError):
    reason = "malformed_json"


class SchemaViolation(ValidationError):
    reason = "schema_violation"


class StoreError(OrderServiceError):
    """Infrastructure failure talking to the backing table."""

    reason = "store_error"


class StoreUnavailable(StoreError):
    reason = "unavailable"


class StoreTimeout(StoreError):
    reason = "timeout"


class StoreConstraintViolation(StoreError):
    reason = "constraint_violation"


class OrderNotFound(OrderServiceError):
    reason = "not_found"

    def __init__(self, order_uid: str) -> None:
        super().__init__(f"Order {order_uid} not found.")
        self.order_uid = order_uid
