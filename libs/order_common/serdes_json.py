from __future__ import annotations

import json
from typing import Optional, Union

from pydantic import ValidationError

from .models import Order, OrderPayload

ORDER_ID_FIELD = "order_uid"


class PayloadDecodeError(ValueError):
    """Raised when the payload is not well-formed UTF-8 JSON."""


class PayloadSchemaError(ValueError):
    """Raised when the payload is JSON but not an acceptable order document."""


def _reject_constant(name: str) -> None:
    # NaN, Infinity and -Infinity are not JSON
    raise ValueError(f"{name} is not a valid JSON value")


def decode_order_payload(
    raw: Union[bytes, bytearray, memoryview, str],
    expected_order_uid: Optional[str] = None,
    strict: bool = False,
) -> OrderPayload:
    """
    Converts raw request/message bytes into an OrderPayload.
    The input text is kept verbatim; parsing only validates it.
    """
    if not isinstance(raw, (bytes, bytearray, memoryview, str)):
        raise PayloadDecodeError(f"Expected bytes or str order payload, got: {type(raw).__name__}")

    try:
        text = raw if isinstance(raw, str) else bytes(raw).decode("utf-8")
        data = json.loads(text, parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError, RecursionError) as e:
        raise PayloadDecodeError(f"Invalid JSON order payload: {e}") from e

    if not isinstance(data, dict):
        raise PayloadSchemaError(f"Expected JSON object (dict), got: {type(data).__name__}")

    order_uid = data.get(ORDER_ID_FIELD)
    if not isinstance(order_uid, str) or not order_uid:
        raise PayloadSchemaError(f"Missing or empty '{ORDER_ID_FIELD}' in order payload")

    if expected_order_uid is not None and expected_order_uid != order_uid:
        raise PayloadSchemaError(
            f"'{ORDER_ID_FIELD}' {order_uid!r} does not match requested id {expected_order_uid!r}"
        )

    if strict:
        try:
            Order.model_validate(data)
        except ValidationError as e:
            raise PayloadSchemaError(f"Order validation failed for {order_uid}: {e}") from e

    return OrderPayload(order_uid=order_uid, raw=text, document=data)
