import json

import pytest

from libs.order_common.serdes_json import PayloadDecodeError, PayloadSchemaError, decode_order_payload
from services.order_service.tests.helpers import SAMPLE_ORDER, make_body, make_order


def test_decode_keeps_raw_text_verbatim():
    raw = '{"order_uid":"abc123",   "note": "spacing kept"}'
    payload = decode_order_payload(raw.encode("utf-8"))

    assert payload.order_uid == "abc123"
    assert payload.raw == raw
    assert payload.document["note"] == "spacing kept"


@pytest.mark.parametrize(
    "raw",
    [
        b'{"order_uid":',
        b"not json",
        b"\xff\xfe",
        b'{"order_uid":"a","x":NaN}',
        b'{"order_uid":"a","x":Infinity}',
        b'{"order_uid":"a","x":-Infinity}',
    ],
)
def test_decode_malformed(raw):
    with pytest.raises(PayloadDecodeError):
        decode_order_payload(raw)


def test_decode_deeply_nested_is_malformed():
    raw = b'{"order_uid":"x","a":' + b"[" * 100000
    with pytest.raises(PayloadDecodeError):
        decode_order_payload(raw)


def test_decode_none_is_malformed():
    with pytest.raises(PayloadDecodeError):
        decode_order_payload(None)


@pytest.mark.parametrize(
    "raw",
    ['["order_uid"]', '"abc"', "{}", '{"order_uid": ""}', '{"order_uid": 42}'],
)
def test_decode_schema_violation(raw):
    with pytest.raises(PayloadSchemaError):
        decode_order_payload(raw)


def test_expected_id_must_match_body():
    with pytest.raises(PayloadSchemaError):
        decode_order_payload(make_body("ORD-1"), expected_order_uid="ORD-2")

    assert decode_order_payload(make_body("ORD-1"), expected_order_uid="ORD-1").order_uid == "ORD-1"


def test_strict_accepts_full_order():
    payload = decode_order_payload(json.dumps(SAMPLE_ORDER), strict=True)
    assert payload.order_uid == SAMPLE_ORDER["order_uid"]


def test_non_strict_accepts_minimal_document():
    assert decode_order_payload('{"order_uid": "abc123"}').order_uid == "abc123"


def test_strict_rejects_minimal_document():
    with pytest.raises(PayloadSchemaError):
        decode_order_payload('{"order_uid": "abc123"}', strict=True)


def test_strict_rejects_order_without_items():
    with pytest.raises(PayloadSchemaError):
        decode_order_payload(json.dumps(make_order("ORD-1", items=[])), strict=True)


def test_strict_rejects_non_positive_amount():
    order = make_order("ORD-1")
    order["payment"]["amount"] = 0
    with pytest.raises(PayloadSchemaError):
        decode_order_payload(json.dumps(order), strict=True)


def test_strict_rejects_empty_delivery_field():
    order = make_order("ORD-1")
    order["delivery"]["email"] = ""
    with pytest.raises(PayloadSchemaError):
        decode_order_payload(json.dumps(order), strict=True)
