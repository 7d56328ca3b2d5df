from __future__ import annotations

from invcount_sdk.error_mapper import map_error
from invcount_sdk.exceptions import (
    AuthError,
    BarcodeNotFoundError,
    ConflictError,
    CountNotInProgressError,
    PermissionError,
    ProductAlreadyCountedError,
    ServerError,
    ValidationError,
)
from invcount_sdk.ui_errors import to_user_facing_error


def test_error_mapper_status_classes() -> None:
    assert isinstance(map_error(401, {"message": "bad token"}, "t"), AuthError)
    assert isinstance(map_error(403, {"message": "no"}, "t"), PermissionError)
    assert isinstance(map_error(422, {"code": "VALIDATION_ERROR", "message": "bad"}, "t"), ValidationError)
    conflict = map_error(409, {"code": "CONFLICT", "message": "duplicate"}, "trace-409")
    assert isinstance(conflict, ConflictError)
    assert conflict.trace_id == "trace-409"
    server = map_error(500, {"message": "oops"}, "trace-500")
    assert isinstance(server, ServerError)
    assert "trace_id=trace-500" in str(server)


def test_error_mapper_reads_error_envelope_codes() -> None:
    payload = {
        "success": False,
        "error": {
            "code": "PRODUCT_ALREADY_COUNTED",
            "message": "Product already counted",
            "details": {"previous_count": 5, "counted_at": "2026-10-19T10:00:00Z", "counted_by": "ana", "item_id": "i-1"},
        },
    }
    err = map_error(409, payload, None)
    assert isinstance(err, ProductAlreadyCountedError)
    assert err.previous_count == 5
    assert err.counted_by == "ana"
    assert err.item_id == "i-1"


def test_error_codes_win_over_status() -> None:
    not_found = map_error(400, {"error": {"code": "BARCODE_NOT_FOUND", "message": "x"}}, None)
    assert isinstance(not_found, BarcodeNotFoundError)
    inactive = map_error(409, {"error": {"code": "COUNT_NOT_IN_PROGRESS", "message": "x"}}, None)
    assert isinstance(inactive, CountNotInProgressError)


def test_error_mapper_flat_error_string_and_defaults() -> None:
    err = map_error(400, {"success": False, "error": "Invalid quantity"}, None)
    assert err.message == "Invalid quantity"
    assert err.code == "HTTP_ERROR"
    empty = map_error(502, None, None)
    assert empty.message == "Request failed"


def test_user_facing_error_keeps_message_and_trace() -> None:
    err = map_error(400, {"error": {"code": "COUNT_NOT_IN_PROGRESS", "message": "Count closed"}, "trace_id": "t-9"}, None)
    facing = to_user_facing_error(err)
    assert facing.message == "Count closed"
    assert facing.trace_id == "t-9"
    assert "COUNT_NOT_IN_PROGRESS (HTTP 400)" in (facing.technical_details or "")
