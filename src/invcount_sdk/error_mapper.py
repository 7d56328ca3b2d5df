from __future__ import annotations

from typing import Mapping

from .exceptions import (
    ApiError,
    AuthError,
    BarcodeNotFoundError,
    ConflictError,
    CountNotInProgressError,
    NotFoundError,
    PermissionError,
    ProductAlreadyCountedError,
    RateLimitError,
    ServerError,
    ValidationError,
)

BARCODE_NOT_FOUND = "BARCODE_NOT_FOUND"
PRODUCT_ALREADY_COUNTED = "PRODUCT_ALREADY_COUNTED"
COUNT_NOT_IN_PROGRESS = "COUNT_NOT_IN_PROGRESS"

_CODE_ERRORS: dict[str, type[ApiError]] = {
    BARCODE_NOT_FOUND: BarcodeNotFoundError,
    PRODUCT_ALREADY_COUNTED: ProductAlreadyCountedError,
    COUNT_NOT_IN_PROGRESS: CountNotInProgressError,
}


def _unwrap(payload: Mapping[str, object]) -> tuple[str | None, str | None, object | None]:
    """Read code/message/details from either the ``error`` envelope or a flat body."""
    envelope = payload.get("error")
    if isinstance(envelope, Mapping):
        code = envelope.get("code")
        message = envelope.get("message") or payload.get("message")
        details = envelope.get("details")
    else:
        code = payload.get("code")
        message = payload.get("message") or (envelope if isinstance(envelope, str) else None)
        details = payload.get("details")
    return (
        str(code) if code else None,
        str(message) if message else None,
        details,
    )


def _class_for_status(status_code: int) -> type[ApiError]:
    if status_code == 401:
        return AuthError
    if status_code == 403:
        return PermissionError
    if status_code == 404:
        return NotFoundError
    if status_code in {400, 422}:
        return ValidationError
    if status_code == 409:
        return ConflictError
    if status_code == 429:
        return RateLimitError
    if status_code >= 500:
        return ServerError
    return ApiError


def map_error(status_code: int, payload: Mapping[str, object] | None, trace_id: str | None) -> ApiError:
    payload = payload or {}
    code, message, details = _unwrap(payload)
    payload_trace_id = payload.get("trace_id")
    resolved_trace_id = str(payload_trace_id) if payload_trace_id is not None else trace_id
    mapped = _CODE_ERRORS.get(code or "") or _class_for_status(status_code)
    return mapped(
        code=code or "HTTP_ERROR",
        message=message or "Request failed",
        details=details,
        trace_id=resolved_trace_id,
        status_code=status_code,
        raw_payload=dict(payload),
    )
