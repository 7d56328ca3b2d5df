from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .models import (
    CountStatus,
    RegisterCountRequest,
    ScanBarcodeRequest,
    UpdateCountItemRequest,
)


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    reason: str


class ClientValidationError(ValueError):
    def __init__(self, issues: list[ValidationIssue]):
        super().__init__("; ".join(issue.reason for issue in issues) or "count validation failed")
        self.issues = issues


def normalize_barcode(barcode: str | None) -> str:
    return "".join((barcode or "").split())


def validate_scan_payload(payload: ScanBarcodeRequest | Mapping[str, Any]) -> ScanBarcodeRequest:
    candidate = payload if isinstance(payload, ScanBarcodeRequest) else ScanBarcodeRequest.model_validate(payload)
    issues: list[ValidationIssue] = []
    barcode = normalize_barcode(candidate.barcode)
    if not barcode:
        issues.append(ValidationIssue(field="barcode", reason="barcode is required"))
    if candidate.quantity <= 0:
        issues.append(ValidationIssue(field="quantity", reason="quantity must be > 0"))
    if issues:
        raise ClientValidationError(issues)
    return candidate.model_copy(update={"barcode": barcode})


def validate_register_payload(payload: RegisterCountRequest | Mapping[str, Any]) -> RegisterCountRequest:
    candidate = payload if isinstance(payload, RegisterCountRequest) else RegisterCountRequest.model_validate(payload)
    issues: list[ValidationIssue] = []
    if not candidate.product_id or not candidate.product_id.strip():
        issues.append(ValidationIssue(field="product_id", reason="product_id is required"))
    if candidate.quantity < 0:
        issues.append(ValidationIssue(field="quantity", reason="quantity must be >= 0"))
    if issues:
        raise ClientValidationError(issues)
    return candidate


def validate_update_payload(payload: UpdateCountItemRequest | Mapping[str, Any]) -> UpdateCountItemRequest:
    candidate = payload if isinstance(payload, UpdateCountItemRequest) else UpdateCountItemRequest.model_validate(payload)
    if candidate.quantity < 0:
        raise ClientValidationError([ValidationIssue(field="quantity", reason="quantity must be >= 0")])
    return candidate


_ALLOWED_ACTIONS: dict[CountStatus, set[str]] = {
    CountStatus.DRAFT: {"START", "CANCEL", "DELETE"},
    CountStatus.IN_PROGRESS: {"SCAN", "COMPLETE", "CANCEL"},
    CountStatus.COMPLETED: set(),
    CountStatus.CANCELLED: set(),
}


def validate_action_state_intent(current_status: str | CountStatus | None, action: str) -> str:
    desired = action.upper()
    try:
        status = CountStatus((current_status.value if isinstance(current_status, CountStatus) else current_status or "").upper())
    except ValueError:
        raise ClientValidationError(
            [ValidationIssue(field="status", reason=f"unknown status '{current_status}'")]
        ) from None
    if desired not in _ALLOWED_ACTIONS[status]:
        raise ClientValidationError(
            [ValidationIssue(field="action", reason=f"action {desired} is not allowed from {status.value}")]
        )
    return desired
