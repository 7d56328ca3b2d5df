from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..counts_validation import (
    validate_register_payload,
    validate_scan_payload,
    validate_update_payload,
)
from ..exceptions import ProductAlreadyCountedError
from ..idempotency import resolve_idempotency_keys
from ..models import (
    CancelCountRequest,
    CompleteCountRequest,
    CountCreateRequest,
    CountFilters,
    CountItem,
    CountListResponse,
    CountSummary,
    DiscrepancyItem,
    InventoryCount,
    RegisterCountRequest,
    ScanBarcodeRequest,
    ScanResult,
    UpdateCountItemRequest,
)
from .base import BaseClient, unwrap_data, unwrap_object

COUNTS_PATH = "/inventory/counts"

_TIMESTAMP = TypeAdapter(datetime)


def count_path(count_id: str) -> str:
    return f"{COUNTS_PATH}/{count_id}"


def _timestamp_or_none(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return _TIMESTAMP.validate_python(value)
    except PydanticValidationError:
        return None


def already_counted_result(exc: ProductAlreadyCountedError) -> ScanResult:
    """Project a PRODUCT_ALREADY_COUNTED rejection onto a scan result.

    Details the server sends in an unexpected shape are dropped rather than
    failing the projection; the raw values are kept under ``details``.
    """
    item_id = exc.item_id
    return ScanResult.model_validate(
        {
            "already_counted": True,
            "previous_count": exc.previous_count,
            "counted_at": _timestamp_or_none(exc.counted_at),
            "counted_by": exc.counted_by,
            "item": {"id": item_id} if item_id else None,
            "details": exc.details,
        }
    )


@dataclass
class CountsClient(BaseClient):
    module: str = "counts"

    def create(self, payload: CountCreateRequest | Mapping[str, Any]) -> InventoryCount:
        request = payload if isinstance(payload, CountCreateRequest) else CountCreateRequest.model_validate(payload)
        data = self._request(
            "POST",
            COUNTS_PATH,
            json_body=request.model_dump(mode="json", exclude_none=True),
            headers=resolve_idempotency_keys().headers(),
            module=self.module,
            operation="create",
            invalidate_paths=[COUNTS_PATH],
        )
        return InventoryCount.model_validate(unwrap_object(data, "count create"))

    def list_counts(self, filters: CountFilters | Mapping[str, Any] | None = None) -> CountListResponse:
        query = filters if isinstance(filters, CountFilters) else CountFilters.model_validate(filters or {})
        params = query.model_dump(mode="json", exclude_none=True)
        payload = self._request("GET", COUNTS_PATH, params=params, module=self.module, operation="list")
        data = unwrap_data(payload, "count list")
        if data is None:
            return CountListResponse()
        return CountListResponse.model_validate(data)

    def get_count(self, count_id: str) -> InventoryCount:
        payload = self._request("GET", count_path(count_id), module=self.module, operation="get")
        return InventoryCount.model_validate(unwrap_object(payload, "count"))

    def start(self, count_id: str) -> InventoryCount:
        return self._transition(count_id, "start", None)

    def complete(self, count_id: str, payload: CompleteCountRequest | Mapping[str, Any] | None = None) -> InventoryCount:
        request = payload if isinstance(payload, CompleteCountRequest) else CompleteCountRequest.model_validate(payload or {})
        return self._transition(count_id, "complete", request.model_dump(mode="json", exclude_none=True))

    def cancel(self, count_id: str, payload: CancelCountRequest | Mapping[str, Any] | None = None) -> InventoryCount:
        request = payload if isinstance(payload, CancelCountRequest) else CancelCountRequest.model_validate(payload or {})
        return self._transition(count_id, "cancel", request.model_dump(mode="json", exclude_none=True))

    def delete(self, count_id: str) -> None:
        self._request(
            "DELETE",
            count_path(count_id),
            module=self.module,
            operation="delete",
            invalidate_paths=[COUNTS_PATH],
        )

    def get_items(self, count_id: str) -> list[CountItem]:
        return self._items(count_id, "items")

    def get_pending_items(self, count_id: str) -> list[CountItem]:
        return self._items(count_id, "pending")

    def get_counted_items(self, count_id: str) -> list[CountItem]:
        return self._items(count_id, "counted")

    def scan_barcode(
        self,
        count_id: str,
        payload: ScanBarcodeRequest | Mapping[str, Any],
        idempotency_key: str | None = None,
    ) -> ScanResult:
        """Register one scanned barcode.

        An already-counted rejection comes back as a ``ScanResult`` with
        ``already_counted=True``; ``BarcodeNotFoundError`` and
        ``CountNotInProgressError`` propagate.
        """
        request = validate_scan_payload(payload)
        try:
            data = self._request(
                "POST",
                f"{count_path(count_id)}/scan",
                json_body=request.model_dump(mode="json", exclude_none=True),
                headers=resolve_idempotency_keys(idempotency_key).headers(),
                module=self.module,
                operation="scan",
                invalidate_paths=[count_path(count_id)],
            )
        except ProductAlreadyCountedError as exc:
            return already_counted_result(exc)
        return ScanResult.model_validate(unwrap_object(data, "scan"))

    def register_count(
        self,
        count_id: str,
        payload: RegisterCountRequest | Mapping[str, Any],
        idempotency_key: str | None = None,
    ) -> CountItem:
        request = validate_register_payload(payload)
        data = self._request(
            "POST",
            f"{count_path(count_id)}/items",
            json_body=request.model_dump(mode="json", exclude_none=True),
            headers=resolve_idempotency_keys(idempotency_key).headers(),
            module=self.module,
            operation="register",
            invalidate_paths=[count_path(count_id)],
        )
        return CountItem.model_validate(unwrap_object(data, "count item"))

    def update_item_count(
        self,
        count_id: str,
        item_id: str,
        payload: UpdateCountItemRequest | Mapping[str, Any],
        idempotency_key: str | None = None,
    ) -> CountItem:
        request = validate_update_payload(payload)
        data = self._request(
            "PUT",
            f"{count_path(count_id)}/items/{item_id}",
            json_body=request.model_dump(mode="json", exclude_none=True),
            headers=resolve_idempotency_keys(idempotency_key).headers(),
            module=self.module,
            operation="update_item",
            invalidate_paths=[count_path(count_id)],
        )
        return CountItem.model_validate(unwrap_object(data, "count item"))

    def get_discrepancies(self, count_id: str) -> list[DiscrepancyItem]:
        payload = self._request(
            "GET", f"{count_path(count_id)}/discrepancies", module=self.module, operation="discrepancies"
        )
        data = unwrap_data(payload, "discrepancies")
        rows = data.get("discrepancies", []) if isinstance(data, dict) else data
        return [DiscrepancyItem.model_validate(row) for row in rows or []]

    def get_summary(self, count_id: str) -> CountSummary:
        payload = self._request("GET", f"{count_path(count_id)}/summary", module=self.module, operation="summary")
        return CountSummary.model_validate(unwrap_object(payload, "count summary"))

    def invalidate_count_views(self, count_id: str) -> int:
        """Drop cached session, item-list and summary reads for one count."""
        return self.http.invalidate([count_path(count_id)])

    def _transition(self, count_id: str, action: str, body: dict[str, Any] | None) -> InventoryCount:
        data = self._request(
            "POST",
            f"{count_path(count_id)}/{action}",
            json_body=body,
            headers=resolve_idempotency_keys().headers(),
            module=self.module,
            operation=action,
            invalidate_paths=[COUNTS_PATH],
        )
        return InventoryCount.model_validate(unwrap_object(data, f"count {action}"))

    def _items(self, count_id: str, segment: str) -> list[CountItem]:
        payload = self._request("GET", f"{count_path(count_id)}/{segment}", module=self.module, operation=segment)
        data = unwrap_data(payload, "count items")
        rows = data.get("items", []) if isinstance(data, dict) else data
        return [CountItem.model_validate(row) for row in rows or []]
