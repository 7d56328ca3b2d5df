from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any

from .models import ScanResult
from .models_products import ProductSuggestion

SESSION_INACTIVE_MESSAGE = "The count session is not in progress"
ALREADY_COUNTED_MESSAGE = "This product was already counted in this session"
BARCODE_NOT_FOUND_MESSAGE = "Barcode not found in the catalog"
LOOKUP_FAILED_MESSAGE = "Product not found in any catalog"

DEFAULT_NOTIFICATION_LIMIT = 100


@dataclass
class NotificationCenter:
    """Most recent notifications, oldest first; older ones drop off past ``limit``."""

    limit: int = DEFAULT_NOTIFICATION_LIMIT
    messages: deque[dict[str, Any]] = field(init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self) -> None:
        if self.limit < 1:
            raise ValueError(f"notification limit must be >= 1, got {self.limit}")
        self.messages = deque(maxlen=self.limit)

    def push(self, *, level: str, title: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
        payload = {
            "level": level,
            "title": title,
            "message": message,
            "details": details or {},
        }
        with self._lock:
            self.messages.append(payload)
        return payload

    def clear(self) -> None:
        with self._lock:
            self.messages.clear()

    def render(self) -> dict[str, Any]:
        with self._lock:
            return {"count": len(self.messages), "messages": list(self.messages)}


class ScanNotifier:
    """One distinct, human-readable notification per scan workflow outcome."""

    def __init__(self, center: NotificationCenter | None = None) -> None:
        self.center = center or NotificationCenter()

    def scan_success(self, result: ScanResult, quantity: int) -> dict[str, Any]:
        name = result.product_name or "Product"
        return self.center.push(
            level="success",
            title="Product counted",
            message=f"{name} registered ({quantity} units)",
            details={"kind": "success"},
        )

    def already_counted(self, result: ScanResult) -> dict[str, Any]:
        previous = result.previous_count if result.previous_count is not None else "?"
        return self.center.push(
            level="warning",
            title="Already counted",
            message=f"{ALREADY_COUNTED_MESSAGE} ({previous} units)",
            details={
                "kind": "already_counted",
                "previous_count": result.previous_count,
                "counted_at": result.counted_at.isoformat() if result.counted_at else None,
            },
        )

    def not_found(self, barcode: str) -> dict[str, Any]:
        return self.center.push(
            level="info",
            title="Barcode not found",
            message=f"{BARCODE_NOT_FOUND_MESSAGE}; searching external catalogs",
            details={"kind": "not_found", "barcode": barcode},
        )

    def suggestion(self, suggestion: ProductSuggestion, barcode: str) -> dict[str, Any]:
        return self.center.push(
            level="info",
            title="Product suggestion",
            message=f"Found '{suggestion.name or barcode}' in an external catalog. Create it?",
            details={"kind": "suggestion", "barcode": barcode},
        )

    def local_match(self, barcode: str) -> dict[str, Any]:
        return self.center.push(
            level="info",
            title="Product exists",
            message="The product exists in the catalog. Scan it again to count it.",
            details={"kind": "local_match", "barcode": barcode},
        )

    def lookup_failed(self, barcode: str) -> dict[str, Any]:
        return self.center.push(
            level="error",
            title="Product not found",
            message=LOOKUP_FAILED_MESSAGE,
            details={"kind": "lookup_failed", "barcode": barcode},
        )

    def session_inactive(self) -> dict[str, Any]:
        return self.center.push(
            level="error",
            title="Count not active",
            message=f"{SESSION_INACTIVE_MESSAGE}. Return to the count overview.",
            details={"kind": "session_inactive", "redirect": True},
        )

    def manual_registered(self) -> dict[str, Any]:
        return self.center.push(
            level="success",
            title="Count registered",
            message="Count registered manually",
            details={"kind": "manual_registered"},
        )

    def item_updated(self) -> dict[str, Any]:
        return self.center.push(
            level="success",
            title="Count updated",
            message="Item count updated",
            details={"kind": "item_updated"},
        )

    def failure(self, message: str, trace_id: str | None = None) -> dict[str, Any]:
        return self.center.push(
            level="error",
            title="Request failed",
            message=message,
            details={"kind": "error", "trace_id": trace_id},
        )
