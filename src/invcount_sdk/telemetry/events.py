"""Structured telemetry for count sessions.

Every event names the count it belongs to. Operator identity never appears in
an event: the already-counted details carry who counted an item, so
``counted_by`` is refused together with the usual personal fields.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

SCAN = "scan"
LOOKUP = "lookup"
API_CALL_RESULT = "api_call_result"
ERROR = "error"

TELEMETRY_CATEGORIES = frozenset({SCAN, LOOKUP, API_CALL_RESULT, ERROR})

_FORBIDDEN_CONTEXT_KEYS = frozenset(
    {"email", "password", "phone", "full_name", "address", "token", "authorization", "counted_by"}
)


@dataclass(frozen=True)
class TelemetryEvent:
    category: str
    name: str
    module: str
    action: str
    timestamp_utc: str
    count_id: str | None = None
    trace_id: str | None = None
    duration_ms: int | None = None
    success: bool | None = None
    error_code: str | None = None
    context: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


def outcome_category(category: str, success: bool) -> str:
    """Failed outcomes are filed under ``error`` whatever operation produced them."""
    return category if success else ERROR


def build_event(
    *,
    category: str,
    name: str,
    module: str,
    action: str,
    count_id: str | None = None,
    trace_id: str | None = None,
    duration_ms: int | None = None,
    success: bool | None = None,
    error_code: str | None = None,
    context: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> TelemetryEvent:
    if category not in TELEMETRY_CATEGORIES:
        raise ValueError(f"Unsupported telemetry category: {category}")
    if context:
        illegal = sorted(key for key in context if key.lower() in _FORBIDDEN_CONTEXT_KEYS)
        if illegal:
            raise ValueError(f"PII-like keys are forbidden in telemetry context: {illegal}")
    return TelemetryEvent(
        category=category,
        name=name,
        module=module,
        action=action,
        timestamp_utc=(now or datetime.now(timezone.utc)).isoformat(),
        count_id=count_id,
        trace_id=trace_id,
        duration_ms=duration_ms,
        success=success,
        error_code=error_code,
        context=context,
    )
