from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from .models import CountStatus

DiscrepancyType = Literal["surplus", "shortage", "match"]

COUNT_STATUS_LABELS: dict[CountStatus, str] = {
    CountStatus.DRAFT: "Draft",
    CountStatus.IN_PROGRESS: "In progress",
    CountStatus.COMPLETED: "Completed",
    CountStatus.CANCELLED: "Cancelled",
}


@dataclass(frozen=True)
class CountActionAvailability:
    can_start: bool
    can_scan: bool
    can_complete: bool
    can_cancel: bool
    can_delete: bool


def count_action_availability(status: str | CountStatus | None) -> CountActionAvailability:
    value = status.value if isinstance(status, CountStatus) else (status or "").upper()
    return CountActionAvailability(
        can_start=value == CountStatus.DRAFT.value,
        can_scan=value == CountStatus.IN_PROGRESS.value,
        can_complete=value == CountStatus.IN_PROGRESS.value,
        can_cancel=value in {CountStatus.DRAFT.value, CountStatus.IN_PROGRESS.value},
        can_delete=value == CountStatus.DRAFT.value,
    )


def count_status_label(status: str | CountStatus) -> str:
    try:
        return COUNT_STATUS_LABELS[CountStatus(status)]
    except ValueError:
        return str(status)


def format_progress(progress: float) -> str:
    return f"{round(progress)}%"


def format_discrepancy(discrepancy: int) -> str:
    if discrepancy == 0:
        return "0"
    return f"+{discrepancy}" if discrepancy > 0 else str(discrepancy)


def discrepancy_type(discrepancy: int) -> DiscrepancyType:
    if discrepancy > 0:
        return "surplus"
    if discrepancy < 0:
        return "shortage"
    return "match"
