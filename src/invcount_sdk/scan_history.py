from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterator

DEFAULT_HISTORY_LIMIT = 50


@dataclass(frozen=True)
class ScanHistoryItem:
    barcode: str
    product_name: str
    quantity: int
    success: bool
    already_counted: bool
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ScanHistory:
    """Most-recent-first record of scan attempts, capped at ``limit`` entries.

    Lives only as long as the scanner that owns it.
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError(f"history limit must be >= 1, got {limit}")
        self.limit = limit
        self._items: deque[ScanHistoryItem] = deque(maxlen=limit)

    def record(self, item: ScanHistoryItem) -> None:
        # appendleft on a bounded deque drops the oldest entry from the right.
        self._items.appendleft(item)

    def clear(self) -> None:
        self._items.clear()

    def snapshot(self) -> tuple[ScanHistoryItem, ...]:
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ScanHistoryItem]:
        return iter(tuple(self._items))

    def __getitem__(self, index: int) -> ScanHistoryItem:
        return self._items[index]
