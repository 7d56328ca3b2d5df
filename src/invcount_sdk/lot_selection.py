from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Sequence

from .models_lots import Lot

DEFAULT_WARNING_DAYS = 30


class ExpiryStatus(str, Enum):
    UNKNOWN = "unknown"
    EXPIRED = "expired"
    WARNING = "warning"
    OK = "ok"


@dataclass(frozen=True)
class LotExpiry:
    status: ExpiryStatus
    days_until: int | None

    @property
    def label(self) -> str:
        if self.status is ExpiryStatus.UNKNOWN:
            return "No expiry date"
        if self.status is ExpiryStatus.EXPIRED:
            return "EXPIRED"
        return f"{self.days_until} days"


@dataclass(frozen=True)
class LotOption:
    lot: Lot
    expiry: LotExpiry

    @property
    def selectable(self) -> bool:
        return self.expiry.status is not ExpiryStatus.EXPIRED


def _parse_expiry(raw: str) -> datetime:
    value = raw.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def lot_expiry(
    expiry_date: str | None,
    *,
    now: datetime | None = None,
    warning_days: int = DEFAULT_WARNING_DAYS,
) -> LotExpiry:
    if not expiry_date:
        return LotExpiry(ExpiryStatus.UNKNOWN, None)
    try:
        expiry = _parse_expiry(expiry_date)
    except ValueError:
        return LotExpiry(ExpiryStatus.UNKNOWN, None)
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    days_until = math.ceil((expiry - current).total_seconds() / 86400)
    if days_until < 0:
        return LotExpiry(ExpiryStatus.EXPIRED, days_until)
    if days_until <= warning_days:
        return LotExpiry(ExpiryStatus.WARNING, days_until)
    return LotExpiry(ExpiryStatus.OK, days_until)


def lot_options(
    lots: Sequence[Lot],
    *,
    now: datetime | None = None,
    warning_days: int = DEFAULT_WARNING_DAYS,
) -> list[LotOption]:
    """Pair each lot with its expiry state, keeping the order the backend returned."""
    return [LotOption(lot=lot, expiry=lot_expiry(lot.expiry_date, now=now, warning_days=warning_days)) for lot in lots]


def selectable_lots(
    lots: Sequence[Lot],
    *,
    now: datetime | None = None,
    warning_days: int = DEFAULT_WARNING_DAYS,
) -> list[Lot]:
    return [option.lot for option in lot_options(lots, now=now, warning_days=warning_days) if option.selectable]
