from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..lot_selection import DEFAULT_WARNING_DAYS, LotOption, lot_options
from ..models_lots import Lot
from .base import BaseClient, unwrap_data, unwrap_object

LOTS_PATH = "/lots"


@dataclass
class LotsClient(BaseClient):
    module: str = "lots"
    expiry_warning_days: int = DEFAULT_WARNING_DAYS

    def get_lot(self, lot_id: str) -> Lot:
        payload = self._request("GET", f"{LOTS_PATH}/{lot_id}", module=self.module, operation="get")
        return Lot.model_validate(unwrap_object(payload, "lot"))

    def lots_by_product(self, product_id: str) -> list[Lot]:
        payload = self._request(
            "GET", f"{LOTS_PATH}/product/{product_id}", module=self.module, operation="by_product"
        )
        data = unwrap_data(payload, "lots")
        rows = data.get("lots", []) if isinstance(data, dict) else data
        return [Lot.model_validate(row) for row in rows or []]

    def lot_options_for_product(self, product_id: str, *, now: datetime | None = None) -> list[LotOption]:
        """Lots of one product with their expiry state, for a lot picker."""
        return lot_options(self.lots_by_product(product_id), now=now, warning_days=self.expiry_warning_days)

    def selectable_lots_for_product(self, product_id: str, *, now: datetime | None = None) -> list[Lot]:
        return [option.lot for option in self.lot_options_for_product(product_id, now=now) if option.selectable]
