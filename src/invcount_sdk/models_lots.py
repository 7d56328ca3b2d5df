from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Lot(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    lot_number: str | None = None
    product_id: str | None = None
    location_id: str | None = None
    expiry_date: str | None = None
    current_quantity: int | None = None
    status: str | None = None
