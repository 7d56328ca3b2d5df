from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .models_lots import Lot
from .models_products import Product


class CountStatus(str, Enum):
    DRAFT = "DRAFT"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class LocationRef(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str | None = None


class InventoryCount(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    status: CountStatus
    location_id: str | None = None
    location: LocationRef | None = None
    notes: str | None = None
    items_count: int | None = None
    items_counted: int | None = None
    progress: float | None = None
    total_expected: int | None = None
    total_counted: int | None = None
    total_discrepancy: int | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None


class CountItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    count_id: str | None = None
    product_id: str | None = None
    product: Product | None = None
    lot_id: str | None = None
    lot: Lot | None = None
    expected_quantity: int | None = None
    counted_quantity: int | None = None
    discrepancy: int | None = None
    is_counted: bool | None = None
    counted_at: datetime | None = None
    counted_by: str | None = None
    notes: str | None = None


class ScanResult(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    item: CountItem | None = None
    product: Product | None = None
    already_counted: bool = False
    previous_count: int | None = None
    counted_at: datetime | None = None
    counted_by: str | None = None

    @property
    def product_name(self) -> str | None:
        if self.product and self.product.name:
            return self.product.name
        if self.item and self.item.product and self.item.product.name:
            return self.item.product.name
        return None


class CountSummary(BaseModel):
    model_config = ConfigDict(extra="allow")

    total_products: int | None = None
    counted_products: int | None = None
    pending_products: int | None = None
    with_discrepancy: int | None = None
    total_expected: int | None = None
    total_counted: int | None = None
    total_discrepancy: int | None = None
    progress: float | None = None


class DiscrepancyItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    item_id: str | None = None
    product_id: str | None = None
    product: Product | None = None
    lot_id: str | None = None
    expected_quantity: int | None = None
    counted_quantity: int | None = None
    discrepancy: int | None = None


class CountFilters(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: CountStatus | None = None
    location_id: str | None = None
    page: int | None = None
    limit: int | None = None


class CountListResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    counts: list[InventoryCount] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    pages: int = 0


class CountCreateRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    location_id: str
    notes: str | None = None


class CompleteCountRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    apply_adjustments: bool = False
    notes: str | None = None


class CancelCountRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    reason: str | None = None


class ScanBarcodeRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    barcode: str
    lot_id: str | None = None
    quantity: int = 1
    notes: str | None = None


class RegisterCountRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    product_id: str
    lot_id: str | None = None
    quantity: int
    notes: str | None = None


class UpdateCountItemRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    quantity: int
    notes: str | None = None
