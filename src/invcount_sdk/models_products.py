from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class LookupSource(str, Enum):
    LOCAL = "local"
    OPEN_FOOD_FACTS = "open_food_facts"


class Product(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    name: str | None = None
    sku: str | None = None
    barcode: str | None = None
    brand: str | None = None
    description: str | None = None
    category_id: str | None = None
    unit: str | None = None


class ProductSuggestion(BaseModel):
    """Candidate product described by an external catalog."""

    model_config = ConfigDict(extra="allow")

    barcode: str | None = None
    name: str | None = None
    brand: str | None = None
    description: str | None = None
    category: str | None = None
    quantity: str | None = None
    image_url: str | None = None


class ProductLookupData(BaseModel):
    model_config = ConfigDict(extra="allow")

    product: Product | None = None
    suggestion: ProductSuggestion | None = None


class ProductLookupResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    success: bool = False
    source: LookupSource | None = None
    data: ProductLookupData = Field(default_factory=ProductLookupData)
    message: str | None = None


class ProductCreateRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    sku: str | None = None
    barcode: str | None = None
    brand: str | None = None
    description: str | None = None
    category_id: str | None = None

    @classmethod
    def from_suggestion(cls, suggestion: ProductSuggestion, **overrides: object) -> "ProductCreateRequest":
        values = {
            "name": suggestion.name or "",
            "barcode": suggestion.barcode,
            "brand": suggestion.brand,
            "description": suggestion.description,
        }
        values.update(overrides)
        return cls.model_validate(values)
