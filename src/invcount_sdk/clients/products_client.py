from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import quote

from ..counts_validation import ClientValidationError, ValidationIssue, normalize_barcode
from ..exceptions import LookupNotFoundError, NotFoundError
from ..idempotency import resolve_idempotency_keys
from ..models_products import Product, ProductCreateRequest, ProductLookupResponse
from .base import BaseClient, unwrap_object

PRODUCTS_PATH = "/products"


@dataclass
class ProductsClient(BaseClient):
    module: str = "products"

    def lookup_barcode(self, barcode: str) -> ProductLookupResponse:
        """Resolve a barcode against the tenant catalog, then the external catalog.

        The resolver answers with a bare ``{success, source, data}`` body. A 404
        or ``success=false`` raises ``LookupNotFoundError``.
        """
        normalized = normalize_barcode(barcode)
        if not normalized:
            raise ClientValidationError([ValidationIssue(field="barcode", reason="barcode is required")])
        try:
            payload = self._request(
                "GET",
                f"{PRODUCTS_PATH}/lookup/{quote(normalized, safe='')}",
                module=self.module,
                operation="lookup",
                use_get_cache=False,
            )
        except NotFoundError as exc:
            raise LookupNotFoundError(**exc.__dict__) from exc
        if not isinstance(payload, dict):
            raise ValueError("Expected lookup response to be a JSON object")
        response = ProductLookupResponse.model_validate(payload)
        if not response.success:
            raise LookupNotFoundError(
                code="PRODUCT_NOT_FOUND",
                message=response.message or "Product not found",
                details={"barcode": normalized},
                trace_id=self.http.trace.trace_id if self.http.trace else None,
                status_code=200,
                raw_payload=payload,
            )
        return response

    def get_product(self, product_id: str) -> Product:
        payload = self._request("GET", f"{PRODUCTS_PATH}/{product_id}", module=self.module, operation="get")
        return Product.model_validate(unwrap_object(payload, "product"))

    def create_product(self, payload: ProductCreateRequest | Mapping[str, Any]) -> Product:
        request = payload if isinstance(payload, ProductCreateRequest) else ProductCreateRequest.model_validate(payload)
        data = self._request(
            "POST",
            PRODUCTS_PATH,
            json_body=request.model_dump(mode="json", exclude_none=True),
            headers=resolve_idempotency_keys().headers(),
            module=self.module,
            operation="create",
            invalidate_paths=[PRODUCTS_PATH],
        )
        return Product.model_validate(unwrap_object(data, "product create"))
