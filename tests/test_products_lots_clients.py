from __future__ import annotations

import pytest
import responses

from invcount_sdk.clients.lots_client import LotsClient
from invcount_sdk.clients.products_client import ProductsClient
from invcount_sdk.counts_validation import ClientValidationError
from invcount_sdk.exceptions import LookupNotFoundError
from invcount_sdk.http_client import HttpClient
from invcount_sdk.models_products import LookupSource, ProductCreateRequest


def test_lookup_returns_local_product(products: ProductsClient, backend) -> None:
    backend.add_product("p1", "7801234567890", "Leche entera")

    response = products.lookup_barcode("7801234567890")

    assert response.source is LookupSource.LOCAL
    assert response.data.product is not None
    assert response.data.product.id == "p1"
    assert response.data.suggestion is None


def test_lookup_returns_external_suggestion(products: ProductsClient, backend) -> None:
    backend.add_external("7790001", "Yerba mate", brand="Campo")

    response = products.lookup_barcode("7790001")

    assert response.source is LookupSource.OPEN_FOOD_FACTS
    assert response.data.suggestion is not None
    assert response.data.suggestion.brand == "Campo"


def test_lookup_miss_raises_lookup_not_found(products: ProductsClient, backend) -> None:
    with pytest.raises(LookupNotFoundError) as raised:
        products.lookup_barcode("999")
    assert raised.value.status_code == 404
    assert backend.lookup_calls == ["999"]


def test_lookup_is_never_cached(products: ProductsClient, backend) -> None:
    backend.add_external("7790001", "Yerba mate")

    products.lookup_barcode("7790001")
    products.lookup_barcode("7790001")

    assert backend.lookup_calls == ["7790001", "7790001"]


def test_lookup_rejects_blank_barcode(products: ProductsClient, backend) -> None:
    with pytest.raises(ClientValidationError):
        products.lookup_barcode("  ")
    assert backend.lookup_calls == []


@responses.activate
def test_lookup_success_false_with_ok_status(products: ProductsClient, api_env: str) -> None:
    responses.add(
        responses.GET,
        f"{api_env}/products/lookup/A%2FB",
        json={"success": False, "message": "Product not found"},
        status=200,
    )

    with pytest.raises(LookupNotFoundError) as raised:
        products.lookup_barcode("A/B")

    assert raised.value.details == {"barcode": "A/B"}


@responses.activate
def test_create_product_from_suggestion(products: ProductsClient, api_env: str) -> None:
    responses.add(
        responses.POST,
        f"{api_env}/products",
        json={"success": True, "data": {"id": "p9", "name": "Yerba mate", "barcode": "7790001"}},
        status=201,
    )
    responses.add(
        responses.GET,
        f"{api_env}/products/lookup/7790001",
        json={"success": True, "source": "open_food_facts", "data": {"suggestion": {"name": "Yerba mate"}}},
        status=200,
    )

    suggestion = products.lookup_barcode("7790001").data.suggestion
    assert suggestion is not None
    request = ProductCreateRequest.from_suggestion(suggestion, barcode="7790001", sku="YM-1")
    created = products.create_product(request)

    assert created.id == "p9"
    body = responses.calls[1].request.body
    assert b'"sku": "YM-1"' in body
    assert responses.calls[1].request.headers["Idempotency-Key"]


@responses.activate
def test_lots_by_product_and_get_lot(http: HttpClient, api_env: str) -> None:
    responses.add(
        responses.GET,
        f"{api_env}/lots/product/p1",
        json={
            "success": True,
            "data": {
                "lots": [
                    {"id": "l1", "lot_number": "L-001", "product_id": "p1", "expiry_date": "2026-11-01"},
                    {"id": "l2", "lot_number": "L-002", "product_id": "p1", "expiry_date": None},
                ]
            },
        },
        status=200,
    )
    responses.add(
        responses.GET,
        f"{api_env}/lots/l1",
        json={"success": True, "data": {"id": "l1", "lot_number": "L-001", "current_quantity": 12}},
        status=200,
    )
    lots = LotsClient(http=http, access_token="token")

    rows = lots.lots_by_product("p1")
    lot = lots.get_lot("l1")

    assert [row.lot_number for row in rows] == ["L-001", "L-002"]
    assert rows[1].expiry_date is None
    assert lot.current_quantity == 12
