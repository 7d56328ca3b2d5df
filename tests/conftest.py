from __future__ import annotations

import json
import re
import sys
import threading
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

import pytest
import responses

BASE_DIR = Path(__file__).resolve().parents[1]
SDK_SRC = BASE_DIR / "src"

sys.path.insert(0, str(SDK_SRC))

from invcount_sdk.clients.counts_client import CountsClient  # noqa: E402
from invcount_sdk.clients.products_client import ProductsClient  # noqa: E402
from invcount_sdk.config import load_config  # noqa: E402
from invcount_sdk.http_client import HttpClient  # noqa: E402
from invcount_sdk.tracing import TraceContext  # noqa: E402

ROOT_URL = "https://api.example.com"
API_URL = f"{ROOT_URL}/api/v1"


def _error(status: int, code: str, message: str, details: dict[str, Any] | None = None):
    body = {"success": False, "error": {"code": code, "message": message, "details": details}}
    return status, {"X-Trace-ID": f"trace-{code.lower()}"}, json.dumps(body)


def _ok(data: Any, status: int = 200):
    return status, {}, json.dumps({"success": True, "data": data})


class FakeCountBackend:
    """In-memory count API that arbitrates already-counted the way the server does."""

    def __init__(self) -> None:
        self.counts: dict[str, dict[str, Any]] = {}
        self.products: dict[str, dict[str, Any]] = {}
        self.external: dict[str, dict[str, Any]] = {}
        self.lookup_calls: list[str] = []
        self.scan_calls: list[dict[str, Any]] = []
        self._lock = threading.Lock()
        self._next_item = 0

    def add_count(self, count_id: str, status: str = "IN_PROGRESS") -> None:
        self.counts[count_id] = {"id": count_id, "status": status, "location_id": "loc-1", "items": {}}

    def add_product(self, product_id: str, barcode: str, name: str, count_id: str | None = None, expected: int = 0) -> None:
        self.products[product_id] = {"id": product_id, "barcode": barcode, "name": name, "sku": f"SKU-{product_id}"}
        if count_id:
            self._new_item(count_id, product_id, expected)

    def add_external(self, barcode: str, name: str, brand: str | None = None) -> None:
        self.external[barcode] = {"name": name, "brand": brand, "quantity": "500 g"}

    def item_for(self, count_id: str, product_id: str) -> dict[str, Any] | None:
        for item in self.counts[count_id]["items"].values():
            if item["product_id"] == product_id:
                return item
        return None

    def install(self, rsps: responses.RequestsMock) -> None:
        counts = re.escape(f"{API_URL}/inventory/counts")
        rsps.add_callback(responses.POST, re.compile(rf"{counts}/[^/]+/scan$"), callback=self._scan)
        rsps.add_callback(responses.POST, re.compile(rf"{counts}/[^/]+/items$"), callback=self._register)
        rsps.add_callback(responses.PUT, re.compile(rf"{counts}/[^/]+/items/[^/]+$"), callback=self._update)
        rsps.add_callback(responses.GET, re.compile(rf"{counts}/[^/]+/summary$"), callback=self._summary)
        rsps.add_callback(responses.GET, re.compile(rf"{counts}/[^/]+$"), callback=self._get_count)
        rsps.add_callback(
            responses.GET,
            re.compile(re.escape(f"{API_URL}/products/lookup/") + r"[^/]+$"),
            callback=self._lookup,
        )

    def _new_item(self, count_id: str, product_id: str, expected: int) -> dict[str, Any]:
        self._next_item += 1
        item = {
            "id": f"item-{self._next_item}",
            "count_id": count_id,
            "product_id": product_id,
            "expected_quantity": expected,
            "counted_quantity": None,
            "is_counted": False,
        }
        self.counts[count_id]["items"][item["id"]] = item
        return item

    @staticmethod
    def _segments(request) -> list[str]:
        path = urlparse(request.url).path
        return [unquote(part) for part in path.split("/") if part]

    def _count_or_error(self, count_id: str):
        count = self.counts.get(count_id)
        if count is None:
            return None, _error(404, "NOT_FOUND", "Count not found")
        if count["status"] != "IN_PROGRESS":
            return None, _error(400, "COUNT_NOT_IN_PROGRESS", "Count session is not in progress")
        return count, None

    @staticmethod
    def _count(item: dict[str, Any], quantity: int, notes: str | None):
        if item["is_counted"]:
            return _error(
                409,
                "PRODUCT_ALREADY_COUNTED",
                "Product already counted",
                {
                    "previous_count": item["counted_quantity"],
                    "counted_at": item["counted_at"],
                    "counted_by": "operator-1",
                    "item_id": item["id"],
                },
            )
        item.update(
            counted_quantity=quantity,
            is_counted=True,
            counted_at="2026-10-19T10:00:00+00:00",
            counted_by="operator-1",
            notes=notes,
        )
        return None

    def _scan(self, request):
        count_id = self._segments(request)[-2]
        body = json.loads(request.body)
        self.scan_calls.append(body)
        with self._lock:
            count, failure = self._count_or_error(count_id)
            if failure:
                return failure
            product = next((p for p in self.products.values() if p["barcode"] == body["barcode"]), None)
            if product is None:
                return _error(404, "BARCODE_NOT_FOUND", "Barcode not found")
            item = self.item_for(count_id, product["id"]) or self._new_item(count_id, product["id"], 0)
            rejected = self._count(item, body["quantity"], body.get("notes"))
            if rejected:
                return rejected
            return _ok({"item": {**item, "product": product}, "product": product, "already_counted": False})

    def _register(self, request):
        count_id = self._segments(request)[-2]
        body = json.loads(request.body)
        with self._lock:
            count, failure = self._count_or_error(count_id)
            if failure:
                return failure
            product = self.products.get(body["product_id"])
            if product is None:
                return _error(404, "NOT_FOUND", "Product not found")
            item = self.item_for(count_id, product["id"]) or self._new_item(count_id, product["id"], 0)
            rejected = self._count(item, body["quantity"], body.get("notes"))
            if rejected:
                return rejected
            return _ok(item, status=201)

    def _update(self, request):
        segments = self._segments(request)
        count_id, item_id = segments[-3], segments[-1]
        body = json.loads(request.body)
        with self._lock:
            count, failure = self._count_or_error(count_id)
            if failure:
                return failure
            item = count["items"].get(item_id)
            if item is None:
                return _error(404, "NOT_FOUND", "Item not found")
            item.update(counted_quantity=body["quantity"], is_counted=True, notes=body.get("notes"))
            return _ok(item)

    def _summary(self, request):
        count = self.counts[self._segments(request)[-2]]
        items = list(count["items"].values())
        counted = [item for item in items if item["is_counted"]]
        return _ok(
            {
                "total_products": len(items),
                "counted_products": len(counted),
                "pending_products": len(items) - len(counted),
                "total_counted": sum(item["counted_quantity"] or 0 for item in counted),
            }
        )

    def _get_count(self, request):
        count = self.counts.get(self._segments(request)[-1])
        if count is None:
            return _error(404, "NOT_FOUND", "Count not found")
        return _ok({key: value for key, value in count.items() if key != "items"})

    def _lookup(self, request):
        barcode = self._segments(request)[-1]
        self.lookup_calls.append(barcode)
        product = next((p for p in self.products.values() if p["barcode"] == barcode), None)
        if product is not None:
            return 200, {}, json.dumps({"success": True, "source": "local", "data": {"product": product}})
        suggestion = self.external.get(barcode)
        if suggestion is not None:
            return 200, {}, json.dumps({"success": True, "source": "open_food_facts", "data": {"suggestion": suggestion}})
        return 404, {}, json.dumps({"success": False, "message": "Product not found"})


@pytest.fixture
def api_env(monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.setenv("INVCOUNT_API_BASE_URL", ROOT_URL)
    monkeypatch.setenv("INVCOUNT_RETRY_BACKOFF_SECONDS", "0")
    return API_URL


@pytest.fixture
def http(api_env: str) -> HttpClient:
    return HttpClient(load_config(), trace=TraceContext())


@pytest.fixture
def counts(http: HttpClient) -> CountsClient:
    return CountsClient(http=http, access_token="token")


@pytest.fixture
def products(http: HttpClient) -> ProductsClient:
    return ProductsClient(http=http, access_token="token")


@pytest.fixture
def backend():
    fake = FakeCountBackend()
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        fake.install(rsps)
        yield fake
