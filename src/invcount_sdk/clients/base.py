from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..http_client import HttpClient, Payload


@dataclass
class BaseClient:
    http: HttpClient
    access_token: str | None = None
    tenant_id: str | None = None

    def _auth_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        if self.tenant_id:
            headers["X-Tenant-ID"] = self.tenant_id
        return headers

    def _request(self, method: str, path: str, **kwargs: Any) -> Payload:
        headers = kwargs.pop("headers", {})
        merged = {**self._auth_headers(), **headers}
        return self.http.request(method, path, headers=merged, **kwargs)


def unwrap_data(payload: Payload, what: str) -> Any:
    """Return the ``data`` member of a ``{"success": ..., "data": ...}`` envelope.

    Bodies without an envelope are returned unchanged.
    """
    if isinstance(payload, dict) and "data" in payload and ("success" in payload or len(payload) == 1):
        return payload["data"]
    if payload is None:
        raise ValueError(f"Expected {what} response to have a body")
    return payload


def unwrap_object(payload: Payload, what: str) -> dict[str, Any]:
    data = unwrap_data(payload, what)
    if not isinstance(data, dict):
        raise ValueError(f"Expected {what} response to be a JSON object")
    return data
