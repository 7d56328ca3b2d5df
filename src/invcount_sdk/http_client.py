from __future__ import annotations

import json
import threading
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .error_mapper import map_error
from .exceptions import TransportError
from .tracing import TRACE_HEADER, TraceContext

Payload = dict[str, Any] | list[Any] | None

_CACHE_IDENTITY_HEADERS = {"Authorization", "X-Tenant-ID"}


@dataclass
class LastOperation:
    module: str
    operation: str
    duration_ms: int
    result: str
    trace_id: str | None


@dataclass
class _CacheRecord:
    expires_at: float
    url: str
    payload: Payload


@dataclass
class HttpClient:
    config: ClientConfig
    trace: TraceContext | None = None
    session: requests.Session | None = None
    cache_ttl_seconds: float = 3.0
    enable_get_cache: bool = True
    last_operation: LastOperation | None = None
    _cache: dict[str, _CacheRecord] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self) -> None:
        if self.session is None:
            self.session = requests.Session()
            adapter = HTTPAdapter(
                pool_connections=self.config.max_connections,
                pool_maxsize=self.config.max_connections,
            )
            self.session.mount("http://", adapter)
            self.session.mount("https://", adapter)

    def build_url(self, path: str) -> str:
        base = self.config.api_base_url.rstrip("/") + "/"
        return urljoin(base, path.lstrip("/"))

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        module: str = "unknown",
        operation: str = "unknown",
        use_get_cache: bool = True,
        invalidate_paths: list[str] | None = None,
    ) -> Payload:
        if self.session is None:
            raise RuntimeError("HTTP session not initialized")
        request_headers = {"Accept": "application/json"}
        if headers:
            request_headers.update(headers)
        trace_context = self.trace or TraceContext()
        request_headers[TRACE_HEADER] = trace_context.ensure()

        normalized_method = method.upper()
        url = self.build_url(path)

        # Mutations go out once; only idempotent reads are retried.
        can_retry = normalized_method in {"GET", "HEAD"}
        attempts = self.config.retries + 1 if can_retry else 1
        cache_key = self._cache_key(normalized_method, url, request_headers, params)
        should_use_get_cache = (
            self.enable_get_cache and use_get_cache and normalized_method == "GET"
        )
        if should_use_get_cache and cache_key:
            cached = self._read_cache(cache_key)
            if cached is not None:
                self.last_operation = LastOperation(
                    module=module,
                    operation=operation,
                    duration_ms=0,
                    result="success(cache)",
                    trace_id=trace_context.trace_id,
                )
                return cached

        started = time.monotonic()
        response: requests.Response | None = None
        for attempt in range(attempts):
            try:
                response = self.session.request(
                    method=normalized_method,
                    url=url,
                    headers=request_headers,
                    json=json_body,
                    params=params,
                    timeout=(self.config.connect_timeout_seconds, self.config.read_timeout_seconds),
                    verify=self.config.verify_ssl,
                )
            except requests.RequestException as exc:
                if attempt >= attempts - 1:
                    self._record_operation(module, operation, started, "error", trace_context.trace_id)
                    raise TransportError(
                        code="TRANSPORT_ERROR",
                        message="No response from server. Please check your connection.",
                        details={"type": type(exc).__name__, "reason": str(exc)},
                        trace_id=trace_context.trace_id,
                        status_code=0,
                        raw_payload=None,
                    ) from exc
            else:
                if response.status_code < 500 or attempt >= attempts - 1:
                    break
            time.sleep(self.config.retry_backoff_seconds * (2**attempt))

        if response is None:
            raise RuntimeError("HTTP request finished without a response")

        trace_context.update_from_headers(response.headers)
        if response.ok:
            parsed: Payload = response.json() if response.content else None
            if should_use_get_cache and cache_key:
                self._write_cache(cache_key, url, parsed)
            if normalized_method != "GET":
                self.invalidate(invalidate_paths or [])
            self._record_operation(module, operation, started, "success", trace_context.trace_id)
            return parsed

        try:
            payload = response.json()
        except ValueError:
            payload = {"message": response.text}
        if not isinstance(payload, dict):
            payload = {"message": str(payload)}
        trace_context.update_from_payload(payload)
        self._record_operation(module, operation, started, "error", trace_context.trace_id)
        raise map_error(response.status_code, payload, trace_context.trace_id)

    def invalidate(self, paths: list[str]) -> int:
        """Drop cached reads under the given API paths; returns how many were dropped."""
        if not paths:
            return 0
        prefixes = [self.build_url(path).rstrip("/") for path in paths]
        with self._lock:
            doomed = [
                key
                for key, record in self._cache.items()
                if any(record.url == prefix or record.url.startswith(prefix + "/") for prefix in prefixes)
            ]
            for key in doomed:
                self._cache.pop(key, None)
        return len(doomed)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def _record_operation(self, module: str, operation: str, started: float, result: str, trace_id: str | None) -> None:
        self.last_operation = LastOperation(
            module=module,
            operation=operation,
            duration_ms=int((time.monotonic() - started) * 1000),
            result=result,
            trace_id=trace_id,
        )

    def _cache_key(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        params: dict[str, Any] | None,
    ) -> str | None:
        if method != "GET":
            return None
        safe_headers = {key: value for key, value in headers.items() if key in _CACHE_IDENTITY_HEADERS}
        return json.dumps({"url": url, "headers": safe_headers, "params": params or {}}, sort_keys=True)

    def _read_cache(self, key: str) -> Payload:
        with self._lock:
            record = self._cache.get(key)
            if record is None:
                return None
            if time.monotonic() >= record.expires_at:
                self._cache.pop(key, None)
                return None
            return record.payload

    def _write_cache(self, key: str, url: str, payload: Payload) -> None:
        with self._lock:
            self._cache[key] = _CacheRecord(
                expires_at=time.monotonic() + self.cache_ttl_seconds,
                url=url,
                payload=payload,
            )
