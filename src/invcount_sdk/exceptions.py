from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    code: str
    message: str
    details: object | None
    trace_id: str | None
    status_code: int
    raw_payload: object | None = None

    def __str__(self) -> str:
        trace = f" trace_id={self.trace_id}" if self.trace_id else ""
        return f"[{self.status_code}] {self.code}: {self.message}{trace}"

    def detail(self, key: str) -> object | None:
        if isinstance(self.details, dict):
            return self.details.get(key)
        return None


class AuthError(ApiError):
    """Authentication failed or session is invalid."""


class PermissionError(ApiError):
    """Authorization denied for the tenant or role."""


class NotFoundError(ApiError):
    pass


class ValidationError(ApiError):
    pass


class ConflictError(ApiError):
    """409 or conflict-style errors."""


class RateLimitError(ApiError):
    """429 throttling error."""


class ServerError(ApiError):
    """5xx server-side failures."""


class TransportError(ApiError):
    """Network/transport failure before an HTTP response was returned."""


class BarcodeNotFoundError(NotFoundError):
    """No product in the tenant catalog matches the scanned barcode."""


class ProductAlreadyCountedError(ConflictError):
    """The product was already counted in this session."""

    @property
    def previous_count(self) -> int | None:
        value = self.detail("previous_count")
        try:
            return int(value) if value is not None else None
        except (TypeError, ValueError):
            return None

    @property
    def counted_at(self) -> str | None:
        value = self.detail("counted_at")
        return str(value) if value is not None else None

    @property
    def counted_by(self) -> str | None:
        value = self.detail("counted_by")
        return str(value) if value is not None else None

    @property
    def item_id(self) -> str | None:
        value = self.detail("item_id")
        return str(value) if value is not None else None


class CountNotInProgressError(ValidationError):
    """The count session is not IN_PROGRESS."""


class LookupNotFoundError(NotFoundError):
    """The barcode resolver found no local product and no external suggestion."""
