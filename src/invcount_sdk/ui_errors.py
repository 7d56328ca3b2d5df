from __future__ import annotations

from dataclasses import dataclass

from .counts_validation import ClientValidationError
from .exceptions import ApiError

GENERIC_ERROR_MESSAGE = "An unexpected error occurred"


@dataclass(frozen=True)
class UserFacingError:
    message: str
    details: str | None = None
    trace_id: str | None = None

    @property
    def technical_details(self) -> str | None:
        if self.details:
            return self.details
        return None


def to_user_facing_error(exc: ApiError) -> UserFacingError:
    primary = exc.message.strip() or "Request failed"
    details = f"{exc.code} (HTTP {exc.status_code})"
    if exc.details:
        details = f"{details}: {exc.details}"
    return UserFacingError(message=primary, details=details, trace_id=exc.trace_id)


def error_message(exc: Exception) -> str:
    """Message safe to show an operator for any failure raised by the SDK."""
    if isinstance(exc, ApiError):
        return to_user_facing_error(exc).message
    if isinstance(exc, ClientValidationError):
        return str(exc)
    return GENERIC_ERROR_MESSAGE
