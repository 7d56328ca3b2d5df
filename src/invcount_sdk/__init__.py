from .clients import CountsClient, LotsClient, ProductsClient
from .config import ClientConfig, ConfigError, load_config
from .counts_validation import ClientValidationError, ValidationIssue
from .exceptions import (
    ApiError,
    BarcodeNotFoundError,
    CountNotInProgressError,
    LookupNotFoundError,
    NotFoundError,
    ProductAlreadyCountedError,
    TransportError,
    ValidationError,
)
from .http_client import HttpClient
from .idempotency import IdempotencyKeys, new_idempotency_keys
from .models import (
    CountItem,
    CountStatus,
    CountSummary,
    DiscrepancyItem,
    InventoryCount,
    ScanResult,
)
from .models_lots import Lot
from .models_products import LookupSource, Product, ProductLookupResponse, ProductSuggestion
from .notifications import NotificationCenter, ScanNotifier
from .scan_history import ScanHistory, ScanHistoryItem
from .scanner import CountOutcome, CountScanner, LookupKind, LookupOutcome, OutcomeKind, ScannerCallbacks
from .session import ApiSession
from .tracing import TraceContext
from .ui_errors import UserFacingError, to_user_facing_error

__version__ = "0.1.0"

__all__ = [
    "ApiError",
    "ApiSession",
    "BarcodeNotFoundError",
    "ClientConfig",
    "ClientValidationError",
    "ConfigError",
    "CountItem",
    "CountNotInProgressError",
    "CountOutcome",
    "CountScanner",
    "CountStatus",
    "CountSummary",
    "CountsClient",
    "DiscrepancyItem",
    "HttpClient",
    "IdempotencyKeys",
    "InventoryCount",
    "Lot",
    "LookupKind",
    "LookupNotFoundError",
    "LookupOutcome",
    "LookupSource",
    "LotsClient",
    "NotFoundError",
    "NotificationCenter",
    "OutcomeKind",
    "Product",
    "ProductAlreadyCountedError",
    "ProductLookupResponse",
    "ProductSuggestion",
    "ProductsClient",
    "ScanHistory",
    "ScanHistoryItem",
    "ScanNotifier",
    "ScanResult",
    "ScannerCallbacks",
    "TraceContext",
    "TransportError",
    "UserFacingError",
    "ValidationError",
    "ValidationIssue",
    "load_config",
    "new_idempotency_keys",
    "to_user_facing_error",
]
