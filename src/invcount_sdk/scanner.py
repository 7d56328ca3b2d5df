from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Iterator

from .clients.counts_client import CountsClient, already_counted_result
from .clients.products_client import ProductsClient
from .counts_validation import normalize_barcode
from .exceptions import (
    ApiError,
    BarcodeNotFoundError,
    CountNotInProgressError,
    LookupNotFoundError,
    ProductAlreadyCountedError,
)
from .logger import get_logger, log_action
from .models import CountItem, RegisterCountRequest, ScanBarcodeRequest, ScanResult, UpdateCountItemRequest
from .models_products import ProductLookupResponse, ProductSuggestion
from .notifications import LOOKUP_FAILED_MESSAGE, SESSION_INACTIVE_MESSAGE, ScanNotifier
from .scan_history import DEFAULT_HISTORY_LIMIT, ScanHistory, ScanHistoryItem
from .telemetry import TelemetryLogger, build_event, outcome_category
from .ui_errors import error_message

logger = get_logger(__name__)

_MUTATIONS = ("scan", "register", "update")


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    ALREADY_COUNTED = "already_counted"
    NOT_FOUND = "not_found"
    SESSION_NOT_ACTIVE = "session_not_active"
    FAILED = "failed"


class LookupKind(str, Enum):
    SUGGESTION = "suggestion"
    LOCAL_MATCH = "local_match"
    NO_MATCH = "no_match"
    FAILED = "failed"


@dataclass(frozen=True)
class LookupOutcome:
    kind: LookupKind
    barcode: str
    suggestion: ProductSuggestion | None = None
    response: ProductLookupResponse | None = None
    error: Exception | None = None


@dataclass(frozen=True)
class CountOutcome:
    kind: OutcomeKind
    result: ScanResult | None = None
    item: CountItem | None = None
    error: Exception | None = None
    lookup: LookupOutcome | None = None


@dataclass
class ScannerCallbacks:
    on_scan_success: Callable[[ScanResult], None] | None = None
    on_already_counted: Callable[[ScanResult], None] | None = None
    on_scan_error: Callable[[Exception], None] | None = None
    on_product_suggestion: Callable[[ProductSuggestion, str], None] | None = None


def classify_failure(exc: Exception) -> CountOutcome:
    if isinstance(exc, BarcodeNotFoundError):
        return CountOutcome(OutcomeKind.NOT_FOUND, error=exc)
    if isinstance(exc, CountNotInProgressError):
        return CountOutcome(OutcomeKind.SESSION_NOT_ACTIVE, error=exc)
    if isinstance(exc, ProductAlreadyCountedError):
        return CountOutcome(OutcomeKind.ALREADY_COUNTED, result=already_counted_result(exc), error=exc)
    return CountOutcome(OutcomeKind.FAILED, error=exc)


def classify_lookup(barcode: str, response: ProductLookupResponse) -> LookupOutcome:
    suggestion = response.data.suggestion
    if suggestion is not None:
        if not suggestion.barcode:
            suggestion = suggestion.model_copy(update={"barcode": barcode})
        return LookupOutcome(LookupKind.SUGGESTION, barcode, suggestion=suggestion, response=response)
    if response.data.product is not None:
        return LookupOutcome(LookupKind.LOCAL_MATCH, barcode, response=response)
    return LookupOutcome(LookupKind.NO_MATCH, barcode, response=response)


class CountScanner:
    """Scan and register products against one count session.

    Each instance owns the transient state of a single session: the last
    scan, the bounded scan history, the current error and the busy flags.
    The backend decides whether an item was already counted; this class only
    classifies what it answers.

    Public operations never raise for backend or transport failures. They
    return ``None`` and leave the reason in ``error`` and ``last_outcome``.
    """

    def __init__(
        self,
        count_id: str,
        counts: CountsClient,
        products: ProductsClient,
        *,
        callbacks: ScannerCallbacks | None = None,
        default_quantity: int = 1,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        notifier: ScanNotifier | None = None,
        telemetry: TelemetryLogger | None = None,
    ) -> None:
        if not count_id:
            raise ValueError("count_id is required")
        if default_quantity < 1:
            raise ValueError(f"default_quantity must be >= 1, got {default_quantity}")
        self.count_id = count_id
        self.counts = counts
        self.products = products
        self.callbacks = callbacks or ScannerCallbacks()
        self.default_quantity = default_quantity
        self.notifier = notifier or ScanNotifier()
        self.telemetry = telemetry
        self.last_outcome: CountOutcome | None = None
        self._history = ScanHistory(history_limit)
        self._last_scan: ScanResult | None = None
        self._error: str | None = None
        self._in_flight = {name: 0 for name in (*_MUTATIONS, "lookup")}
        self._lock = threading.RLock()

    @property
    def last_scan(self) -> ScanResult | None:
        return self._last_scan

    @property
    def scan_history(self) -> tuple[ScanHistoryItem, ...]:
        return self._history.snapshot()

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def is_scanning(self) -> bool:
        with self._lock:
            return any(self._in_flight[name] for name in _MUTATIONS)

    @property
    def is_looking_up(self) -> bool:
        with self._lock:
            return self._in_flight["lookup"] > 0

    def clear_error(self) -> None:
        with self._lock:
            self._error = None

    def clear_last_scan(self) -> None:
        with self._lock:
            self._last_scan = None

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()

    def scan_barcode(
        self,
        barcode: str,
        quantity: int | None = None,
        lot_id: str | None = None,
        notes: str | None = None,
    ) -> ScanResult | None:
        outcome = self.scan(barcode, quantity, lot_id, notes)
        if outcome.kind in {OutcomeKind.SUCCESS, OutcomeKind.ALREADY_COUNTED}:
            return outcome.result
        return None

    def scan(
        self,
        barcode: str,
        quantity: int | None = None,
        lot_id: str | None = None,
        notes: str | None = None,
    ) -> CountOutcome:
        """Tagged-result form of ``scan_barcode``.

        One registration request is issued. Only a NOT_FOUND answer triggers
        the fallback lookup, which is a separate request with its own outcome.
        """
        barcode = normalize_barcode(barcode)
        qty = self.default_quantity if quantity is None else quantity
        started = time.monotonic()
        with self._busy("scan"):
            try:
                request = ScanBarcodeRequest(barcode=barcode, quantity=qty, lot_id=lot_id, notes=notes)
                result = self.counts.scan_barcode(self.count_id, request)
            except (ApiError, ValueError) as exc:
                outcome = classify_failure(exc)
            else:
                kind = OutcomeKind.ALREADY_COUNTED if result.already_counted else OutcomeKind.SUCCESS
                outcome = CountOutcome(kind, result=result)

        self.last_outcome = outcome
        self._apply_scan(outcome, barcode, qty)
        self._record("scan", outcome.kind.value, started, outcome.error, barcode=barcode)

        if outcome.kind is OutcomeKind.NOT_FOUND:
            outcome = replace(outcome, lookup=self.lookup_barcode(barcode))
        self.last_outcome = outcome
        return outcome

    def lookup_barcode(self, barcode: str) -> LookupOutcome:
        """Ask the product resolver about a barcode the count did not recognise.

        Runs once and never re-attempts the registration; creating a product
        from a suggestion and scanning again is up to the caller.
        """
        barcode = normalize_barcode(barcode)
        started = time.monotonic()
        with self._busy("lookup"):
            try:
                response = self.products.lookup_barcode(barcode)
            except LookupNotFoundError as exc:
                outcome = LookupOutcome(LookupKind.NO_MATCH, barcode, error=exc)
            except (ApiError, ValueError) as exc:
                outcome = LookupOutcome(LookupKind.FAILED, barcode, error=exc)
            else:
                outcome = classify_lookup(barcode, response)

        if outcome.kind is LookupKind.SUGGESTION:
            self.notifier.suggestion(outcome.suggestion, barcode)
            if outcome.suggestion is not None:
                self._notify(self.callbacks.on_product_suggestion, outcome.suggestion, barcode)
        elif outcome.kind is LookupKind.LOCAL_MATCH:
            # The count endpoint said not found but the catalog knows the barcode.
            self.notifier.local_match(barcode)
        elif outcome.kind is LookupKind.NO_MATCH:
            self._set_error(LOOKUP_FAILED_MESSAGE)
            self.notifier.lookup_failed(barcode)
        else:
            message = error_message(outcome.error) if outcome.error else LOOKUP_FAILED_MESSAGE
            self._set_error(message)
            self.notifier.failure(message, getattr(outcome.error, "trace_id", None))

        level = logging.WARNING if outcome.kind is LookupKind.LOCAL_MATCH else logging.INFO
        self._record("lookup", outcome.kind.value, started, outcome.error, category="lookup", level=level, barcode=barcode)
        return outcome

    def register_manual(
        self,
        product_id: str,
        quantity: int,
        lot_id: str | None = None,
        notes: str | None = None,
    ) -> CountItem | None:
        started = time.monotonic()
        with self._busy("register"):
            try:
                request = RegisterCountRequest(product_id=product_id, quantity=quantity, lot_id=lot_id, notes=notes)
                item = self.counts.register_count(self.count_id, request)
            except (ApiError, ValueError) as exc:
                outcome = classify_failure(exc)
                if outcome.kind is OutcomeKind.NOT_FOUND:
                    outcome = replace(outcome, kind=OutcomeKind.FAILED)
            else:
                outcome = CountOutcome(OutcomeKind.SUCCESS, item=item)

        self.last_outcome = outcome
        if outcome.kind is OutcomeKind.SUCCESS:
            with self._lock:
                self._error = None
            self.counts.invalidate_count_views(self.count_id)
            self.notifier.manual_registered()
        elif outcome.kind is OutcomeKind.ALREADY_COUNTED:
            self.notifier.already_counted(outcome.result)
            if outcome.result is not None:
                self._notify(self.callbacks.on_already_counted, outcome.result)
        else:
            self._fail(outcome)

        self._record(
            "register", outcome.kind.value, started, outcome.error, category="api_call_result", product_id=product_id
        )
        return outcome.item

    def update_item_count(self, item_id: str, quantity: int, notes: str | None = None) -> CountItem | None:
        started = time.monotonic()
        with self._busy("update"):
            try:
                request = UpdateCountItemRequest(quantity=quantity, notes=notes)
                item = self.counts.update_item_count(self.count_id, item_id, request)
            except CountNotInProgressError as exc:
                outcome = CountOutcome(OutcomeKind.SESSION_NOT_ACTIVE, error=exc)
            except (ApiError, ValueError) as exc:
                outcome = CountOutcome(OutcomeKind.FAILED, error=exc)
            else:
                outcome = CountOutcome(OutcomeKind.SUCCESS, item=item)

        self.last_outcome = outcome
        if outcome.kind is OutcomeKind.SUCCESS:
            with self._lock:
                self._error = None
            self.counts.invalidate_count_views(self.count_id)
            self.notifier.item_updated()
        else:
            self._fail(outcome)

        self._record("update", outcome.kind.value, started, outcome.error, category="api_call_result", item_id=item_id)
        return outcome.item

    def _apply_scan(self, outcome: CountOutcome, barcode: str, quantity: int) -> None:
        if outcome.kind is OutcomeKind.SUCCESS or outcome.kind is OutcomeKind.ALREADY_COUNTED:
            result = outcome.result
            already = outcome.kind is OutcomeKind.ALREADY_COUNTED
            with self._lock:
                self._last_scan = result
                self._error = None
                self._history.record(
                    ScanHistoryItem(
                        barcode=barcode,
                        product_name=(result.product_name if result else None) or "Product",
                        quantity=quantity,
                        success=not already,
                        already_counted=already,
                    )
                )
            if already:
                self.notifier.already_counted(result)
                self._notify(self.callbacks.on_already_counted, result)
            else:
                self.counts.invalidate_count_views(self.count_id)
                self.notifier.scan_success(result, quantity)
                self._notify(self.callbacks.on_scan_success, result)
        elif outcome.kind is OutcomeKind.NOT_FOUND:
            self.notifier.not_found(barcode)
        else:
            self._fail(outcome)

    def _fail(self, outcome: CountOutcome) -> None:
        if outcome.kind is OutcomeKind.SESSION_NOT_ACTIVE:
            self._set_error(SESSION_INACTIVE_MESSAGE)
            self.notifier.session_inactive()
        else:
            message = error_message(outcome.error) if outcome.error else "Request failed"
            self._set_error(message)
            self.notifier.failure(message, getattr(outcome.error, "trace_id", None))
        if outcome.error is not None:
            self._notify(self.callbacks.on_scan_error, outcome.error)

    def _notify(self, callback: Callable[..., None] | None, *args: object) -> None:
        # Caller callbacks never abort the operation that fired them.
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            name = getattr(callback, "__name__", repr(callback))
            logger.exception("scanner callback %s failed for count %s", name, self.count_id)

    def _set_error(self, message: str) -> None:
        with self._lock:
            self._error = message

    @contextmanager
    def _busy(self, name: str) -> Iterator[None]:
        with self._lock:
            self._in_flight[name] += 1
        try:
            yield
        finally:
            with self._lock:
                self._in_flight[name] -= 1

    def _trace_id(self) -> str | None:
        trace = self.counts.http.trace
        return trace.trace_id if trace else None

    def _record(
        self,
        action: str,
        outcome: str,
        started: float,
        error: Exception | None,
        *,
        category: str = "scan",
        level: int | None = None,
        **context: str,
    ) -> None:
        failed = outcome in {OutcomeKind.FAILED.value, OutcomeKind.SESSION_NOT_ACTIVE.value, LookupKind.FAILED.value}
        resolved_level = level if level is not None else (logging.WARNING if failed else logging.INFO)
        error_code = getattr(error, "code", None) if error is not None else None
        log_action(
            logger,
            "scanner",
            action,
            self.count_id,
            self._trace_id(),
            outcome,
            level=resolved_level,
            error_code=error_code,
            **context,
        )
        if self.telemetry is None:
            return
        event = build_event(
            category=outcome_category(category, success=not failed),
            name=f"{action}_{outcome}",
            module="scanner",
            action=action,
            count_id=self.count_id,
            trace_id=self._trace_id(),
            duration_ms=int((time.monotonic() - started) * 1000),
            success=not failed,
            error_code=error_code,
            context={"outcome": outcome},
        )
        self.telemetry.emit(event)
