from __future__ import annotations

from dataclasses import dataclass, field

from .clients.counts_client import CountsClient
from .clients.lots_client import LotsClient
from .clients.products_client import ProductsClient
from .config import ClientConfig
from .http_client import HttpClient
from .notifications import ScanNotifier
from .scanner import CountScanner, ScannerCallbacks
from .telemetry import TelemetryLogger
from .tracing import TraceContext


@dataclass
class ApiSession:
    """Connection settings and credentials shared by every client of one operator."""

    config: ClientConfig
    token: str | None = None
    tenant_id: str | None = None
    trace: TraceContext = field(default_factory=TraceContext)
    _http_client: HttpClient | None = field(default=None, repr=False)

    def http(self) -> HttpClient:
        if self._http_client is None:
            self._http_client = HttpClient(config=self.config, trace=self.trace)
        return self._http_client

    def counts_client(self) -> CountsClient:
        return CountsClient(http=self.http(), access_token=self.token, tenant_id=self.tenant_id)

    def products_client(self) -> ProductsClient:
        return ProductsClient(http=self.http(), access_token=self.token, tenant_id=self.tenant_id)

    def lots_client(self) -> LotsClient:
        return LotsClient(
            http=self.http(),
            access_token=self.token,
            tenant_id=self.tenant_id,
            expiry_warning_days=self.config.lot_expiry_warning_days,
        )

    def count_scanner(
        self,
        count_id: str,
        *,
        callbacks: ScannerCallbacks | None = None,
        notifier: ScanNotifier | None = None,
        telemetry: TelemetryLogger | None = None,
    ) -> CountScanner:
        """Build a scanner scoped to one count session; build a new one per session."""
        return CountScanner(
            count_id,
            self.counts_client(),
            self.products_client(),
            callbacks=callbacks,
            default_quantity=self.config.default_quantity,
            history_limit=self.config.history_limit,
            notifier=notifier,
            telemetry=telemetry,
        )

    def establish(self, token: str, tenant_id: str | None = None) -> None:
        self.token = token
        self.tenant_id = tenant_id
        if self._http_client is not None:
            self._http_client.clear_cache()

    def clear(self) -> None:
        self.token = None
        self.tenant_id = None
        if self._http_client is not None:
            self._http_client.clear_cache()
