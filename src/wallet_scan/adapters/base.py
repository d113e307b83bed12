from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, ClassVar, TypeVar

from ..clients.http import HttpClient
from ..clients.jsonrpc import JsonRpcClient
from ..errors import FailureReason, classify_error
from ..logger import get_logger
from ..models import (
    BalanceRecord,
    EndpointFailure,
    FetchOutcome,
    SourceDescriptor,
    SourceKind,
)
from ..settings import ScanSettings
from ..transport import RetryPolicy, guarded_call

logger = get_logger(__name__)

T = TypeVar("T")


class BaseSourceAdapter(ABC):
    """Abstract base class for balance source adapters.

    Subclasses implement one protocol against a single endpoint;
    ``fetch`` adds endpoint failover and turns every failure into a
    classified ``FetchOutcome``.
    """

    kind: ClassVar[SourceKind]

    def __init__(
        self,
        source: SourceDescriptor,
        http: HttpClient,
        config: ScanSettings | None = None,
    ):
        """Initialize the adapter.

        Args:
            source: Descriptor of the source this adapter serves
            http: Network primitive shared by all adapters
            config: Scan configuration; defaults apply when omitted
        """
        self.source = source
        self.config = config or ScanSettings()
        self.http = http
        self.rpc = JsonRpcClient(http)
        self.timeout: float = source.timeout or self.config.request_timeout
        self.retry_policy: RetryPolicy = source.retry or self.config.retry_policy

    @property
    @abstractmethod
    def adapter_name(self) -> str:
        """Return the name of this adapter."""
        ...

    @abstractmethod
    async def fetch_from_endpoint(
        self, endpoint: str, address: str
    ) -> list[BalanceRecord]:
        """Fetch balances for ``address`` from a single endpoint template."""
        ...

    async def fetch(self, address: str) -> FetchOutcome:
        """Fetch balances, failing over across endpoints in order.

        Never raises for network or parse problems: the last endpoint's
        classified failure is returned instead.
        """
        started = time.monotonic()
        failures: list[EndpointFailure] = []

        for endpoint in self.source.endpoints:
            try:
                records = await self.fetch_from_endpoint(endpoint, address)
            except Exception as exc:
                reason = classify_error(exc)
                message = self._redact(str(exc) or type(exc).__name__)
                failures.append(EndpointFailure(endpoint, reason, message))
                if reason == FailureReason.NOT_ENABLED:
                    logger.warning(
                        "%s: network not enabled for this credential at %s",
                        self.source.name,
                        endpoint,
                    )
                else:
                    logger.warning(
                        "%s: endpoint %s failed (%s): %s",
                        self.source.name,
                        endpoint,
                        reason.value,
                        message,
                    )
                continue

            elapsed = time.monotonic() - started
            logger.debug(
                "%s: %d record(s) from %s in %.2fs",
                self.source.name,
                len(records),
                endpoint,
                elapsed,
            )
            return FetchOutcome.success(
                self.source,
                records,
                endpoint=endpoint,
                endpoint_failures=tuple(failures),
                elapsed=elapsed,
            )

        elapsed = time.monotonic() - started
        if not failures:
            return FetchOutcome.failure(
                self.source,
                FailureReason.NETWORK_ERROR,
                "no endpoints configured",
                elapsed=elapsed,
            )
        last = failures[-1]
        return FetchOutcome.failure(
            self.source,
            last.reason,
            last.message,
            endpoint_failures=tuple(failures),
            elapsed=elapsed,
        )

    async def _call(
        self, operation: Callable[[], Awaitable[T]], description: str
    ) -> T:
        return await guarded_call(
            operation,
            timeout=self.timeout,
            policy=self.retry_policy,
            description=f"{self.source.name} {description}",
            limiter=self.http.slot,
        )

    async def _rpc_call(
        self, endpoint: str, address: str, method: str, params: list[Any]
    ) -> Any:
        url = self.source.resolve_endpoint(endpoint, address)
        return await self._call(
            lambda: self.rpc.call(url, method, params, timeout=self.timeout), method
        )

    def _redact(self, message: str) -> str:
        """Strip the provider key from error text (requests embeds the URL)."""
        if self.source.api_key:
            return message.replace(self.source.api_key, "***")
        return message
