"""Domain models for the balance aggregation engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .constants import NATIVE_TOKEN
from .errors import FailureReason, SourceError
from .transport import RetryPolicy


class SourceKind(str, Enum):
    NATIVE_RPC = "native_rpc"
    TOKEN_API = "token_api"


@dataclass(frozen=True)
class SourceDescriptor:
    """Static description of one balance source.

    Endpoints are URL templates tried in order. ``{api_key}`` and
    ``{address}`` placeholders are filled in at call time, so the templates
    themselves are safe to log.
    """

    name: str
    chain_id: str
    kind: SourceKind
    protocol: str
    endpoints: tuple[str, ...]
    api_key: str | None = field(default=None, repr=False)
    decimals: int = 18
    native_symbol: str | None = None
    timeout: float | None = None
    retry: RetryPolicy | None = None

    def resolve_endpoint(self, endpoint: str, address: str = "") -> str:
        """Fill the credential and address placeholders of an endpoint."""
        url = endpoint.replace("{address}", address)
        if "{api_key}" in url:
            if not self.api_key:
                raise SourceError(
                    FailureReason.NOT_ENABLED,
                    f"{self.name}: endpoint requires an API key",
                )
            url = url.replace("{api_key}", self.api_key)
        return url


@dataclass(frozen=True)
class BalanceRecord:
    """One non-zero holding of the scanned address."""

    chain: str
    token: str
    balance: str
    name: str | None = None
    contract_address: str | None = None

    @property
    def is_native(self) -> bool:
        return self.token == NATIVE_TOKEN

    @property
    def key(self) -> tuple[str, str, str | None]:
        return (self.chain, self.token, self.contract_address)

    def to_dict(self) -> dict[str, Any]:
        return {
            "chain": self.chain,
            "token": self.token,
            "name": self.name,
            "contract_address": self.contract_address,
            "balance": self.balance,
        }


@dataclass(frozen=True)
class EndpointFailure:
    """A failed attempt against one endpoint during failover."""

    endpoint: str
    reason: FailureReason
    message: str


@dataclass(frozen=True)
class FetchOutcome:
    """Settled result of one source task: either records or a failure reason."""

    source: SourceDescriptor
    records: tuple[BalanceRecord, ...] = ()
    reason: FailureReason | None = None
    message: str | None = None
    endpoint: str | None = None
    endpoint_failures: tuple[EndpointFailure, ...] = ()
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.reason is None

    @classmethod
    def success(
        cls,
        source: SourceDescriptor,
        records: list[BalanceRecord] | tuple[BalanceRecord, ...],
        *,
        endpoint: str | None = None,
        endpoint_failures: tuple[EndpointFailure, ...] = (),
        elapsed: float = 0.0,
    ) -> "FetchOutcome":
        return cls(
            source=source,
            records=tuple(records),
            endpoint=endpoint,
            endpoint_failures=endpoint_failures,
            elapsed=elapsed,
        )

    @classmethod
    def failure(
        cls,
        source: SourceDescriptor,
        reason: FailureReason,
        message: str,
        *,
        endpoint_failures: tuple[EndpointFailure, ...] = (),
        elapsed: float = 0.0,
    ) -> "FetchOutcome":
        return cls(
            source=source,
            reason=reason,
            message=message,
            endpoint_failures=endpoint_failures,
            elapsed=elapsed,
        )
