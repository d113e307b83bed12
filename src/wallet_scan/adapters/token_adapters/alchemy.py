from __future__ import annotations

import asyncio
from typing import Any

from ...clients.http import HttpClient
from ...constants import (
    DEFAULT_TOKEN_DECIMALS,
    UNKNOWN_TOKEN_NAME,
    UNKNOWN_TOKEN_SYMBOL,
)
from ...errors import ResponseParseError
from ...logger import get_logger
from ...models import BalanceRecord, SourceDescriptor, SourceKind
from ...processors.normalizer import canonical_contract_address, to_balance_record
from ...settings import ScanSettings
from ...units import parse_decimals, parse_raw_amount
from ..base import BaseSourceAdapter

logger = get_logger(__name__)


class AlchemyTokenAdapter(BaseSourceAdapter):
    """ERC-20 balances from Alchemy's token API.

    Lists balances with ``alchemy_getTokenBalances`` (following ``pageKey``)
    and resolves symbol, name and decimals per contract with
    ``alchemy_getTokenMetadata``. A failed metadata lookup never drops the
    balance: the record is emitted with placeholder symbol and name and
    the default precision.
    """

    kind = SourceKind.TOKEN_API

    def __init__(
        self,
        source: SourceDescriptor,
        http: HttpClient,
        config: ScanSettings | None = None,
    ):
        super().__init__(source, http, config)
        self.max_pages = self.config.alchemy_max_pages

    @property
    def adapter_name(self) -> str:
        return "alchemy"

    async def fetch_from_endpoint(
        self, endpoint: str, address: str
    ) -> list[BalanceRecord]:
        holdings = self._non_zero_holdings(
            await self._fetch_token_balances(endpoint, address)
        )
        logger.debug(
            "%s: %d non-zero token balance(s)", self.source.name, len(holdings)
        )

        metadata_results = await asyncio.gather(
            *[
                self._fetch_metadata(endpoint, address, contract)
                for contract, _ in holdings
            ],
            return_exceptions=True,
        )

        records: list[BalanceRecord] = []
        for (contract, amount), metadata in zip(holdings, metadata_results):
            if isinstance(metadata, BaseException):
                logger.warning(
                    "%s: metadata lookup failed for %s: %s",
                    self.source.name,
                    contract,
                    self._redact(str(metadata)),
                )
                metadata = {}
            record = self._to_record(contract, amount, metadata)
            if record is not None:
                records.append(record)
        return records

    async def _fetch_token_balances(
        self, endpoint: str, address: str
    ) -> list[Any]:
        entries: list[Any] = []
        page_key: str | None = None
        for _ in range(self.max_pages):
            params: list[Any] = [address, "erc20"]
            if page_key:
                params.append({"pageKey": page_key})
            result = await self._rpc_call(
                endpoint, address, "alchemy_getTokenBalances", params
            )
            if not isinstance(result, dict) or not isinstance(
                result.get("tokenBalances"), list
            ):
                raise ResponseParseError(
                    "alchemy_getTokenBalances: missing tokenBalances list"
                )
            entries.extend(result["tokenBalances"])
            page_key = result.get("pageKey")
            if not page_key:
                break
        else:
            logger.warning(
                "%s: stopped after %d page(s) of token balances; results are truncated",
                self.source.name,
                self.max_pages,
            )
        return entries

    def _non_zero_holdings(self, entries: list[Any]) -> list[tuple[str, int]]:
        holdings: list[tuple[str, int]] = []
        for entry in entries:
            if not isinstance(entry, dict) or not entry.get("contractAddress"):
                logger.debug("%s: skipping malformed entry %r", self.source.name, entry)
                continue
            contract = entry["contractAddress"]
            if entry.get("error"):
                logger.debug(
                    "%s: provider error for %s: %s",
                    self.source.name,
                    contract,
                    entry["error"],
                )
                continue
            try:
                amount = parse_raw_amount(entry.get("tokenBalance"))
            except ValueError as exc:
                logger.warning(
                    "%s: unreadable balance for %s: %s", self.source.name, contract, exc
                )
                continue
            if amount == 0:
                continue
            holdings.append((canonical_contract_address(contract), amount))
        return holdings

    async def _fetch_metadata(
        self, endpoint: str, address: str, contract: str
    ) -> dict[str, Any]:
        result = await self._rpc_call(
            endpoint, address, "alchemy_getTokenMetadata", [contract]
        )
        if not isinstance(result, dict):
            raise ResponseParseError(
                f"alchemy_getTokenMetadata: unexpected result for {contract}"
            )
        return result

    def _to_record(
        self, contract: str, amount: int, metadata: dict[str, Any]
    ) -> BalanceRecord | None:
        try:
            decimals = parse_decimals(metadata.get("decimals"), DEFAULT_TOKEN_DECIMALS)
        except (TypeError, ValueError):
            logger.warning(
                "%s: invalid decimals %r for %s, assuming %d",
                self.source.name,
                metadata.get("decimals"),
                contract,
                DEFAULT_TOKEN_DECIMALS,
            )
            decimals = DEFAULT_TOKEN_DECIMALS
        return to_balance_record(
            self.source.chain_id,
            metadata.get("symbol") or UNKNOWN_TOKEN_SYMBOL,
            amount,
            decimals,
            name=metadata.get("name") or UNKNOWN_TOKEN_NAME,
            contract_address=contract,
        )
