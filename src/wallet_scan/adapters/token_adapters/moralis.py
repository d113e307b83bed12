from __future__ import annotations

from typing import Any

from ...constants import (
    DEFAULT_TOKEN_DECIMALS,
    NATIVE_TOKEN,
    UNKNOWN_TOKEN_NAME,
    UNKNOWN_TOKEN_SYMBOL,
)
from ...errors import ResponseParseError
from ...logger import get_logger
from ...models import BalanceRecord, SourceKind
from ...processors.normalizer import to_balance_record
from ...units import parse_decimals, parse_raw_amount
from ..base import BaseSourceAdapter

logger = get_logger(__name__)


class MoralisTokenAdapter(BaseSourceAdapter):
    """Solana holdings from the Moralis gateway REST API.

    Accepts either a bare token list or a portfolio object with ``tokens``
    and ``nativeBalance``. The native balance is reported too; when a
    NativeRPC source covers the same chain, deduplication keeps that one.
    """

    kind = SourceKind.TOKEN_API

    @property
    def adapter_name(self) -> str:
        return "moralis"

    async def fetch_from_endpoint(
        self, endpoint: str, address: str
    ) -> list[BalanceRecord]:
        url = self.source.resolve_endpoint(endpoint, address)
        headers = {"X-API-Key": self.source.api_key} if self.source.api_key else {}
        body = await self._call(
            lambda: self.http.get_json(url, headers=headers, timeout=self.timeout),
            "portfolio",
        )

        native: Any = None
        if isinstance(body, list):
            tokens = body
        elif isinstance(body, dict):
            tokens = body.get("tokens", [])
            native = body.get("nativeBalance")
        else:
            raise ResponseParseError("moralis: unexpected response body")
        if not isinstance(tokens, list):
            raise ResponseParseError("moralis: tokens is not a list")

        records: list[BalanceRecord] = []
        if native is not None:
            native_record = self._native_record(native)
            if native_record is not None:
                records.append(native_record)

        for token in tokens:
            record = self._token_record(token)
            if record is not None:
                records.append(record)
        return records

    def _native_record(self, native: Any) -> BalanceRecord | None:
        lamports = native.get("lamports") if isinstance(native, dict) else native
        try:
            amount = parse_raw_amount(lamports)
        except ValueError as exc:
            logger.warning("%s: unreadable native balance: %s", self.source.name, exc)
            return None
        return to_balance_record(
            self.source.chain_id,
            NATIVE_TOKEN,
            amount,
            self.source.decimals,
            name=self.source.native_symbol,
        )

    def _token_record(self, token: Any) -> BalanceRecord | None:
        if not isinstance(token, dict):
            logger.warning("%s: skipping malformed token %r", self.source.name, token)
            return None
        raw = token.get("amountRaw", token.get("amount"))
        try:
            amount = parse_raw_amount(raw)
            decimals = parse_decimals(token.get("decimals"), DEFAULT_TOKEN_DECIMALS)
        except (TypeError, ValueError) as exc:
            logger.warning(
                "%s: skipping token %s: %s", self.source.name, token.get("mint"), exc
            )
            return None
        return to_balance_record(
            self.source.chain_id,
            token.get("symbol") or UNKNOWN_TOKEN_SYMBOL,
            amount,
            decimals,
            name=token.get("name") or UNKNOWN_TOKEN_NAME,
            contract_address=token.get("mint"),
        )
