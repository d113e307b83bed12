from __future__ import annotations

from typing import Any

from ...constants import (
    DEFAULT_TOKEN_DECIMALS,
    SPL_TOKEN_PROGRAM_ID,
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


class SolanaRpcTokenAdapter(BaseSourceAdapter):
    """SPL token balances via ``getTokenAccountsByOwner`` (jsonParsed).

    The RPC returns one entry per token account; accounts of the same mint
    are summed. Symbols and names are not available from the node, so the
    records carry placeholders and the mint as contract address.
    """

    kind = SourceKind.TOKEN_API

    @property
    def adapter_name(self) -> str:
        return "solana_rpc"

    async def fetch_from_endpoint(
        self, endpoint: str, address: str
    ) -> list[BalanceRecord]:
        result = await self._rpc_call(
            endpoint,
            address,
            "getTokenAccountsByOwner",
            [address, {"programId": SPL_TOKEN_PROGRAM_ID}, {"encoding": "jsonParsed"}],
        )
        accounts = result.get("value") if isinstance(result, dict) else None
        if not isinstance(accounts, list):
            raise ResponseParseError("getTokenAccountsByOwner: missing value list")

        totals: dict[str, tuple[int, int]] = {}
        for account in accounts:
            parsed = self._parse_account(account)
            if parsed is None:
                continue
            mint, amount, decimals = parsed
            previous, _ = totals.get(mint, (0, decimals))
            totals[mint] = (previous + amount, decimals)

        records: list[BalanceRecord] = []
        for mint, (amount, decimals) in totals.items():
            record = to_balance_record(
                self.source.chain_id,
                UNKNOWN_TOKEN_SYMBOL,
                amount,
                decimals,
                name=UNKNOWN_TOKEN_NAME,
                contract_address=mint,
            )
            if record is not None:
                records.append(record)
        return records

    def _parse_account(self, account: Any) -> tuple[str, int, int] | None:
        try:
            info = account["account"]["data"]["parsed"]["info"]
            token_amount = info["tokenAmount"]
            mint = str(info["mint"])
            amount = parse_raw_amount(token_amount["amount"])
            decimals = parse_decimals(
                token_amount.get("decimals"), DEFAULT_TOKEN_DECIMALS
            )
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning(
                "%s: skipping unreadable token account: %r", self.source.name, exc
            )
            return None
        return mint, amount, decimals
