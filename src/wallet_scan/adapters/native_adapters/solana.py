from __future__ import annotations

from typing import Any

from ...constants import NATIVE_TOKEN
from ...errors import ResponseParseError
from ...logger import get_logger
from ...models import BalanceRecord, SourceKind
from ...processors.normalizer import to_balance_record
from ...units import parse_raw_amount
from ..base import BaseSourceAdapter

logger = get_logger(__name__)


class SolanaNativeAdapter(BaseSourceAdapter):
    """SOL balance via the ``getBalance`` RPC method (lamports)."""

    kind = SourceKind.NATIVE_RPC

    @property
    def adapter_name(self) -> str:
        return "solana"

    async def fetch_from_endpoint(
        self, endpoint: str, address: str
    ) -> list[BalanceRecord]:
        result = await self._rpc_call(endpoint, address, "getBalance", [address])
        amount = parse_raw_amount(self._lamports(result))
        logger.debug("%s: %d lamports", self.source.name, amount)

        record = to_balance_record(
            self.source.chain_id,
            NATIVE_TOKEN,
            amount,
            self.source.decimals,
            name=self.source.native_symbol,
        )
        return [record] if record else []

    @staticmethod
    def _lamports(result: Any) -> Any:
        # Nodes answer {"context": {...}, "value": <lamports>}
        if isinstance(result, dict):
            if "value" not in result:
                raise ResponseParseError("getBalance: result has no value")
            return result["value"]
        return result
