from __future__ import annotations

from ...constants import NATIVE_TOKEN
from ...logger import get_logger
from ...models import BalanceRecord, SourceKind
from ...processors.normalizer import to_balance_record
from ...units import parse_raw_amount
from ..base import BaseSourceAdapter

logger = get_logger(__name__)


class EvmNativeAdapter(BaseSourceAdapter):
    """Native balance of an EVM chain via ``eth_getBalance``."""

    kind = SourceKind.NATIVE_RPC

    @property
    def adapter_name(self) -> str:
        return "evm"

    async def fetch_from_endpoint(
        self, endpoint: str, address: str
    ) -> list[BalanceRecord]:
        raw = await self._rpc_call(
            endpoint, address, "eth_getBalance", [address, "latest"]
        )
        amount = parse_raw_amount(raw)
        logger.debug("%s: raw native balance %d", self.source.name, amount)

        record = to_balance_record(
            self.source.chain_id,
            NATIVE_TOKEN,
            amount,
            self.source.decimals,
            name=self.source.native_symbol,
        )
        return [record] if record else []
