from __future__ import annotations

from .alchemy import AlchemyTokenAdapter
from .moralis import MoralisTokenAdapter
from .solana_rpc import SolanaRpcTokenAdapter

__all__ = ["AlchemyTokenAdapter", "MoralisTokenAdapter", "SolanaRpcTokenAdapter"]
