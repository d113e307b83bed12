from __future__ import annotations

from .evm import EvmNativeAdapter
from .solana import SolanaNativeAdapter

__all__ = ["EvmNativeAdapter", "SolanaNativeAdapter"]
