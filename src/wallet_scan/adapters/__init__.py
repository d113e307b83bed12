from __future__ import annotations

from ..clients.http import HttpClient
from ..settings import ScanSettings
from ..models import SourceDescriptor
from .base import BaseSourceAdapter
from .native_adapters import EvmNativeAdapter, SolanaNativeAdapter
from .token_adapters import (
    AlchemyTokenAdapter,
    MoralisTokenAdapter,
    SolanaRpcTokenAdapter,
)

ADAPTER_REGISTRY: dict[str, type[BaseSourceAdapter]] = {
    "evm": EvmNativeAdapter,
    "solana": SolanaNativeAdapter,
    "alchemy": AlchemyTokenAdapter,
    "moralis": MoralisTokenAdapter,
    "solana_rpc": SolanaRpcTokenAdapter,
}


def get_adapter_class(protocol: str) -> type[BaseSourceAdapter]:
    """Get adapter class by protocol name.

    Args:
        protocol: Protocol of a source descriptor (case-insensitive)

    Returns:
        Adapter class

    Raises:
        ValueError: If protocol is not recognized
    """
    protocol_normalized = protocol.lower()
    if protocol_normalized not in ADAPTER_REGISTRY:
        raise ValueError(
            f"Unknown protocol '{protocol}'. "
            f"Available: {', '.join(ADAPTER_REGISTRY.keys())}"
        )
    return ADAPTER_REGISTRY[protocol_normalized]


def create_adapter(
    source: SourceDescriptor,
    http: HttpClient,
    config: ScanSettings | None = None,
) -> BaseSourceAdapter:
    """Instantiate the adapter serving ``source``."""
    return get_adapter_class(source.protocol)(source, http, config)


__all__ = [
    "ADAPTER_REGISTRY",
    "AlchemyTokenAdapter",
    "BaseSourceAdapter",
    "EvmNativeAdapter",
    "MoralisTokenAdapter",
    "SolanaNativeAdapter",
    "SolanaRpcTokenAdapter",
    "create_adapter",
    "get_adapter_class",
]
