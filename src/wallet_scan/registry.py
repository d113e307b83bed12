"""Source descriptor registry and the default chain table."""

from __future__ import annotations

from typing import Iterable, Sequence

from .adapters import get_adapter_class
from .constants import (
    ALCHEMY_URL_TEMPLATE,
    CHAINS,
    MORALIS_SOLANA_PORTFOLIO_URL,
    ChainInfo,
)
from .logger import get_logger
from .models import SourceDescriptor, SourceKind
from .settings import ChainSettings, ScanSettings
from .transport import RetryPolicy

logger = get_logger(__name__)


class SourceRegistry:
    """Ordered, read-only collection of balance sources.

    Validation is eager: descriptors without endpoints are excluded here
    instead of failing at fetch time, and malformed descriptors raise.
    """

    def __init__(self, descriptors: Iterable[SourceDescriptor]):
        accepted: list[SourceDescriptor] = []
        seen_names: set[str] = set()

        for descriptor in descriptors:
            if not descriptor.endpoints:
                logger.warning(
                    "Excluding source %s: no endpoints configured", descriptor.name
                )
                continue

            adapter_class = get_adapter_class(descriptor.protocol)
            if adapter_class.kind != descriptor.kind:
                raise ValueError(
                    f"Source {descriptor.name}: protocol '{descriptor.protocol}' "
                    f"serves {adapter_class.kind.value}, not {descriptor.kind.value}"
                )
            if descriptor.name in seen_names:
                raise ValueError(f"Duplicate source name: {descriptor.name}")
            seen_names.add(descriptor.name)
            accepted.append(descriptor)

        self._sources: tuple[SourceDescriptor, ...] = tuple(accepted)

    def __len__(self) -> int:
        return len(self._sources)

    def __iter__(self):
        return iter(self._sources)

    def all_sources(self) -> tuple[SourceDescriptor, ...]:
        return self._sources

    def chains(self) -> list[str]:
        """Distinct chain ids in registry order."""
        return list(dict.fromkeys(s.chain_id for s in self._sources))

    def for_chains(self, chains: Sequence[str]) -> "SourceRegistry":
        """Registry restricted to ``chains``, keeping the original order."""
        wanted = {chain.lower() for chain in chains}
        return SourceRegistry(s for s in self._sources if s.chain_id in wanted)


def _usable_endpoints(templates: Iterable[str], api_key: str | None) -> tuple[str, ...]:
    """Drop endpoint templates that need a key when none is configured."""
    return tuple(t for t in templates if api_key or "{api_key}" not in t)


def _native_endpoints(
    info: ChainInfo, overrides: ChainSettings, alchemy_key: str | None
) -> tuple[str, ...]:
    if overrides.native_endpoints:
        return _usable_endpoints(overrides.native_endpoints, alchemy_key)
    templates: list[str] = []
    if info["alchemy_network"]:
        templates.append(ALCHEMY_URL_TEMPLATE.format(network=info["alchemy_network"]))
    templates.extend(info["public_rpc"])
    return _usable_endpoints(templates, alchemy_key)


def _retry_override(
    settings: ScanSettings, overrides: ChainSettings
) -> RetryPolicy | None:
    if overrides.retry_attempts is None:
        return None
    return RetryPolicy(
        attempts=overrides.retry_attempts,
        backoff_base=settings.backoff_base,
        strategy=settings.backoff_strategy,
    )


def default_sources(settings: ScanSettings) -> list[SourceDescriptor]:
    """Derive the descriptor table from the chain table and settings.

    Per chain, the NativeRPC source comes first, then its TokenAPI sources.
    Alchemy endpoints precede public RPC endpoints.
    """
    alchemy_key = settings.alchemy_key
    moralis_key = settings.moralis_key
    descriptors: list[SourceDescriptor] = []

    for chain_id, info in CHAINS.items():
        if not settings.is_chain_enabled(chain_id):
            logger.debug("Chain %s disabled by configuration", chain_id)
            continue

        overrides = settings.chain_settings(chain_id)
        common = {
            "chain_id": chain_id,
            "decimals": info["decimals"],
            "native_symbol": info["native_symbol"],
            "timeout": overrides.request_timeout,
            "retry": _retry_override(settings, overrides),
        }
        native_endpoints = _native_endpoints(info, overrides, alchemy_key)

        descriptors.append(
            SourceDescriptor(
                name=f"{chain_id}:native",
                kind=SourceKind.NATIVE_RPC,
                protocol=info["family"],
                endpoints=native_endpoints,
                api_key=alchemy_key,
                **common,
            )
        )

        if info["family"] == "evm":
            if overrides.token_endpoints:
                token_endpoints = _usable_endpoints(
                    overrides.token_endpoints, alchemy_key
                )
            elif info["alchemy_network"]:
                token_endpoints = _usable_endpoints(
                    [ALCHEMY_URL_TEMPLATE.format(network=info["alchemy_network"])],
                    alchemy_key,
                )
            else:
                continue
            descriptors.append(
                SourceDescriptor(
                    name=f"{chain_id}:alchemy",
                    kind=SourceKind.TOKEN_API,
                    protocol="alchemy",
                    endpoints=token_endpoints,
                    api_key=alchemy_key,
                    **common,
                )
            )
        elif info["family"] == "solana":
            # Moralis knows symbols and names, so it replaces the bare SPL
            # account listing when its key is configured.
            if moralis_key and not overrides.token_endpoints:
                descriptors.append(
                    SourceDescriptor(
                        name=f"{chain_id}:moralis",
                        kind=SourceKind.TOKEN_API,
                        protocol="moralis",
                        endpoints=(MORALIS_SOLANA_PORTFOLIO_URL,),
                        api_key=moralis_key,
                        **common,
                    )
                )
            else:
                spl_endpoints = (
                    _usable_endpoints(overrides.token_endpoints, alchemy_key)
                    if overrides.token_endpoints
                    else native_endpoints
                )
                descriptors.append(
                    SourceDescriptor(
                        name=f"{chain_id}:spl",
                        kind=SourceKind.TOKEN_API,
                        protocol="solana_rpc",
                        endpoints=spl_endpoints,
                        api_key=alchemy_key,
                        **common,
                    )
                )
    return descriptors


def build_registry(settings: ScanSettings | None = None) -> SourceRegistry:
    """Build the registry for the given (or default) settings."""
    settings = settings or ScanSettings()
    registry = SourceRegistry(default_sources(settings))
    logger.debug(
        "Registry has %d source(s) across %d chain(s)",
        len(registry),
        len(registry.chains()),
    )
    return registry
