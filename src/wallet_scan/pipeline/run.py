"""High-level scan orchestration used by the CLI."""

from __future__ import annotations

from typing import Sequence

from ..registry import build_registry
from ..state import AppState
from .aggregate import AggregationResult, BalanceAggregator


async def run_scan(
    state: AppState, address: str, chains: Sequence[str] | None = None
) -> AggregationResult:
    """Execute one scan.

    Args:
        state: Application state containing settings and logger
        address: The address to scan
        chains: Optional subset of chain ids to query

    Returns:
        Balances and the coverage report of the run
    """
    s = state.settings
    log = state.logger

    registry = build_registry(s)
    if chains:
        registry = registry.for_chains(chains)
        unknown = sorted({c.lower() for c in chains} - set(registry.chains()))
        if unknown:
            log.warning("No sources configured for chain(s): %s", ", ".join(unknown))

    log.info(
        "Starting scan",
        extra={"address": address, "sources": len(registry)},
    )
    aggregator = BalanceAggregator(registry=registry, config=s)
    result = await aggregator.collect(address)
    log.info(
        "Scan completed",
        extra={"address": address, "complete": result.coverage.is_complete},
    )
    return result
