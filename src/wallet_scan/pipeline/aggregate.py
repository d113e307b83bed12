"""Concurrent fan-out over every registered source."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from ..adapters import BaseSourceAdapter, create_adapter
from ..clients.http import HttpClient
from ..errors import classify_error
from ..logger import get_logger
from ..models import BalanceRecord, FetchOutcome, SourceDescriptor
from ..processors import merge_outcomes
from ..registry import SourceRegistry, build_registry
from ..report.coverage import CoverageReport, build_coverage_report, log_coverage
from ..settings import ScanSettings

logger = get_logger(__name__)

AdapterFactory = Callable[
    [SourceDescriptor, HttpClient, ScanSettings], BaseSourceAdapter
]


@dataclass(frozen=True)
class AggregationResult:
    """Balances of one address plus the coverage report of the run."""

    address: str
    balances: tuple[BalanceRecord, ...]
    coverage: CoverageReport

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "balances": [record.to_dict() for record in self.balances],
            "coverage": self.coverage.to_dict(),
        }


def _settle_outcomes(
    sources: Sequence[SourceDescriptor],
    results: Sequence[FetchOutcome | BaseException],
) -> list[FetchOutcome]:
    """Turn asyncio.gather results into outcomes, in registry order.

    Adapters already return classified failures; anything that still
    escaped is classified here so it cannot reach the caller.
    """
    outcomes: list[FetchOutcome] = []
    for source, result in zip(sources, results):
        if isinstance(result, BaseException):
            logger.error("Source '%s' crashed: %r", source.name, result)
            outcomes.append(
                FetchOutcome.failure(
                    source,
                    classify_error(result),
                    str(result) or type(result).__name__,
                )
            )
        else:
            logger.debug(
                "Source '%s' settled: %s",
                source.name,
                "ok" if result.ok else result.reason,
            )
            outcomes.append(result)
    return outcomes


class BalanceAggregator:
    """Query every source for one address and merge what comes back.

    Sources run concurrently and independently: the join waits for all of
    them, and a failing source only removes its own records.
    """

    def __init__(
        self,
        registry: SourceRegistry | None = None,
        config: ScanSettings | None = None,
        http: HttpClient | None = None,
        adapter_factory: AdapterFactory = create_adapter,
    ):
        self.config = config or ScanSettings()
        self.registry = registry if registry is not None else build_registry(self.config)
        self.http = http or HttpClient(
            request_timeout=self.config.request_timeout,
            max_concurrency=self.config.max_concurrent_requests,
        )
        self._adapter_factory = adapter_factory

    async def _fetch_source(self, source: SourceDescriptor, address: str) -> FetchOutcome:
        adapter = self._adapter_factory(source, self.http, self.config)
        return await adapter.fetch(address)

    async def collect(self, address: str) -> AggregationResult:
        """Fetch, merge and report balances for ``address``.

        An empty address dispatches nothing and yields an empty result.
        """
        address = (address or "").strip()
        if not address:
            logger.warning("No address given; nothing to fetch")
            return AggregationResult(address="", balances=(), coverage=CoverageReport())

        sources = self.registry.all_sources()
        logger.info(
            "Fetching balances for %s from %d source(s)...", address, len(sources)
        )

        results = await asyncio.gather(
            *[self._fetch_source(source, address) for source in sources],
            return_exceptions=True,
        )

        outcomes = _settle_outcomes(sources, results)
        balances = merge_outcomes(outcomes)
        coverage = build_coverage_report(outcomes)
        log_coverage(coverage)

        logger.info("Found %d holding(s) for %s", len(balances), address)
        return AggregationResult(
            address=address, balances=tuple(balances), coverage=coverage
        )

    async def aggregate(self, address: str) -> list[BalanceRecord]:
        """Return the merged balances for ``address``; never raises on source errors."""
        result = await self.collect(address)
        return list(result.balances)


async def aggregate_balances(
    address: str, config: ScanSettings | None = None
) -> list[BalanceRecord]:
    """Aggregate with the default registry built from ``config``."""
    return await BalanceAggregator(config=config).aggregate(address)
