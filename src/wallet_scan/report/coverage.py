"""Coverage report: which sources answered and why the others did not.

The report travels next to the balance list and never changes it. Reading
or logging it is always safe; a failed source only shows up here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from ..errors import FailureReason
from ..logger import get_logger
from ..models import EndpointFailure, FetchOutcome, SourceKind

logger = get_logger(__name__)


@dataclass(frozen=True)
class SourceCoverage:
    """Settled status of one source."""

    source: str
    chain: str
    kind: SourceKind
    ok: bool
    records: int
    elapsed: float
    endpoint: str | None = None
    reason: FailureReason | None = None
    message: str | None = None
    endpoint_failures: tuple[EndpointFailure, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "chain": self.chain,
            "kind": self.kind.value,
            "ok": self.ok,
            "records": self.records,
            "elapsed": round(self.elapsed, 3),
            "endpoint": self.endpoint,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
            "endpoint_failures": [
                {
                    "endpoint": failure.endpoint,
                    "reason": failure.reason.value,
                    "message": failure.message,
                }
                for failure in self.endpoint_failures
            ],
        }


@dataclass(frozen=True)
class CoverageReport:
    """Per-source coverage of one aggregation run, in registry order."""

    sources: tuple[SourceCoverage, ...] = ()

    @property
    def succeeded(self) -> list[SourceCoverage]:
        return [entry for entry in self.sources if entry.ok]

    @property
    def failures(self) -> list[SourceCoverage]:
        return [entry for entry in self.sources if not entry.ok]

    @property
    def is_complete(self) -> bool:
        return not self.failures

    @property
    def unreachable_chains(self) -> list[str]:
        """Chains for which no source answered at all."""
        answered = {entry.chain for entry in self.succeeded}
        return list(
            dict.fromkeys(
                entry.chain for entry in self.failures if entry.chain not in answered
            )
        )

    def by_reason(self) -> dict[FailureReason, list[str]]:
        grouped: dict[FailureReason, list[str]] = {}
        for entry in self.failures:
            if entry.reason is not None:
                grouped.setdefault(entry.reason, []).append(entry.source)
        return grouped

    def status_of(self, source_name: str) -> SourceCoverage | None:
        return next((e for e in self.sources if e.source == source_name), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "complete": self.is_complete,
            "succeeded": len(self.succeeded),
            "failed": len(self.failures),
            "unreachable_chains": self.unreachable_chains,
            "sources": [entry.to_dict() for entry in self.sources],
        }


def build_coverage_report(outcomes: Sequence[FetchOutcome]) -> CoverageReport:
    """Convert settled outcomes into a coverage report."""
    return CoverageReport(
        sources=tuple(
            SourceCoverage(
                source=outcome.source.name,
                chain=outcome.source.chain_id,
                kind=outcome.source.kind,
                ok=outcome.ok,
                records=len(outcome.records),
                elapsed=outcome.elapsed,
                endpoint=outcome.endpoint,
                reason=outcome.reason,
                message=outcome.message,
                endpoint_failures=outcome.endpoint_failures,
            )
            for outcome in outcomes
        )
    )


def log_coverage(report: CoverageReport) -> None:
    """Log the coverage report for operators."""
    for entry in report.failures:
        if entry.reason == FailureReason.NOT_ENABLED:
            logger.warning(
                "%s: network not enabled for the configured credential", entry.source
            )
        else:
            logger.warning(
                "%s: unreachable (%s): %s",
                entry.source,
                entry.reason.value if entry.reason else "unknown",
                entry.message,
            )
    logger.info(
        "Coverage: %d of %d source(s) answered",
        len(report.succeeded),
        len(report.sources),
    )
