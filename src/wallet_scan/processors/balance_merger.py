from __future__ import annotations

from typing import Sequence

from ..logger import get_logger
from ..models import BalanceRecord, FetchOutcome, SourceKind

logger = get_logger(__name__)


def authoritative_kind(record: BalanceRecord) -> SourceKind:
    """Source kind trusted for a record's asset class."""
    return SourceKind.NATIVE_RPC if record.is_native else SourceKind.TOKEN_API


def merge_outcomes(outcomes: Sequence[FetchOutcome]) -> list[BalanceRecord]:
    """Merge successful outcomes into one deduplicated list.

    Args:
        outcomes: Settled outcomes in registry order (not completion order).

    Returns:
        Records in registry order. When several sources report the same
        ``(chain, token, contract_address)``, the first record from the
        authoritative source kind wins (NativeRPC for native balances,
        TokenAPI for tokens); without an authoritative candidate the first
        one wins. Dropped duplicates are logged.
    """
    candidates: list[tuple[FetchOutcome, BalanceRecord]] = [
        (outcome, record)
        for outcome in outcomes
        if outcome.ok
        for record in outcome.records
    ]

    winners: dict[tuple[str, str, str | None], tuple[FetchOutcome, BalanceRecord]] = {}
    for outcome, record in candidates:
        current = winners.get(record.key)
        if current is None:
            winners[record.key] = (outcome, record)
            continue
        current_outcome, current_record = current
        expected = authoritative_kind(record)
        if (
            current_outcome.source.kind != expected
            and outcome.source.kind == expected
        ):
            winners[record.key] = (outcome, record)

    merged: list[BalanceRecord] = []
    for outcome, record in candidates:
        winner_outcome, winner_record = winners[record.key]
        if winner_outcome is outcome and winner_record is record:
            merged.append(record)
            continue
        logger.warning(
            "Dropping duplicate %s/%s from %s (kept %s from %s)",
            record.chain,
            record.token,
            outcome.source.name,
            winner_record.balance,
            winner_outcome.source.name,
        )
    return merged
