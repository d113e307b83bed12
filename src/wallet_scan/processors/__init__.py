from __future__ import annotations

from .balance_merger import merge_outcomes
from .normalizer import canonical_contract_address, to_balance_record

__all__ = [
    "merge_outcomes",
    "canonical_contract_address",
    "to_balance_record",
]
