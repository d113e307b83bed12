"""Conversion of raw provider amounts into ``BalanceRecord``s."""

from __future__ import annotations

from web3 import Web3

from ..models import BalanceRecord
from ..units import format_units


def canonical_contract_address(address: str) -> str:
    """EIP-55 checksum an EVM contract address; leave anything else untouched."""
    try:
        return Web3.to_checksum_address(address)
    except ValueError:
        return address


def to_balance_record(
    chain: str,
    token: str,
    amount: int,
    decimals: int,
    *,
    name: str | None = None,
    contract_address: str | None = None,
) -> BalanceRecord | None:
    """Build a record for a raw amount, or ``None`` when the amount is zero.

    Zero holdings are dropped here rather than reported as "0".
    """
    if amount == 0:
        return None
    return BalanceRecord(
        chain=chain,
        token=token,
        balance=format_units(amount, decimals),
        name=name,
        contract_address=contract_address,
    )
