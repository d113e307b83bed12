from __future__ import annotations

from typing import Any


def format_units(value: int, decimals: int) -> str:
    """Render an integer base-unit amount as a plain decimal string.

    Args:
        value: Non-negative integer amount expressed in base units.
        decimals: Unit exponent of the asset (18 for wei, 9 for lamports).

    Returns:
        The amount divided by ``10**decimals`` without exponent notation
        and without trailing zeros, e.g. ``format_units(15 * 10**17, 18)``
        is ``"1.5"``.

    Notes:
        - Integer arithmetic only, so no precision is lost for large values.
    """
    if value < 0:
        raise ValueError(f"Amount must be non-negative, got {value}")
    if decimals < 0:
        raise ValueError(f"Decimals must be non-negative, got {decimals}")
    if decimals == 0:
        return str(value)

    whole, fraction = divmod(value, 10**decimals)
    fraction_digits = str(fraction).rjust(decimals, "0").rstrip("0")
    if not fraction_digits:
        return str(whole)
    return f"{whole}.{fraction_digits}"


def parse_raw_amount(raw: Any) -> int:
    """Parse a provider-reported base-unit amount.

    Accepts ints, ``0x``-prefixed hex strings (JSON-RPC quantities) and
    decimal integer strings.

    Raises:
        ValueError: If the value is missing, negative or not an integer.
    """
    if isinstance(raw, bool):
        raise ValueError(f"Invalid amount {raw!r}")
    if isinstance(raw, int):
        amount = raw
    elif isinstance(raw, str):
        text = raw.strip()
        if text.lower().startswith("0x"):
            amount = int(text, 16) if len(text) > 2 else 0
        else:
            amount = int(text)
    else:
        raise ValueError(f"Invalid amount {raw!r}")
    if amount < 0:
        raise ValueError(f"Amount must be non-negative, got {amount}")
    return amount


def parse_decimals(raw: Any, default: int) -> int:
    """Parse a provider-reported decimal precision, falling back to ``default``."""
    if raw is None or raw == "":
        return default
    decimals = int(raw)
    if decimals < 0:
        raise ValueError(f"Decimals must be non-negative, got {decimals}")
    return decimals
