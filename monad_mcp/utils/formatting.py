"""Unit formatting helpers for on-chain integer amounts."""

from typing import Union

GWEI_DECIMALS = 9
ETHER_DECIMALS = 18


def format_units(value: Union[int, str], decimals: int) -> str:
    """Render a fixed-point integer as a decimal string.

    Trailing fractional zeros are dropped and a whole number is rendered
    without a fractional part, so ``5 * 10**18`` with 18 decimals is ``"5"``.

    Args:
        value: Raw integer amount (hex strings are accepted)
        decimals: Number of fractional digits encoded in ``value``

    Returns:
        Human-readable amount
    """
    if isinstance(value, str):
        value = int(value, 0)
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")

    negative = value < 0
    digits = str(abs(value)).rjust(decimals + 1, "0")
    if decimals:
        whole, fraction = digits[:-decimals], digits[-decimals:].rstrip("0")
    else:
        whole, fraction = digits, ""

    text = f"{whole}.{fraction}" if fraction else whole
    return f"-{text}" if negative else text


def format_ether(value: Union[int, str]) -> str:
    """Format a wei amount in whole native units."""
    return format_units(value, ETHER_DECIMALS)


def format_gwei(value: Union[int, str]) -> str:
    """Format a wei amount in gwei."""
    return format_units(value, GWEI_DECIMALS)


def hex_to_int(value: Union[int, str, None], default: int = 0) -> int:
    """Convert a JSON-RPC quantity to an int."""
    if value is None:
        return default
    if isinstance(value, int):
        return value
    return int(value, 16)
