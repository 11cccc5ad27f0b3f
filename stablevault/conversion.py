"""Integer conversion between asset units and the accounting unit.

All helpers floor their result, so converting out and back never creates
value. Prices follow the Pyth convention: ``price * 10**expo``.
"""
from __future__ import annotations

from .models import PriceQuote

BPS_DENOMINATOR = 10_000


def _scale(expo: int) -> tuple[int, int]:
    """Split ``10**expo`` into an integer (numerator, denominator) pair."""
    if expo >= 0:
        return 10**expo, 1
    return 1, 10**-expo


def to_accounting_units(
    amount: int, asset_decimals: int, quote: PriceQuote, unit_decimals: int
) -> int:
    """Value of ``amount`` (smallest asset units) in smallest accounting units."""
    num, den = _scale(quote.expo)
    return (amount * quote.price * num * 10**unit_decimals) // (
        den * 10**asset_decimals
    )


def from_accounting_units(
    value: int, asset_decimals: int, quote: PriceQuote, unit_decimals: int
) -> int:
    """Amount of the asset (smallest units) worth ``value`` accounting units."""
    num, den = _scale(quote.expo)
    return (value * den * 10**asset_decimals) // (
        quote.price * num * 10**unit_decimals
    )


def apply_slippage(expected: int, slippage_bps: int) -> int:
    """Minimum accepted output for ``expected`` under the given tolerance."""
    return expected * (BPS_DENOMINATOR - slippage_bps) // BPS_DENOMINATOR
