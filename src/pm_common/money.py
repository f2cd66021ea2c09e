"""Decimal arithmetic utilities for token prices, totals and fees.

All prices, totals and fees use Decimal. No float.
Token prices are stored with 2 decimal places; totals and fees keep full precision
so that fee components always reconstruct the total exactly.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0")


def round2(value: Decimal) -> Decimal:
    """Round half-up to cents: 7.005 -> 7.01."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
