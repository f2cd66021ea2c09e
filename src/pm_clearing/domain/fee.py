"""Fee split — every trade total is divided 50/40/10 between creator, protocol and validator.

The same split applies to the fixed per-execution fee charged when a prompt is run.
Decimal multiplication by 0.5 / 0.4 / 0.1 is exact, so the three components always
add back up to the total without a rounding remainder.
"""

from dataclasses import dataclass
from decimal import Decimal

CREATOR_SHARE = Decimal("0.5")
PROTOCOL_SHARE = Decimal("0.4")
VALIDATOR_SHARE = Decimal("0.1")


@dataclass(frozen=True)
class FeeSplit:
    creator: Decimal
    protocol: Decimal
    validator: Decimal

    @property
    def total(self) -> Decimal:
        return self.creator + self.protocol + self.validator


def split_fees(total: Decimal) -> FeeSplit:
    return FeeSplit(
        creator=total * CREATOR_SHARE,
        protocol=total * PROTOCOL_SHARE,
        validator=total * VALIDATOR_SHARE,
    )


def trade_total(amount: int, unit_price: Decimal) -> Decimal:
    return amount * unit_price
