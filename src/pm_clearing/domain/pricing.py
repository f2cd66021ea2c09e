"""Token price formation.

  initial price  = quality / 10, rounded to cents     (score 70 -> 7.00)
  child price    = initial price of the child quality (parents 70 + 90 -> 80 -> 8.00)
  buy  pressure  = price x 1.01                        (10.00 -> 10.10)
  sell pressure  = price x 0.99                        (10.00 ->  9.90)

Prices never go below zero.
"""

from decimal import Decimal

from src.pm_common.enums import TradeAction
from src.pm_common.money import ZERO, round2

BUY_FACTOR = Decimal("1.01")
SELL_FACTOR = Decimal("0.99")

LEADERBOARD_USAGE_WEIGHT = 1000


def initial_price(quality_score: int) -> Decimal:
    return round2(Decimal(quality_score) / 10)


def child_quality(parent1_quality: int, parent2_quality: int) -> int:
    """Average of both parents, halves rounded up (75.5 -> 76)."""
    return (parent1_quality + parent2_quality + 1) // 2


def child_price(child_quality_score: int) -> Decimal:
    return initial_price(child_quality_score)


def price_factor(action: TradeAction) -> Decimal:
    return BUY_FACTOR if action == TradeAction.BUY else SELL_FACTOR


def scale_price(current_price: Decimal, factor: Decimal) -> Decimal:
    return max(ZERO, round2(current_price * factor))


def adjust_on_trade(current_price: Decimal, action: TradeAction) -> Decimal:
    return scale_price(current_price, price_factor(action))


def leaderboard_score(quality_score: int, total_usage: int) -> Decimal:
    """Quality weighted by adoption: every 1000 uses adds 100% to the score."""
    return Decimal(quality_score) * (1 + Decimal(total_usage) / LEADERBOARD_USAGE_WEIGHT)


def roi_percent(token_price: Decimal, quality_score: int) -> Decimal | None:
    """Price change since listing, in percent. None when the listing price was 0."""
    listing_price = Decimal(quality_score) / 10
    if listing_price == 0:
        return None
    return round(((token_price / listing_price) - 1) * 100, 1)
