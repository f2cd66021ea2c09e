"""Eligibility rules checked before any trade or breeding is settled.

Each check returns None when the request is eligible and raises the specific
AppError otherwise. Checks are pure: no I/O, the caller supplies `now`.
"""

from datetime import datetime, timedelta
from decimal import Decimal

from src.pm_clearing.domain.models import BreedingEvent
from src.pm_common.errors import (
    CooldownActiveError,
    DistinctParentsRequiredError,
    PromptNotFoundError,
    QualityTooLowError,
    TradeAmountOutOfRangeError,
    TradePriceTooLowError,
)
from src.pm_prompt.domain.models import Prompt

MIN_BREEDING_QUALITY = 60
BREEDING_COOLDOWN = timedelta(hours=24)
MIN_TRADE_AMOUNT = 1
MAX_TRADE_AMOUNT = 100
MIN_TRADE_PRICE = Decimal("0.01")


def check_distinct_parents(parent1_id: str, parent2_id: str) -> None:
    if parent1_id == parent2_id:
        raise DistinctParentsRequiredError()


def check_parent_quality(parent1: Prompt, parent2: Prompt) -> None:
    if (
        parent1.quality_score < MIN_BREEDING_QUALITY
        or parent2.quality_score < MIN_BREEDING_QUALITY
    ):
        raise QualityTooLowError(MIN_BREEDING_QUALITY)


def cooldown_until(last_breeding: BreedingEvent | None) -> datetime | None:
    if last_breeding is None:
        return None
    return last_breeding.created_at + BREEDING_COOLDOWN


def check_breeding_cooldown(last_breeding: BreedingEvent | None, now: datetime) -> None:
    """Cooldown is keyed on the breeder: at most one breeding per 24h window."""
    until = cooldown_until(last_breeding)
    if until is not None and now < until:
        raise CooldownActiveError(until)


def check_can_breed(
    parent1: Prompt,
    parent2: Prompt,
    last_breeding: BreedingEvent | None,
    now: datetime,
) -> None:
    check_distinct_parents(parent1.id, parent2.id)
    check_parent_quality(parent1, parent2)
    check_breeding_cooldown(last_breeding, now)


def check_can_trade(
    prompt: Prompt | None,
    prompt_id: str,
    amount: int,
    price: Decimal,
) -> Prompt:
    """Return the tradable prompt; amount/price bounds mirror the request schema."""
    if prompt is None:
        raise PromptNotFoundError(prompt_id)
    if not (MIN_TRADE_AMOUNT <= amount <= MAX_TRADE_AMOUNT):
        raise TradeAmountOutOfRangeError(amount)
    if price < MIN_TRADE_PRICE:
        raise TradePriceTooLowError(price)
    return prompt
