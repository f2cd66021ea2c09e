"""Unit tests for trade and breeding eligibility rules."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from src.pm_clearing.domain.models import BreedingEvent
from src.pm_common.enums import SettlementStatus
from src.pm_common.errors import (
    CooldownActiveError,
    DistinctParentsRequiredError,
    PromptNotFoundError,
    QualityTooLowError,
    TradeAmountOutOfRangeError,
    TradePriceTooLowError,
)
from src.pm_prompt.domain.models import Prompt
from src.pm_risk.rules.quality_gate import (
    BREEDING_COOLDOWN,
    check_can_breed,
    check_can_trade,
    cooldown_until,
)

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def _prompt(prompt_id: str, quality: int) -> Prompt:
    return Prompt(
        id=prompt_id,
        title=f"Prompt {prompt_id}",
        description="A sufficiently long description",
        category="coding",
        creator_id="creator-1",
        quality_score=quality,
        token_price=Decimal(quality) / 10,
        total_usage=0,
        total_revenue=Decimal("0"),
        is_hybrid=False,
        parent_id1=None,
        parent_id2=None,
        contract_address=None,
        created_at=T0,
        updated_at=T0,
    )


def _breeding_at(created_at: datetime) -> BreedingEvent:
    return BreedingEvent(
        id="b-1",
        parent1_id="a",
        parent2_id="b",
        breeder_id="user-1",
        child_title="Child",
        child_description="Hybrid",
        child_quality=70,
        tx_hash="0xabc",
        status=SettlementStatus.CONFIRMED,
        created_at=created_at,
    )


class TestCanBreed:
    def test_eligible(self) -> None:
        check_can_breed(_prompt("a", 70), _prompt("b", 90), None, T0)

    def test_same_parent_rejected(self) -> None:
        parent = _prompt("a", 90)
        with pytest.raises(DistinctParentsRequiredError) as exc_info:
            check_can_breed(parent, parent, None, T0)
        assert exc_info.value.details == {"reason": "DISTINCT_PARENTS_REQUIRED"}
        assert exc_info.value.http_status == 400

    def test_quality_boundary_passes(self) -> None:
        check_can_breed(_prompt("a", 60), _prompt("b", 60), None, T0)

    def test_low_quality_parent_rejected(self) -> None:
        with pytest.raises(QualityTooLowError) as exc_info:
            check_can_breed(_prompt("a", 59), _prompt("b", 90), None, T0)
        assert exc_info.value.reason == "QUALITY_TOO_LOW"

    def test_cooldown_active_just_before_24h(self) -> None:
        last = _breeding_at(T0)
        now = T0 + BREEDING_COOLDOWN - timedelta(seconds=1)
        with pytest.raises(CooldownActiveError) as exc_info:
            check_can_breed(_prompt("a", 70), _prompt("b", 90), last, now)
        assert exc_info.value.cooldown_until == T0 + timedelta(hours=24)
        assert exc_info.value.http_status == 429

    def test_cooldown_over_at_exactly_24h(self) -> None:
        last = _breeding_at(T0)
        check_can_breed(_prompt("a", 70), _prompt("b", 90), last, T0 + timedelta(hours=24))

    def test_distinct_checked_before_quality(self) -> None:
        parent = _prompt("a", 10)
        with pytest.raises(DistinctParentsRequiredError):
            check_can_breed(parent, parent, None, T0)

    def test_cooldown_until_without_history(self) -> None:
        assert cooldown_until(None) is None


class TestCanTrade:
    def test_returns_prompt(self) -> None:
        prompt = _prompt("a", 70)
        assert check_can_trade(prompt, "a", 1, Decimal("0.01")) is prompt

    def test_missing_prompt(self) -> None:
        with pytest.raises(PromptNotFoundError):
            check_can_trade(None, "missing", 1, Decimal("1"))

    @pytest.mark.parametrize("amount", [0, 101, -3])
    def test_amount_out_of_range(self, amount: int) -> None:
        with pytest.raises(TradeAmountOutOfRangeError):
            check_can_trade(_prompt("a", 70), "a", amount, Decimal("1"))

    def test_amount_bounds_accepted(self) -> None:
        check_can_trade(_prompt("a", 70), "a", 100, Decimal("1"))

    def test_price_too_low(self) -> None:
        with pytest.raises(TradePriceTooLowError):
            check_can_trade(_prompt("a", 70), "a", 1, Decimal("0.009"))
