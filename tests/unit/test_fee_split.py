"""Unit tests for the 50/40/10 fee split."""

from decimal import Decimal

from src.pm_clearing.domain.fee import (
    CREATOR_SHARE,
    PROTOCOL_SHARE,
    VALIDATOR_SHARE,
    split_fees,
    trade_total,
)


class TestSplitFees:
    def test_shares_sum_to_one(self) -> None:
        assert CREATOR_SHARE + PROTOCOL_SHARE + VALIDATOR_SHARE == Decimal("1")

    def test_round_total(self) -> None:
        split = split_fees(Decimal("100.00"))
        assert split.creator == Decimal("50")
        assert split.protocol == Decimal("40")
        assert split.validator == Decimal("10")

    def test_execution_fee(self) -> None:
        split = split_fees(Decimal("0.01"))
        assert split.creator == Decimal("0.005")
        assert split.protocol == Decimal("0.004")
        assert split.validator == Decimal("0.001")

    def test_components_reconstruct_awkward_total(self) -> None:
        total = Decimal("33.33")
        assert split_fees(total).total == total

    def test_components_reconstruct_many_totals(self) -> None:
        for cents in (1, 7, 99, 101, 12345, 9999999):
            total = Decimal(cents) / 100
            assert split_fees(total).total == total

    def test_zero_total(self) -> None:
        split = split_fees(Decimal("0"))
        assert split.total == Decimal("0")


class TestTradeTotal:
    def test_amount_times_price(self) -> None:
        assert trade_total(3, Decimal("7.10")) == Decimal("21.30")
