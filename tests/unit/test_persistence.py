# tests/unit/test_persistence.py
"""Unit tests for the PostgreSQL repositories using MagicMock AsyncSession."""
from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from src.pm_clearing.infrastructure.breeding_repository import BreedingRepository
from src.pm_clearing.infrastructure.trades_repository import TradeRepository
from src.pm_common.enums import SettlementStatus, TradeAction
from src.pm_prompt.domain.models import PromptStatsDelta
from src.pm_prompt.infrastructure.persistence import PromptRepository
from src.pm_ratelimit.domain.models import RateLimitStoreUnavailable
from src.pm_ratelimit.infrastructure.persistence import PostgresRateLimitStore

NAIVE_T0 = datetime(2026, 1, 1, 12, 0)


def _result(fetchone=None, fetchall=None, scalar=None):
    result = MagicMock()
    result.fetchone.return_value = fetchone
    result.fetchall.return_value = fetchall or []
    result.scalar_one.return_value = scalar
    return result


def _trade_row():
    row = MagicMock()
    row.id = "t-1"
    row.prompt_id = "p-1"
    row.trader_id = "user-1"
    row.action = "buy"
    row.amount = 2
    row.price = Decimal("7.00")
    row.total = Decimal("14.00")
    row.creator_fee = Decimal("7.000")
    row.protocol_fee = Decimal("5.600")
    row.validator_fee = Decimal("1.400")
    row.tx_hash = "0xabc"
    row.status = "confirmed"
    row.created_at = NAIVE_T0
    return row


def _breeding_row(child_prompt_id=None):
    row = MagicMock()
    row.id = "b-1"
    row.parent1_id = "p-1"
    row.parent2_id = "p-2"
    row.breeder_id = "user-1"
    row.child_title = "Child"
    row.child_description = "Hybrid of A and B"
    row.child_quality = 80
    row.child_prompt_id = child_prompt_id
    row.tx_hash = "0xdef"
    row.status = "confirmed"
    row.created_at = NAIVE_T0
    return row


@pytest.fixture
def db() -> MagicMock:
    return MagicMock()


class TestTradeRepository:
    async def test_list_maps_rows(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchall=[_trade_row()]))
        trades = await TradeRepository().list_trades(db, "p-1", None, 0, 20)

        assert len(trades) == 1
        assert trades[0].action == TradeAction.BUY
        assert trades[0].status == SettlementStatus.CONFIRMED
        assert trades[0].created_at.tzinfo is UTC
        params = db.execute.call_args.args[1]
        assert params == {"prompt_id": "p-1", "trader_id": None, "skip": 0, "take": 20}

    async def test_count(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(scalar=4))
        assert await TradeRepository().count_trades(db, None, "user-1") == 4


class TestBreedingRepository:
    async def test_lock_breeder_takes_advisory_lock(self, db) -> None:
        db.execute = AsyncMock(return_value=_result())
        await BreedingRepository().lock_breeder(db, "user-1")

        sql, params = db.execute.call_args.args
        assert "pg_advisory_xact_lock" in str(sql)
        assert params == {"breeder_id": "user-1"}

    async def test_link_child_success(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchone=("b-1",)))
        assert await BreedingRepository().link_child(db, "b-1", "child-1") is True

    async def test_link_child_already_linked(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchone=None))
        assert await BreedingRepository().link_child(db, "b-1", "child-1") is False

    async def test_last_by_breeder_none(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchone=None))
        assert await BreedingRepository().get_last_by_breeder(db, "user-1") is None

    async def test_unlinked_rows(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchall=[_breeding_row()]))
        [event] = await BreedingRepository().list_unlinked(db)
        assert event.is_linked is False
        assert event.created_at == NAIVE_T0.replace(tzinfo=UTC)


class TestPromptRepository:
    async def test_apply_stats_missing_prompt(self, db) -> None:
        db.execute = AsyncMock(return_value=_result(fetchone=None))
        delta = PromptStatsDelta(usage_increment=1, revenue_increment=Decimal("0.01"))
        assert await PromptRepository().apply_stats(db, "missing", delta) is None
        params = db.execute.call_args.args[1]
        assert params["price_factor"] is None
        assert params["revenue_increment"] == Decimal("0.01")


class TestPostgresRateLimitStore:
    def _factory(self, session):
        session.__aenter__ = AsyncMock(return_value=session)
        session.__aexit__ = AsyncMock(return_value=False)
        begin = MagicMock()
        begin.__aenter__ = AsyncMock(return_value=None)
        begin.__aexit__ = AsyncMock(return_value=False)
        session.begin = MagicMock(return_value=begin)
        return MagicMock(return_value=session)

    async def test_allowed_when_row_returned(self) -> None:
        session = MagicMock()
        session.execute = AsyncMock(return_value=_result(fetchone=(3,)))
        store = PostgresRateLimitStore(self._factory(session))
        now = datetime(2026, 1, 1, tzinfo=UTC)
        assert await store.try_acquire("a", "trades", 20, 60, now) is True

    async def test_denied_when_no_row(self) -> None:
        session = MagicMock()
        session.execute = AsyncMock(return_value=_result(fetchone=None))
        store = PostgresRateLimitStore(self._factory(session))
        now = datetime(2026, 1, 1, tzinfo=UTC)
        assert await store.try_acquire("a", "trades", 20, 60, now) is False

    async def test_db_error_becomes_unavailable(self) -> None:
        session = MagicMock()
        session.execute = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("down")))
        store = PostgresRateLimitStore(self._factory(session))
        with pytest.raises(RateLimitStoreUnavailable):
            await store.try_acquire("a", "trades", 20, 60, datetime(2026, 1, 1, tzinfo=UTC))
