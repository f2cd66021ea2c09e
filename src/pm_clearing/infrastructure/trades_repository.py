# src/pm_clearing/infrastructure/trades_repository.py
"""TradeRepository — trades table, raw text() SQL.

Transaction ownership: the CALLER commits; the trade insert and the prompt stats update
must share one transaction.
"""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_clearing.domain.models import Trade
from src.pm_common.datetime_utils import ensure_utc
from src.pm_common.enums import SettlementStatus, TradeAction

_INSERT_SQL = text("""
    INSERT INTO trades
        (id, prompt_id, trader_id, action, amount, price, total,
         creator_fee, protocol_fee, validator_fee, tx_hash, status, created_at)
    VALUES
        (:id, :prompt_id, :trader_id, :action, :amount, :price, :total,
         :creator_fee, :protocol_fee, :validator_fee, :tx_hash, :status, :created_at)
""")

_LIST_SQL = text("""
    SELECT id, prompt_id, trader_id, action, amount, price, total,
           creator_fee, protocol_fee, validator_fee, tx_hash, status, created_at
    FROM trades
    WHERE (CAST(:prompt_id AS TEXT) IS NULL OR prompt_id = CAST(:prompt_id AS TEXT))
      AND (CAST(:trader_id AS TEXT) IS NULL OR trader_id = CAST(:trader_id AS TEXT))
    ORDER BY created_at DESC, id DESC
    OFFSET :skip
    LIMIT :take
""")

_COUNT_SQL = text("""
    SELECT COUNT(*)
    FROM trades
    WHERE (CAST(:prompt_id AS TEXT) IS NULL OR prompt_id = CAST(:prompt_id AS TEXT))
      AND (CAST(:trader_id AS TEXT) IS NULL OR trader_id = CAST(:trader_id AS TEXT))
""")


def _row_to_trade(row: Any) -> Trade:
    return Trade(
        id=row.id,
        prompt_id=row.prompt_id,
        trader_id=row.trader_id,
        action=TradeAction(row.action),
        amount=row.amount,
        price=row.price,
        total=row.total,
        creator_fee=row.creator_fee,
        protocol_fee=row.protocol_fee,
        validator_fee=row.validator_fee,
        tx_hash=row.tx_hash,
        status=SettlementStatus(row.status),
        created_at=ensure_utc(row.created_at),
    )


class TradeRepository:
    async def create(self, db: AsyncSession, trade: Trade) -> Trade:
        await db.execute(
            _INSERT_SQL,
            {
                "id": trade.id,
                "prompt_id": trade.prompt_id,
                "trader_id": trade.trader_id,
                "action": trade.action.value,
                "amount": trade.amount,
                "price": trade.price,
                "total": trade.total,
                "creator_fee": trade.creator_fee,
                "protocol_fee": trade.protocol_fee,
                "validator_fee": trade.validator_fee,
                "tx_hash": trade.tx_hash,
                "status": trade.status.value,
                "created_at": trade.created_at,
            },
        )
        return trade

    async def list_trades(
        self,
        db: AsyncSession,
        prompt_id: str | None,
        trader_id: str | None,
        skip: int,
        take: int,
    ) -> list[Trade]:
        rows = (
            await db.execute(
                _LIST_SQL,
                {"prompt_id": prompt_id, "trader_id": trader_id, "skip": skip, "take": take},
            )
        ).fetchall()
        return [_row_to_trade(r) for r in rows]

    async def count_trades(
        self,
        db: AsyncSession,
        prompt_id: str | None,
        trader_id: str | None,
    ) -> int:
        result = await db.execute(_COUNT_SQL, {"prompt_id": prompt_id, "trader_id": trader_id})
        return int(result.scalar_one())
