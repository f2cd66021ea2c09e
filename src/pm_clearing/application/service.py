"""SettlementService — turns an eligible trade or breeding request into committed records.

Trade:
    resolve prompt -> eligibility -> total / fees -> executor (once) ->
    [one transaction: insert trade + bump prompt price/usage/revenue] -> audit

Breeding (two phases):
    distinct parents -> [per-breeder lock] load both parents -> quality + cooldown gate ->
    child evaluation and hybrid description (concurrently, failures absorbed) ->
    executor (once) ->
    phase 1: [commit breeding event, child_prompt_id = NULL] ->
    phase 2: [one transaction: create child prompt + link event] -> audit

The executor always runs before anything is written, so a failed executor call
leaves no trade or breeding event behind. A phase-2 failure leaves a committed,
unlinked event; it is logged for manual reconciliation and is never retried.
"""

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_audit.application.auditor import AuditLogger
from src.pm_chain.domain.executor import TransactionExecutorProtocol
from src.pm_chain.domain.models import BreedingParams, BreedingReceipt, TradeParams
from src.pm_clearing.domain.fee import split_fees, trade_total
from src.pm_clearing.domain.models import (
    BreedingEvent,
    BreedingOutcome,
    Trade,
    TradeOutcome,
)
from src.pm_clearing.domain.pricing import child_price, child_quality, price_factor
from src.pm_clearing.domain.repository import (
    BreedingRepositoryProtocol,
    TradeRepositoryProtocol,
)
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import AuditAction, SettlementStatus, TradeAction
from src.pm_common.errors import (
    InternalError,
    ParentsNotFoundError,
    PromptNotFoundError,
    TransactionExecutionError,
)
from src.pm_common.money import ZERO
from src.pm_evaluator.domain.evaluator import PromptEvaluatorProtocol
from src.pm_prompt.domain.models import Prompt, PromptStatsDelta
from src.pm_prompt.domain.repository import PromptRepositoryProtocol
from src.pm_risk.rules.quality_gate import (
    check_can_breed,
    check_can_trade,
    check_distinct_parents,
)

logger = logging.getLogger("pm.settlement")

HYBRID_CATEGORY = "hybrid"


def _trade_audit_action(action: TradeAction) -> AuditAction:
    return AuditAction.TRADE_BUY if action == TradeAction.BUY else AuditAction.TRADE_SELL


class SettlementService:
    def __init__(
        self,
        prompt_repo: PromptRepositoryProtocol,
        trade_repo: TradeRepositoryProtocol,
        breeding_repo: BreedingRepositoryProtocol,
        evaluator: PromptEvaluatorProtocol,
        executor: TransactionExecutorProtocol,
        auditor: AuditLogger,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._prompts = prompt_repo
        self._trades = trade_repo
        self._breedings = breeding_repo
        self._evaluator = evaluator
        self._executor = executor
        self._auditor = auditor
        self._clock = clock
        self._breeder_locks: dict[str, asyncio.Lock] = {}
        self._breeder_holders: dict[str, int] = {}

    # ------------------------------------------------------------------
    # Trades
    # ------------------------------------------------------------------

    async def execute_trade(
        self,
        db: AsyncSession,
        trader_id: str,
        prompt_id: str,
        action: TradeAction,
        amount: int,
        price: Decimal,
        origin: str | None = None,
    ) -> TradeOutcome:
        prompt = check_can_trade(
            await self._prompts.get_by_id(db, prompt_id), prompt_id, amount, price
        )
        total = trade_total(amount, price)
        fees = split_fees(total)
        audit_action = _trade_audit_action(action)

        try:
            tx_hash = await self._executor.execute_trade(
                TradeParams(
                    prompt_id=prompt_id,
                    trader_id=trader_id,
                    action=action,
                    amount=amount,
                    price=price,
                    token_address=prompt.contract_address,
                )
            )
        except TransactionExecutionError as exc:
            await self._auditor.record_failure(
                audit_action, trader_id, prompt_id, origin, exc.message
            )
            raise

        trade = Trade(
            id=str(uuid.uuid4()),
            prompt_id=prompt_id,
            trader_id=trader_id,
            action=action,
            amount=amount,
            price=price,
            total=total,
            creator_fee=fees.creator,
            protocol_fee=fees.protocol,
            validator_fee=fees.validator,
            tx_hash=tx_hash,
            status=SettlementStatus.CONFIRMED,
            created_at=self._clock(),
        )
        try:
            await self._trades.create(db, trade)
            updated = await self._prompts.apply_stats(
                db,
                prompt_id,
                PromptStatsDelta(
                    usage_increment=1,
                    revenue_increment=total,
                    price_factor=price_factor(action),
                ),
            )
            if updated is None:
                raise PromptNotFoundError(prompt_id)
            await db.commit()
        except Exception:
            await db.rollback()
            logger.error(
                "Trade %s on prompt %s executed on chain (tx %s) but was not recorded",
                trade.id, prompt_id, tx_hash,
            )
            raise

        await self._auditor.record(
            audit_action,
            trader_id,
            trade.id,
            origin,
            {"promptId": prompt_id, "amount": amount, "price": str(price), "total": str(total)},
        )
        return TradeOutcome(trade=trade, new_price=updated.token_price)

    async def list_trades(
        self,
        db: AsyncSession,
        prompt_id: str | None,
        trader_id: str | None,
        skip: int,
        take: int,
    ) -> tuple[list[Trade], int]:
        items = await self._trades.list_trades(db, prompt_id, trader_id, skip, take)
        total = await self._trades.count_trades(db, prompt_id, trader_id)
        return items, total

    # ------------------------------------------------------------------
    # Breeding
    # ------------------------------------------------------------------

    async def _load_parents(
        self, db: AsyncSession, parent1_id: str, parent2_id: str
    ) -> tuple[Prompt, Prompt]:
        found = await self._prompts.get_many(db, [parent1_id, parent2_id])
        if parent1_id not in found or parent2_id not in found:
            raise ParentsNotFoundError()
        return found[parent1_id], found[parent2_id]

    @asynccontextmanager
    async def _breeder_guard(self, breeder_id: str) -> AsyncIterator[None]:
        """Serialise breeding for one breeder within this process.

        Entries are dropped once no request holds or awaits the breeder's lock.
        """
        lock = self._breeder_locks.setdefault(breeder_id, asyncio.Lock())
        self._breeder_holders[breeder_id] = self._breeder_holders.get(breeder_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._breeder_holders[breeder_id] -= 1
            if not self._breeder_holders[breeder_id]:
                del self._breeder_holders[breeder_id]
                del self._breeder_locks[breeder_id]

    async def _execute_breeding(
        self,
        breeder_id: str,
        parent1: Prompt,
        parent2: Prompt,
        child_name: str,
        child_symbol: str,
        origin: str | None,
    ) -> BreedingReceipt:
        try:
            return await self._executor.execute_breeding(
                BreedingParams(
                    parent1_address=parent1.contract_address or "",
                    parent2_address=parent2.contract_address or "",
                    child_name=child_name,
                    child_symbol=child_symbol,
                )
            )
        except TransactionExecutionError as exc:
            await self._auditor.record_failure(
                AuditAction.BREEDING_EXECUTED, breeder_id, None, origin, exc.message
            )
            raise

    async def breed(
        self,
        db: AsyncSession,
        breeder_id: str,
        parent1_id: str,
        parent2_id: str,
        child_name: str,
        child_symbol: str,
        origin: str | None = None,
    ) -> BreedingOutcome:
        check_distinct_parents(parent1_id, parent2_id)

        # One request per breeder from the cooldown read through the phase-1 commit.
        async with self._breeder_guard(breeder_id):
            try:
                await self._breedings.lock_breeder(db, breeder_id)
                parent1, parent2 = await self._load_parents(db, parent1_id, parent2_id)
                last_breeding = await self._breedings.get_last_by_breeder(db, breeder_id)
                check_can_breed(parent1, parent2, last_breeding, self._clock())

                evaluation, hybrid_description = await asyncio.gather(
                    self._evaluator.evaluate(
                        child_name,
                        f"Hybrid of: {parent1.title} ({parent1.quality_score}/100) and "
                        f"{parent2.title} ({parent2.quality_score}/100)",
                    ),
                    self._evaluator.generate_hybrid_description(
                        parent1.title, parent1.description, parent2.title, parent2.description
                    ),
                )
                quality = child_quality(parent1.quality_score, parent2.quality_score)
                receipt = await self._execute_breeding(
                    breeder_id, parent1, parent2, child_name, child_symbol, origin
                )
            except Exception:
                await db.rollback()
                raise

            # Phase 1: the event is durable before the child exists.
            now = self._clock()
            event = BreedingEvent(
                id=str(uuid.uuid4()),
                parent1_id=parent1_id,
                parent2_id=parent2_id,
                breeder_id=breeder_id,
                child_title=child_name,
                child_description=hybrid_description,
                child_quality=quality,
                tx_hash=receipt.tx_hash,
                status=SettlementStatus.CONFIRMED,
                created_at=now,
            )
            try:
                await self._breedings.create(db, event)
                await db.commit()
            except Exception:
                await db.rollback()
                logger.error(
                    "Breeding tx %s executed on chain but the event was not recorded",
                    receipt.tx_hash,
                )
                raise

        # Phase 2: child prompt + link, atomically.
        child = Prompt(
            id=str(uuid.uuid4()),
            title=child_name,
            description=(
                f"{hybrid_description.rstrip('.')}. "
                f"Parent 1 quality: {parent1.quality_score}, "
                f"Parent 2 quality: {parent2.quality_score}"
            ),
            category=HYBRID_CATEGORY,
            creator_id=breeder_id,
            quality_score=quality,
            token_price=child_price(quality),
            total_usage=0,
            total_revenue=ZERO,
            is_hybrid=True,
            parent_id1=parent1_id,
            parent_id2=parent2_id,
            contract_address=receipt.child_token_address,
            created_at=now,
            updated_at=now,
        )
        try:
            await self._prompts.create(db, child)
            if not await self._breedings.link_child(db, event.id, child.id):
                raise InternalError(f"Breeding event {event.id} is already linked")
            await db.commit()
        except Exception as exc:
            await db.rollback()
            logger.exception(
                "Breeding event %s (tx %s) has no child prompt; needs reconciliation",
                event.id, receipt.tx_hash,
            )
            raise InternalError("Breeding recorded but child creation failed") from exc
        event.child_prompt_id = child.id

        await self._auditor.record(
            AuditAction.BREEDING_EXECUTED,
            breeder_id,
            event.id,
            origin,
            {"parent1Id": parent1_id, "parent2Id": parent2_id, "childQuality": quality},
        )
        return BreedingOutcome(event=event, child=child, evaluation=evaluation)

    async def list_breedings(
        self,
        db: AsyncSession,
        breeder_id: str | None,
        skip: int,
        take: int,
    ) -> tuple[list[BreedingEvent], int]:
        items = await self._breedings.list_breedings(db, breeder_id, skip, take)
        total = await self._breedings.count_breedings(db, breeder_id)
        return items, total

    async def list_unlinked_breedings(self, db: AsyncSession) -> list[BreedingEvent]:
        """Events whose child was never created: the reconciliation worklist."""
        return await self._breedings.list_unlinked(db)
