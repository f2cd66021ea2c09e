"""PromptApplicationService — listing, creation, detail, leaderboard and execution.

Creation asks the evaluator for a quality score and lists the prompt at
initial_price(score). Execution runs the prompt through the LLM and charges the fixed
execution fee: usage +1 and revenue +fee are applied in one atomic stats update.
"""

import logging
import uuid
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_audit.application.auditor import AuditLogger
from src.pm_clearing.domain.fee import split_fees
from src.pm_clearing.domain.pricing import initial_price, leaderboard_score, roi_percent
from src.pm_clearing.domain.repository import TradeRepositoryProtocol
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import AuditAction
from src.pm_common.errors import PromptNotFoundError
from src.pm_common.money import ZERO, round2
from src.pm_evaluator.domain.evaluator import PromptEvaluatorProtocol
from src.pm_prompt.application.schemas import (
    CreatePromptResponse,
    EarningsSplit,
    EvaluationResponse,
    ExecutePromptResponse,
    LeaderboardEntry,
    PromptDetailResponse,
    PromptResponse,
    RecentTradeItem,
)
from src.pm_prompt.domain.models import Prompt, PromptStatsDelta
from src.pm_prompt.domain.repository import PromptRepositoryProtocol

logger = logging.getLogger("pm.prompt")

LEADERBOARD_SIZE = 20
RECENT_TRADES = 10


class PromptApplicationService:
    def __init__(
        self,
        prompt_repo: PromptRepositoryProtocol,
        trade_repo: TradeRepositoryProtocol,
        evaluator: PromptEvaluatorProtocol,
        auditor: AuditLogger,
        execution_fee: Decimal = Decimal("0.01"),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._prompts = prompt_repo
        self._trades = trade_repo
        self._evaluator = evaluator
        self._auditor = auditor
        self._execution_fee = execution_fee
        self._clock = clock

    async def list_prompts(
        self,
        db: AsyncSession,
        category: str | None,
        skip: int,
        take: int,
    ) -> tuple[list[PromptResponse], int]:
        prompts = await self._prompts.list_prompts(db, category, skip, take)
        total = await self._prompts.count_prompts(db, category)
        return [PromptResponse.from_domain(p) for p in prompts], total

    async def create_prompt(
        self,
        db: AsyncSession,
        creator_id: str,
        title: str,
        description: str,
        category: str,
        origin: str | None = None,
    ) -> CreatePromptResponse:
        evaluation = await self._evaluator.evaluate(title, description)
        now = self._clock()
        prompt = Prompt(
            id=str(uuid.uuid4()),
            title=title,
            description=description,
            category=category,
            creator_id=creator_id,
            quality_score=evaluation.score,
            token_price=initial_price(evaluation.score),
            total_usage=0,
            total_revenue=ZERO,
            is_hybrid=False,
            parent_id1=None,
            parent_id2=None,
            contract_address=None,
            created_at=now,
            updated_at=now,
        )
        try:
            await self._prompts.create(db, prompt)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await self._auditor.record(
            AuditAction.PROMPT_CREATED, creator_id, prompt.id, origin,
            {"qualityScore": evaluation.score},
        )
        return CreatePromptResponse(
            prompt=PromptResponse.from_domain(prompt),
            evaluation=EvaluationResponse.from_domain(evaluation),
        )

    async def get_prompt(self, db: AsyncSession, prompt_id: str) -> PromptDetailResponse:
        prompt = await self._prompts.get_by_id(db, prompt_id)
        if prompt is None:
            raise PromptNotFoundError(prompt_id)
        trades = await self._trades.list_trades(db, prompt_id, None, 0, RECENT_TRADES)
        return PromptDetailResponse(
            **PromptResponse.from_domain(prompt).model_dump(),
            recent_trades=[RecentTradeItem.from_domain(t) for t in trades],
        )

    async def leaderboard(
        self, db: AsyncSession, size: int = LEADERBOARD_SIZE
    ) -> list[LeaderboardEntry]:
        """Top prompts by quality weighted with usage; ties keep the older prompt first."""
        prompts = await self._prompts.list_all(db)
        prompts.sort(key=lambda p: p.created_at)
        prompts.sort(key=lambda p: leaderboard_score(p.quality_score, p.total_usage), reverse=True)
        return [
            LeaderboardEntry(
                rank=rank,
                id=p.id,
                title=p.title,
                category=p.category,
                quality_score=p.quality_score,
                token_price=p.token_price,
                total_usage=p.total_usage,
                score=round2(leaderboard_score(p.quality_score, p.total_usage)),
                roi=roi_percent(p.token_price, p.quality_score),
            )
            for rank, p in enumerate(prompts[:size], start=1)
        ]

    async def execute_prompt(
        self,
        db: AsyncSession,
        user_id: str,
        prompt_id: str,
        user_input: str,
        origin: str | None = None,
    ) -> ExecutePromptResponse:
        prompt = await self._prompts.get_by_id(db, prompt_id)
        if prompt is None:
            raise PromptNotFoundError(prompt_id)

        output = await self._evaluator.run_prompt(prompt.description, user_input)

        try:
            updated = await self._prompts.apply_stats(
                db,
                prompt_id,
                PromptStatsDelta(usage_increment=1, revenue_increment=self._execution_fee),
            )
            if updated is None:
                raise PromptNotFoundError(prompt_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        earnings = split_fees(self._execution_fee)
        logger.info(
            "Prompt %s executed by %s, usage now %d", prompt_id, user_id, updated.total_usage
        )
        await self._auditor.record(
            AuditAction.PROMPT_EXECUTED, user_id, prompt_id, origin,
            {"fee": str(self._execution_fee)},
        )
        return ExecutePromptResponse(
            output=output,
            prompt_id=prompt_id,
            usage=updated.total_usage,
            fee=self._execution_fee,
            earnings=EarningsSplit(
                creator=earnings.creator,
                protocol=earnings.protocol,
                validator=earnings.validator,
            ),
        )
