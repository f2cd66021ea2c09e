"""Pydantic schemas for the prompts API."""

from datetime import datetime
from decimal import Decimal

from pydantic import Field

from src.pm_clearing.domain.models import Trade
from src.pm_common.response import CamelModel
from src.pm_evaluator.domain.models import PromptEvaluation
from src.pm_prompt.domain.models import Prompt


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreatePromptRequest(CamelModel):
    title: str = Field(..., min_length=3, max_length=255)
    description: str = Field(..., min_length=10, max_length=5000)
    category: str = Field(..., min_length=2, max_length=100)


class ExecutePromptRequest(CamelModel):
    user_input: str = Field(..., min_length=1, max_length=5000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class PromptResponse(CamelModel):
    id: str
    title: str
    description: str
    category: str
    creator_id: str
    quality_score: int
    token_price: Decimal
    total_usage: int
    total_revenue: Decimal
    is_hybrid: bool
    parent_id1: str | None
    parent_id2: str | None
    contract_address: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, prompt: Prompt) -> "PromptResponse":
        return cls(
            id=prompt.id,
            title=prompt.title,
            description=prompt.description,
            category=prompt.category,
            creator_id=prompt.creator_id,
            quality_score=prompt.quality_score,
            token_price=prompt.token_price,
            total_usage=prompt.total_usage,
            total_revenue=prompt.total_revenue,
            is_hybrid=prompt.is_hybrid,
            parent_id1=prompt.parent_id1,
            parent_id2=prompt.parent_id2,
            contract_address=prompt.contract_address,
            created_at=prompt.created_at,
            updated_at=prompt.updated_at,
        )


class EvaluationResponse(CamelModel):
    score: int
    reason: str
    strengths: list[str]
    improvements: list[str]

    @classmethod
    def from_domain(cls, evaluation: PromptEvaluation) -> "EvaluationResponse":
        return cls(
            score=evaluation.score,
            reason=evaluation.reason,
            strengths=list(evaluation.strengths),
            improvements=list(evaluation.improvements),
        )


class CreatePromptResponse(CamelModel):
    prompt: PromptResponse
    evaluation: EvaluationResponse


class LeaderboardEntry(CamelModel):
    rank: int
    id: str
    title: str
    category: str
    quality_score: int
    token_price: Decimal
    total_usage: int
    score: Decimal
    roi: Decimal | None


class EarningsSplit(CamelModel):
    creator: Decimal
    protocol: Decimal
    validator: Decimal


class ExecutePromptResponse(CamelModel):
    output: str
    prompt_id: str
    usage: int
    fee: Decimal
    earnings: EarningsSplit


class RecentTradeItem(CamelModel):
    id: str
    trader_id: str
    action: str
    amount: int
    price: Decimal
    total: Decimal
    tx_hash: str
    created_at: datetime

    @classmethod
    def from_domain(cls, trade: Trade) -> "RecentTradeItem":
        return cls(
            id=trade.id,
            trader_id=trade.trader_id,
            action=trade.action.value,
            amount=trade.amount,
            price=trade.price,
            total=trade.total,
            tx_hash=trade.tx_hash,
            created_at=trade.created_at,
        )


class PromptDetailResponse(PromptResponse):
    recent_trades: list[RecentTradeItem]
