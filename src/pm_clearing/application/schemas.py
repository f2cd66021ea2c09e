"""Pydantic schemas for the trades and breeding APIs."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import Field

from src.pm_clearing.domain.models import BreedingEvent, Trade
from src.pm_common.enums import TradeAction
from src.pm_common.response import CamelModel
from src.pm_prompt.application.schemas import EvaluationResponse, PromptResponse

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ExecuteTradeRequest(CamelModel):
    prompt_id: UUID
    action: TradeAction
    amount: int = Field(..., ge=1, le=100)
    price: Decimal = Field(..., ge=Decimal("0.01"))


class BreedRequest(CamelModel):
    parent1_id: UUID
    parent2_id: UUID
    child_name: str = Field(..., min_length=3, max_length=255)
    child_symbol: str = Field(..., min_length=1, max_length=20)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TradeResponse(CamelModel):
    id: str
    prompt_id: str
    trader_id: str
    action: TradeAction
    amount: int
    price: Decimal
    total: Decimal
    creator_fee: Decimal
    protocol_fee: Decimal
    validator_fee: Decimal
    tx_hash: str
    status: str
    created_at: datetime

    @classmethod
    def from_domain(cls, trade: Trade) -> "TradeResponse":
        return cls(
            id=trade.id,
            prompt_id=trade.prompt_id,
            trader_id=trade.trader_id,
            action=trade.action,
            amount=trade.amount,
            price=trade.price,
            total=trade.total,
            creator_fee=trade.creator_fee,
            protocol_fee=trade.protocol_fee,
            validator_fee=trade.validator_fee,
            tx_hash=trade.tx_hash,
            status=trade.status.value,
            created_at=trade.created_at,
        )


class TradeResultResponse(CamelModel):
    trade: TradeResponse
    new_price: Decimal


class BreedingResponse(CamelModel):
    id: str
    parent1_id: str
    parent2_id: str
    breeder_id: str
    child_title: str
    child_description: str
    child_quality: int
    child_prompt_id: str | None
    tx_hash: str
    status: str
    created_at: datetime

    @classmethod
    def from_domain(cls, event: BreedingEvent) -> "BreedingResponse":
        return cls(
            id=event.id,
            parent1_id=event.parent1_id,
            parent2_id=event.parent2_id,
            breeder_id=event.breeder_id,
            child_title=event.child_title,
            child_description=event.child_description,
            child_quality=event.child_quality,
            child_prompt_id=event.child_prompt_id,
            tx_hash=event.tx_hash,
            status=event.status.value,
            created_at=event.created_at,
        )


class BreedingResultResponse(CamelModel):
    breeding: BreedingResponse
    child_prompt: PromptResponse
    evaluation: EvaluationResponse
