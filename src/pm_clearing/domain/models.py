"""Domain models for pm_clearing — settled trades and breeding events."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.pm_common.enums import SettlementStatus, TradeAction
from src.pm_evaluator.domain.models import PromptEvaluation
from src.pm_prompt.domain.models import Prompt


@dataclass
class Trade:
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
    status: SettlementStatus
    created_at: datetime


@dataclass
class BreedingEvent:
    """Two-phase record: created with child_prompt_id=None, then linked to the child.

    An event that stays unlinked is an incomplete breeding awaiting reconciliation;
    it is never refunded or retried automatically.
    """

    id: str
    parent1_id: str
    parent2_id: str
    breeder_id: str
    child_title: str
    child_description: str
    child_quality: int
    tx_hash: str
    status: SettlementStatus
    created_at: datetime
    child_prompt_id: str | None = None

    @property
    def is_linked(self) -> bool:
        return self.child_prompt_id is not None


@dataclass
class TradeOutcome:
    trade: Trade
    new_price: Decimal


@dataclass
class BreedingOutcome:
    event: BreedingEvent
    child: Prompt
    evaluation: PromptEvaluation
