"""Domain models for pm_prompt — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class Prompt:
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


@dataclass
class PromptStatsDelta:
    """Atomic mutation applied to a prompt by a trade or an execution.

    price_factor=None leaves token_price untouched.
    """

    usage_increment: int
    revenue_increment: Decimal
    price_factor: Decimal | None = None
