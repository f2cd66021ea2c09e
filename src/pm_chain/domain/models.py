"""Parameters and receipts exchanged with the transaction executor."""

from dataclasses import dataclass
from decimal import Decimal

from src.pm_common.enums import TradeAction


@dataclass(frozen=True)
class TradeParams:
    prompt_id: str
    trader_id: str
    action: TradeAction
    amount: int
    price: Decimal
    token_address: str | None = None


@dataclass(frozen=True)
class BreedingParams:
    parent1_address: str
    parent2_address: str
    child_name: str
    child_symbol: str


@dataclass(frozen=True)
class BreedingReceipt:
    tx_hash: str
    child_token_address: str
