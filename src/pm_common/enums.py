"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class TradeAction(str, Enum):
    BUY = "buy"
    SELL = "sell"


class SettlementStatus(str, Enum):
    """Shared by trades and breeding events."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class AuditAction(str, Enum):
    PROMPT_CREATED = "PROMPT_CREATED"
    PROMPT_EXECUTED = "PROMPT_EXECUTED"
    TRADE_BUY = "TRADE_BUY"
    TRADE_SELL = "TRADE_SELL"
    BREEDING_EXECUTED = "BREEDING_EXECUTED"
