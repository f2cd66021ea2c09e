"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Prompt
  3xxx: Trade
  4xxx: Breeding
  9xxx: System / external collaborators
"""

from datetime import datetime
from typing import Any


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        details: Any = None,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.details = details
        super().__init__(message)


class ValidationError(AppError):
    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(9004, message, 400, details)


class RuleViolationError(AppError):
    """A market rule rejected the request. `reason` is the machine-readable cause."""

    reason: str = "RULE_VIOLATION"

    def __init__(self, code: int, message: str, http_status: int = 400) -> None:
        super().__init__(code, message, http_status, {"reason": self.reason})


# --- 1xxx: Auth ---

class MissingCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Unauthorized", 401)


class InvalidTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Invalid token", 401)


# --- 2xxx: Prompt ---

class PromptNotFoundError(AppError):
    def __init__(self, prompt_id: str) -> None:
        super().__init__(2001, f"Prompt not found: {prompt_id}", 404)


# --- 3xxx: Trade ---

class TradeAmountOutOfRangeError(AppError):
    def __init__(self, amount: int) -> None:
        super().__init__(3001, f"Trade amount {amount} must be in [1, 100]", 400)


class TradePriceTooLowError(AppError):
    def __init__(self, price: object) -> None:
        super().__init__(3002, f"Trade price {price} must be >= 0.01", 400)


# --- 4xxx: Breeding ---

class ParentsNotFoundError(AppError):
    def __init__(self) -> None:
        super().__init__(4001, "One or both parents not found", 404)


class DistinctParentsRequiredError(RuleViolationError):
    reason = "DISTINCT_PARENTS_REQUIRED"

    def __init__(self) -> None:
        super().__init__(4002, "Cannot breed with same parent")


class QualityTooLowError(RuleViolationError):
    reason = "QUALITY_TOO_LOW"

    def __init__(self, min_quality: int) -> None:
        super().__init__(4003, f"Parent quality must be >= {min_quality}")


class CooldownActiveError(RuleViolationError):
    reason = "COOLDOWN_ACTIVE"

    def __init__(self, cooldown_until: datetime) -> None:
        self.cooldown_until = cooldown_until
        super().__init__(
            4004,
            f"Breeding cooldown active until {cooldown_until.isoformat()}",
            429,
        )
        self.details = {"reason": self.reason, "until": cooldown_until.isoformat()}


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(9001, "Rate limit exceeded", 429, {"retry_after": retry_after})


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class TransactionExecutionError(AppError):
    """The chain executor failed; nothing was persisted for the request."""

    def __init__(self, detail: str) -> None:
        super().__init__(9003, f"Transaction failed: {detail}", 500)


class ExternalServiceError(AppError):
    def __init__(self, service: str) -> None:
        super().__init__(9005, f"{service} unavailable", 500)
