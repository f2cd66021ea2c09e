"""Service wiring.

Builds every repository, collaborator and application service once, choosing the
store implementations from settings (STORAGE_BACKEND, RATE_LIMIT_BACKEND,
CHAIN_EXECUTOR, ANTHROPIC_API_KEY). Routers reach them through the get_* FastAPI
dependencies below; tests swap implementations with app.dependency_overrides or
by calling reset_container().
"""

import logging
from dataclasses import dataclass
from functools import lru_cache

import anthropic

from config.settings import Settings, settings
from src.pm_audit.application.auditor import AuditLogger
from src.pm_audit.infrastructure.memory import InMemoryAuditRepository
from src.pm_audit.infrastructure.persistence import AuditRepository
from src.pm_chain.domain.executor import TransactionExecutorProtocol
from src.pm_chain.infrastructure.evm_executor import EvmTransactionExecutor
from src.pm_chain.infrastructure.simulated import SimulatedTransactionExecutor
from src.pm_clearing.application.service import SettlementService
from src.pm_clearing.domain.repository import (
    BreedingRepositoryProtocol,
    TradeRepositoryProtocol,
)
from src.pm_clearing.infrastructure.breeding_repository import BreedingRepository
from src.pm_clearing.infrastructure.memory import (
    InMemoryBreedingRepository,
    InMemoryTradeRepository,
)
from src.pm_clearing.infrastructure.trades_repository import TradeRepository
from src.pm_common.database import async_session_factory
from src.pm_common.redis_client import get_redis
from src.pm_evaluator.domain.evaluator import PromptEvaluatorProtocol
from src.pm_evaluator.infrastructure.claude_evaluator import ClaudeEvaluator, DefaultEvaluator
from src.pm_prompt.application.service import PromptApplicationService
from src.pm_prompt.domain.repository import PromptRepositoryProtocol
from src.pm_prompt.infrastructure.memory import InMemoryPromptRepository
from src.pm_prompt.infrastructure.persistence import PromptRepository
from src.pm_ratelimit.domain.repository import RateLimitStoreProtocol
from src.pm_ratelimit.domain.service import RateLimiter
from src.pm_ratelimit.infrastructure.memory_store import InMemoryRateLimitStore
from src.pm_ratelimit.infrastructure.persistence import PostgresRateLimitStore
from src.pm_ratelimit.infrastructure.redis_store import RedisRateLimitStore

logger = logging.getLogger("pm.container")


@dataclass
class Container:
    prompt_repo: PromptRepositoryProtocol
    trade_repo: TradeRepositoryProtocol
    breeding_repo: BreedingRepositoryProtocol
    rate_limiter: RateLimiter
    evaluator: PromptEvaluatorProtocol
    executor: TransactionExecutorProtocol
    auditor: AuditLogger
    prompt_service: PromptApplicationService
    settlement_service: SettlementService


def _build_rate_limit_store(cfg: Settings) -> RateLimitStoreProtocol:
    if cfg.RATE_LIMIT_BACKEND == "redis":
        return RedisRateLimitStore(get_redis)
    if cfg.RATE_LIMIT_BACKEND == "postgres":
        return PostgresRateLimitStore(async_session_factory)
    return InMemoryRateLimitStore()


def _build_evaluator(cfg: Settings) -> PromptEvaluatorProtocol:
    if not cfg.ANTHROPIC_API_KEY:
        logger.warning("ANTHROPIC_API_KEY not set, prompts get the default evaluation")
        return DefaultEvaluator()
    client = anthropic.AsyncAnthropic(
        api_key=cfg.ANTHROPIC_API_KEY, timeout=cfg.LLM_TIMEOUT_SECONDS
    )
    return ClaudeEvaluator(client, cfg.ANTHROPIC_MODEL)


def _build_executor(cfg: Settings) -> TransactionExecutorProtocol:
    if cfg.CHAIN_EXECUTOR == "evm":
        return EvmTransactionExecutor(
            rpc_url=cfg.CHAIN_RPC_URL,
            operator_private_key=cfg.CHAIN_OPERATOR_PRIVATE_KEY,
            marketplace_address=cfg.MARKETPLACE_CONTRACT_ADDRESS,
            breeding_address=cfg.BREEDING_CONTRACT_ADDRESS,
            timeout_seconds=cfg.CHAIN_TX_TIMEOUT_SECONDS,
        )
    return SimulatedTransactionExecutor()


def build_container(cfg: Settings) -> Container:
    prompt_repo: PromptRepositoryProtocol
    trade_repo: TradeRepositoryProtocol
    breeding_repo: BreedingRepositoryProtocol
    if cfg.STORAGE_BACKEND == "postgres":
        prompt_repo = PromptRepository()
        trade_repo = TradeRepository()
        breeding_repo = BreedingRepository()
        auditor = AuditLogger(AuditRepository())
    else:
        prompt_repo = InMemoryPromptRepository()
        trade_repo = InMemoryTradeRepository()
        breeding_repo = InMemoryBreedingRepository()
        auditor = AuditLogger(InMemoryAuditRepository())

    evaluator = _build_evaluator(cfg)
    executor = _build_executor(cfg)
    return Container(
        prompt_repo=prompt_repo,
        trade_repo=trade_repo,
        breeding_repo=breeding_repo,
        rate_limiter=RateLimiter(
            _build_rate_limit_store(cfg), window_seconds=cfg.RATE_LIMIT_WINDOW_SECONDS
        ),
        evaluator=evaluator,
        executor=executor,
        auditor=auditor,
        prompt_service=PromptApplicationService(
            prompt_repo, trade_repo, evaluator, auditor, execution_fee=cfg.EXECUTION_FEE
        ),
        settlement_service=SettlementService(
            prompt_repo, trade_repo, breeding_repo, evaluator, executor, auditor
        ),
    )


@lru_cache
def get_container() -> Container:
    return build_container(settings)


def reset_container() -> None:
    get_container.cache_clear()


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------


def get_rate_limiter() -> RateLimiter:
    return get_container().rate_limiter


def get_prompt_service() -> PromptApplicationService:
    return get_container().prompt_service


def get_settlement_service() -> SettlementService:
    return get_container().settlement_service
