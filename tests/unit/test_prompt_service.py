"""Unit tests for PromptApplicationService with in-process stores."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from src.pm_audit.application.auditor import AuditLogger
from src.pm_audit.infrastructure.memory import InMemoryAuditRepository
from src.pm_clearing.infrastructure.memory import InMemoryTradeRepository
from src.pm_common.enums import AuditAction
from src.pm_common.errors import ExternalServiceError, PromptNotFoundError
from src.pm_evaluator.domain.models import PromptEvaluation
from src.pm_prompt.application.service import PromptApplicationService
from src.pm_prompt.infrastructure.memory import InMemoryPromptRepository

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


class _Clock:
    def __init__(self) -> None:
        self.now = T0

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


def _evaluator(score: int = 72) -> AsyncMock:
    evaluator = AsyncMock()
    evaluator.evaluate.return_value = PromptEvaluation(
        score=score, reason="Clear goal", strengths=["Specific"], improvements=["Examples"]
    )
    evaluator.run_prompt.return_value = "def add(a, b):\n    return a + b"
    return evaluator


@pytest.fixture
def db() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def audit_repo() -> InMemoryAuditRepository:
    return InMemoryAuditRepository()


@pytest.fixture
def prompts() -> InMemoryPromptRepository:
    return InMemoryPromptRepository()


def _service(
    prompts: InMemoryPromptRepository,
    audit_repo: InMemoryAuditRepository,
    evaluator: AsyncMock | None = None,
) -> PromptApplicationService:
    return PromptApplicationService(
        prompts,
        InMemoryTradeRepository(),
        evaluator or _evaluator(),
        AuditLogger(audit_repo),
        execution_fee=Decimal("0.01"),
        clock=_Clock(),
    )


class TestCreatePrompt:
    async def test_lists_at_initial_price(self, db, prompts, audit_repo) -> None:
        svc = _service(prompts, audit_repo)
        result = await svc.create_prompt(
            db, "creator-1", "Python helper", "Write idiomatic Python code", "coding"
        )

        assert result.prompt.quality_score == 72
        assert result.prompt.token_price == Decimal("7.20")
        assert result.prompt.total_usage == 0
        assert result.prompt.is_hybrid is False
        assert result.evaluation.reason == "Clear goal"
        assert await prompts.get_by_id(db, result.prompt.id) is not None
        db.commit.assert_awaited_once()

        records = await audit_repo.list_records()
        assert records[0].action == AuditAction.PROMPT_CREATED
        assert records[0].resource_id == result.prompt.id

    async def test_wire_format_is_camel_case(self, db, prompts, audit_repo) -> None:
        svc = _service(prompts, audit_repo)
        result = await svc.create_prompt(
            db, "creator-1", "Python helper", "Write idiomatic Python code", "coding"
        )
        wire = result.to_wire()
        assert wire["prompt"]["tokenPrice"] == "7.20"
        assert wire["prompt"]["qualityScore"] == 72
        assert wire["prompt"]["parentId1"] is None


class TestListAndDetail:
    async def test_list_ordered_by_quality(self, db, prompts, audit_repo) -> None:
        evaluator = _evaluator()
        svc = _service(prompts, audit_repo, evaluator)
        for score in (60, 90, 75):
            evaluator.evaluate.return_value = PromptEvaluation(score=score, reason="r")
            await svc.create_prompt(db, "c", f"Prompt {score}", "A long description", "coding")

        items, total = await svc.list_prompts(db, None, 0, 2)
        assert total == 3
        assert [p.quality_score for p in items] == [90, 75]

    async def test_list_filters_category(self, db, prompts, audit_repo) -> None:
        svc = _service(prompts, audit_repo)
        await svc.create_prompt(db, "c", "Coder", "A long description", "coding")
        await svc.create_prompt(db, "c", "Writer", "A long description", "writing")
        items, total = await svc.list_prompts(db, "writing", 0, 20)
        assert total == 1
        assert items[0].title == "Writer"

    async def test_detail_missing(self, db, prompts, audit_repo) -> None:
        with pytest.raises(PromptNotFoundError):
            await _service(prompts, audit_repo).get_prompt(db, "missing")

    async def test_detail_without_trades(self, db, prompts, audit_repo) -> None:
        svc = _service(prompts, audit_repo)
        created = await svc.create_prompt(db, "c", "Coder", "A long description", "coding")
        detail = await svc.get_prompt(db, created.prompt.id)
        assert detail.id == created.prompt.id
        assert detail.recent_trades == []


class TestLeaderboard:
    async def test_usage_weighted_ranking(self, db, prompts, audit_repo) -> None:
        evaluator = _evaluator()
        svc = _service(prompts, audit_repo, evaluator)
        evaluator.evaluate.return_value = PromptEvaluation(score=90, reason="r")
        top_quality = await svc.create_prompt(db, "c", "Top quality", "A long description", "x")
        evaluator.evaluate.return_value = PromptEvaluation(score=60, reason="r")
        popular = await svc.create_prompt(db, "c", "Popular", "A long description", "x")

        for _ in range(600):
            await svc.execute_prompt(db, "u", popular.prompt.id, "hi")

        board = await svc.leaderboard(db)
        assert [e.id for e in board] == [popular.prompt.id, top_quality.prompt.id]
        assert board[0].rank == 1
        assert board[0].score == Decimal("96.00")
        assert board[1].roi == Decimal("0.0")

    async def test_capped_at_twenty(self, db, prompts, audit_repo) -> None:
        svc = _service(prompts, audit_repo)
        for i in range(25):
            await svc.create_prompt(db, "c", f"Prompt {i}", "A long description", "x")
        board = await svc.leaderboard(db)
        assert len(board) == 20
        assert board[-1].rank == 20


class TestExecutePrompt:
    async def test_charges_execution_fee(self, db, prompts, audit_repo) -> None:
        evaluator = _evaluator()
        svc = _service(prompts, audit_repo, evaluator)
        created = await svc.create_prompt(db, "c", "Coder", "Be concise.", "coding")

        result = await svc.execute_prompt(db, "user-9", created.prompt.id, "add two numbers")

        assert result.output.startswith("def add")
        assert result.usage == 1
        assert result.fee == Decimal("0.01")
        assert result.earnings.creator == Decimal("0.005")
        assert result.earnings.protocol == Decimal("0.004")
        assert result.earnings.validator == Decimal("0.001")
        evaluator.run_prompt.assert_awaited_once_with("Be concise.", "add two numbers")

        stored = await prompts.get_by_id(db, created.prompt.id)
        assert stored.total_revenue == Decimal("0.01")
        assert stored.token_price == Decimal("7.20")

    async def test_missing_prompt(self, db, prompts, audit_repo) -> None:
        with pytest.raises(PromptNotFoundError):
            await _service(prompts, audit_repo).execute_prompt(db, "u", "missing", "hi")

    async def test_llm_failure_charges_nothing(self, db, prompts, audit_repo) -> None:
        evaluator = _evaluator()
        svc = _service(prompts, audit_repo, evaluator)
        created = await svc.create_prompt(db, "c", "Coder", "Be concise.", "coding")
        evaluator.run_prompt.side_effect = ExternalServiceError("LLM")

        with pytest.raises(ExternalServiceError):
            await svc.execute_prompt(db, "u", created.prompt.id, "hi")

        stored = await prompts.get_by_id(db, created.prompt.id)
        assert stored.total_usage == 0
        assert stored.total_revenue == Decimal("0")
