"""Unit tests for the Claude evaluator (Anthropic client mocked)."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest

from src.pm_common.errors import ExternalServiceError
from src.pm_evaluator.infrastructure.claude_evaluator import (
    ClaudeEvaluator,
    DefaultEvaluator,
    parse_evaluation,
)


def _reply(text: str) -> SimpleNamespace:
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])


def _evaluator(create: AsyncMock) -> ClaudeEvaluator:
    client = MagicMock()
    client.messages.create = create
    return ClaudeEvaluator(client, "test-model")


def _api_error() -> anthropic.APIConnectionError:
    return anthropic.APIConnectionError(
        request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    )


class TestParseEvaluation:
    def test_valid_json(self) -> None:
        ev = parse_evaluation(
            '{"score": 82, "reason": "Clear", "strengths": ["a"], "improvements": ["b"]}'
        )
        assert ev.score == 82
        assert ev.reason == "Clear"
        assert ev.strengths == ["a"]
        assert ev.improvements == ["b"]

    def test_code_fence_stripped(self) -> None:
        ev = parse_evaluation('```json\n{"score": 64, "reason": "ok"}\n```')
        assert ev.score == 64

    def test_garbage_gives_default(self) -> None:
        ev = parse_evaluation("I think this prompt is great!")
        assert ev.score == 50
        assert ev.reason == "Default evaluation"
        assert ev.strengths == ["Readable"]
        assert ev.improvements == ["Could be more specific"]

    @pytest.mark.parametrize("score", [0, 101, "high", None, True])
    def test_invalid_score_replaced(self, score: object) -> None:
        ev = parse_evaluation(json.dumps({"score": score, "reason": "kept"}))
        assert ev.score == 50
        assert ev.reason == "kept"

    def test_non_object_json(self) -> None:
        assert parse_evaluation("[1, 2, 3]").score == 50


class TestClaudeEvaluator:
    async def test_evaluate_uses_model_reply(self) -> None:
        create = AsyncMock(return_value=_reply('{"score": 77, "reason": "Good"}'))
        ev = await _evaluator(create).evaluate("Title", "Description text")
        assert ev.score == 77
        assert create.call_args.kwargs["model"] == "test-model"

    async def test_evaluate_api_error_falls_back(self) -> None:
        create = AsyncMock(side_effect=_api_error())
        ev = await _evaluator(create).evaluate("Title", "Description text")
        assert ev.score == 50
        assert ev.reason == "Default evaluation"

    async def test_non_text_block_falls_back(self) -> None:
        create = AsyncMock(return_value=SimpleNamespace(content=[SimpleNamespace(type="tool_use")]))
        ev = await _evaluator(create).evaluate("Title", "Description text")
        assert ev.score == 50

    async def test_hybrid_description(self) -> None:
        create = AsyncMock(return_value=_reply("  A blend of both.  "))
        text = await _evaluator(create).generate_hybrid_description("A", "da", "B", "db")
        assert text == "A blend of both."

    async def test_hybrid_description_truncated(self) -> None:
        create = AsyncMock(return_value=_reply("x" * 800))
        text = await _evaluator(create).generate_hybrid_description("A", "da", "B", "db")
        assert len(text) == 500

    async def test_hybrid_description_fallback(self) -> None:
        create = AsyncMock(side_effect=_api_error())
        text = await _evaluator(create).generate_hybrid_description("A", "da", "B", "db")
        assert text == "Hybrid of A and B"

    async def test_run_prompt_sends_description_and_input(self) -> None:
        create = AsyncMock(return_value=_reply("result"))
        out = await _evaluator(create).run_prompt("Be concise.", "Summarize this")
        assert out == "result"
        content = create.call_args.kwargs["messages"][0]["content"]
        assert content == "Be concise.\n\nUser request: Summarize this"

    async def test_run_prompt_failure_raises(self) -> None:
        create = AsyncMock(side_effect=_api_error())
        with pytest.raises(ExternalServiceError):
            await _evaluator(create).run_prompt("Be concise.", "Summarize this")


class TestDefaultEvaluator:
    async def test_default_evaluation(self) -> None:
        ev = await DefaultEvaluator().evaluate("T", "D")
        assert ev.score == 50

    async def test_hybrid_fallback(self) -> None:
        assert await DefaultEvaluator().generate_hybrid_description(
            "A", "a", "B", "b"
        ) == "Hybrid of A and B"

    async def test_run_prompt_unavailable(self) -> None:
        with pytest.raises(ExternalServiceError):
            await DefaultEvaluator().run_prompt("d", "u")
