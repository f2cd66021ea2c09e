"""Claude-backed prompt evaluator.

The model is asked for bare JSON:
    {"score": 1-100, "reason": "...", "strengths": [...], "improvements": [...]}

Fallback policy:
  - API error / non-text reply / unparsable JSON -> default_evaluation() (score 50)
  - parsable JSON with a missing or out-of-range score -> score replaced by 50,
    the rest of the evaluation is kept
"""

import json
import logging
import re
from typing import Any

import anthropic

from src.pm_common.errors import ExternalServiceError
from src.pm_evaluator.domain.evaluator import fallback_hybrid_description
from src.pm_evaluator.domain.models import (
    DEFAULT_SCORE,
    MAX_SCORE,
    MIN_SCORE,
    PromptEvaluation,
    default_evaluation,
)

logger = logging.getLogger("pm.evaluator")

_EVALUATE_MAX_TOKENS = 500
_HYBRID_MAX_TOKENS = 300
_RUN_MAX_TOKENS = 500
_HYBRID_MAX_CHARS = 500

_EVALUATE_TEMPLATE = """Evaluate this AI prompt on a scale of 1-100. Respond in JSON format.

Title: "{title}"
Description: "{description}"

Respond with ONLY valid JSON (no markdown):
{{
  "score": <number 1-100>,
  "reason": "<one sentence>",
  "strengths": ["<strength1>", "<strength2>"],
  "improvements": ["<improvement1>", "<improvement2>"]
}}"""

_HYBRID_TEMPLATE = """Create a hybrid prompt that combines these two:

Parent 1:
Title: "{t1}"
Description: "{d1}"

Parent 2:
Title: "{t2}"
Description: "{d2}"

Provide a new prompt description that blends the best aspects of both. Keep it under 500 characters."""

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


def _normalize_score(raw: Any) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int | float):
        return DEFAULT_SCORE
    score = round(raw)
    if not (MIN_SCORE <= score <= MAX_SCORE):
        return DEFAULT_SCORE
    return score


def _str_list(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        return []
    return [str(item) for item in raw]


def parse_evaluation(raw_text: str) -> PromptEvaluation:
    """Parse the model's JSON reply, tolerating a markdown code fence around it."""
    try:
        data = json.loads(_FENCE_RE.sub("", raw_text.strip()))
    except json.JSONDecodeError:
        logger.warning("Evaluator returned non-JSON output, using default evaluation")
        return default_evaluation()
    if not isinstance(data, dict):
        return default_evaluation()
    return PromptEvaluation(
        score=_normalize_score(data.get("score")),
        reason=str(data.get("reason") or default_evaluation().reason),
        strengths=_str_list(data.get("strengths")),
        improvements=_str_list(data.get("improvements")),
    )


class ClaudeEvaluator:
    def __init__(self, client: anthropic.AsyncAnthropic, model: str) -> None:
        self._client = client
        self._model = model

    async def _complete(self, content: str, max_tokens: int) -> str:
        message = await self._client.messages.create(
            model=self._model,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": content}],
        )
        block = message.content[0] if message.content else None
        if block is None or block.type != "text":
            raise ValueError("Unexpected response type")
        return block.text

    async def evaluate(self, title: str, description: str) -> PromptEvaluation:
        try:
            raw = await self._complete(
                _EVALUATE_TEMPLATE.format(title=title, description=description),
                _EVALUATE_MAX_TOKENS,
            )
        except (anthropic.APIError, ValueError) as exc:
            logger.warning("Claude evaluation failed, using default evaluation: %s", exc)
            return default_evaluation()
        return parse_evaluation(raw)

    async def generate_hybrid_description(
        self,
        parent1_title: str,
        parent1_description: str,
        parent2_title: str,
        parent2_description: str,
    ) -> str:
        try:
            raw = await self._complete(
                _HYBRID_TEMPLATE.format(
                    t1=parent1_title, d1=parent1_description,
                    t2=parent2_title, d2=parent2_description,
                ),
                _HYBRID_MAX_TOKENS,
            )
        except (anthropic.APIError, ValueError) as exc:
            logger.warning("Hybrid generation failed: %s", exc)
            return fallback_hybrid_description(parent1_title, parent2_title)
        return raw.strip()[:_HYBRID_MAX_CHARS] or fallback_hybrid_description(
            parent1_title, parent2_title
        )

    async def run_prompt(self, description: str, user_input: str) -> str:
        try:
            return await self._complete(
                f"{description}\n\nUser request: {user_input}", _RUN_MAX_TOKENS
            )
        except (anthropic.APIError, ValueError) as exc:
            logger.error("Prompt execution failed: %s", exc)
            raise ExternalServiceError("LLM") from exc


class DefaultEvaluator:
    """Used when no API key is configured: every prompt gets the default evaluation."""

    async def evaluate(self, title: str, description: str) -> PromptEvaluation:
        return default_evaluation()

    async def generate_hybrid_description(
        self,
        parent1_title: str,
        parent1_description: str,
        parent2_title: str,
        parent2_description: str,
    ) -> str:
        return fallback_hybrid_description(parent1_title, parent2_title)

    async def run_prompt(self, description: str, user_input: str) -> str:
        raise ExternalServiceError("LLM")
