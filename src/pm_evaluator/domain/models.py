"""Evaluation result returned by the LLM quality evaluator."""

from dataclasses import dataclass, field

MIN_SCORE = 1
MAX_SCORE = 100
DEFAULT_SCORE = 50


@dataclass
class PromptEvaluation:
    score: int
    reason: str
    strengths: list[str] = field(default_factory=list)
    improvements: list[str] = field(default_factory=list)


def default_evaluation() -> PromptEvaluation:
    """Used whenever the evaluator is unreachable or answers garbage."""
    return PromptEvaluation(
        score=DEFAULT_SCORE,
        reason="Default evaluation",
        strengths=["Readable"],
        improvements=["Could be more specific"],
    )
