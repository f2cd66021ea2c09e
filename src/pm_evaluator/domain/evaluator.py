"""Evaluator Protocol.

evaluate() and generate_hybrid_description() never raise: failures degrade to a
default value. run_prompt() raises ExternalServiceError, since there is no
meaningful fallback output for executing a prompt.
"""

from typing import Protocol

from src.pm_evaluator.domain.models import PromptEvaluation


class PromptEvaluatorProtocol(Protocol):
    async def evaluate(self, title: str, description: str) -> PromptEvaluation: ...

    async def generate_hybrid_description(
        self,
        parent1_title: str,
        parent1_description: str,
        parent2_title: str,
        parent2_description: str,
    ) -> str: ...

    async def run_prompt(self, description: str, user_input: str) -> str: ...


def fallback_hybrid_description(parent1_title: str, parent2_title: str) -> str:
    return f"Hybrid of {parent1_title} and {parent2_title}"
