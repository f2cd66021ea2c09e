"""Repository Protocol — dependency inversion for testability.

Two implementations: PostgreSQL (infrastructure/persistence.py) and in-process
(infrastructure/memory.py). Both accept the request AsyncSession; the in-process
store ignores it.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_prompt.domain.models import Prompt, PromptStatsDelta


class PromptRepositoryProtocol(Protocol):
    async def create(self, db: AsyncSession, prompt: Prompt) -> Prompt: ...

    async def get_by_id(self, db: AsyncSession, prompt_id: str) -> Prompt | None: ...

    async def get_many(self, db: AsyncSession, prompt_ids: list[str]) -> dict[str, Prompt]:
        """One round trip; ids that do not exist are absent from the result."""
        ...

    async def list_prompts(
        self,
        db: AsyncSession,
        category: str | None,
        skip: int,
        take: int,
    ) -> list[Prompt]:
        """Ordered by quality_score DESC."""
        ...

    async def count_prompts(self, db: AsyncSession, category: str | None) -> int: ...

    async def list_all(self, db: AsyncSession) -> list[Prompt]: ...

    async def apply_stats(
        self,
        db: AsyncSession,
        prompt_id: str,
        delta: PromptStatsDelta,
    ) -> Prompt | None:
        """Atomically bump usage/revenue and optionally rescale price (floored at 0).

        Returns the updated prompt, or None if it does not exist.
        """
        ...
