"""In-process PromptRepository — the ephemeral store used by tests and the local demo.

Stats mutations take a per-prompt asyncio.Lock, matching the row-level atomicity of
the PostgreSQL UPDATE. Prompts are never deleted, so the lock map grows with the
catalogue and no further.
"""

import asyncio
import dataclasses
from collections import defaultdict

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_clearing.domain.pricing import scale_price
from src.pm_common.datetime_utils import utc_now
from src.pm_prompt.domain.models import Prompt, PromptStatsDelta


class InMemoryPromptRepository:
    def __init__(self) -> None:
        self._prompts: dict[str, Prompt] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def create(self, db: AsyncSession, prompt: Prompt) -> Prompt:
        self._prompts[prompt.id] = dataclasses.replace(prompt)
        return prompt

    async def get_by_id(self, db: AsyncSession, prompt_id: str) -> Prompt | None:
        prompt = self._prompts.get(prompt_id)
        return dataclasses.replace(prompt) if prompt else None

    async def get_many(self, db: AsyncSession, prompt_ids: list[str]) -> dict[str, Prompt]:
        return {
            pid: dataclasses.replace(self._prompts[pid])
            for pid in prompt_ids if pid in self._prompts
        }

    async def list_prompts(
        self,
        db: AsyncSession,
        category: str | None,
        skip: int,
        take: int,
    ) -> list[Prompt]:
        matching = [
            p for p in self._prompts.values() if category is None or p.category == category
        ]
        matching.sort(key=lambda p: (p.quality_score, p.created_at), reverse=True)
        return [dataclasses.replace(p) for p in matching[skip:skip + take]]

    async def count_prompts(self, db: AsyncSession, category: str | None) -> int:
        return sum(1 for p in self._prompts.values() if category is None or p.category == category)

    async def list_all(self, db: AsyncSession) -> list[Prompt]:
        return [dataclasses.replace(p) for p in self._prompts.values()]

    async def apply_stats(
        self,
        db: AsyncSession,
        prompt_id: str,
        delta: PromptStatsDelta,
    ) -> Prompt | None:
        async with self._locks[prompt_id]:
            prompt = self._prompts.get(prompt_id)
            if prompt is None:
                return None
            prompt.total_usage += delta.usage_increment
            prompt.total_revenue += delta.revenue_increment
            if delta.price_factor is not None:
                prompt.token_price = scale_price(prompt.token_price, delta.price_factor)
            prompt.updated_at = utc_now()
            return dataclasses.replace(prompt)
