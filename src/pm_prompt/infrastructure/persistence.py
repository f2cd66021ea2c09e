"""PromptRepository — PostgreSQL implementation of PromptRepositoryProtocol.

Inserts and reads go through the ORM mapping; the stats mutation is one raw
UPDATE ... RETURNING so concurrent trades on the same prompt never lose updates.

Transaction ownership: the CALLER commits or rolls back the session.
"""

from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_prompt.domain.models import Prompt, PromptStatsDelta
from src.pm_prompt.infrastructure.db_models import PromptORM

_APPLY_STATS_SQL = text("""
    UPDATE prompts
    SET total_usage   = total_usage + :usage_increment,
        total_revenue = total_revenue + :revenue_increment,
        token_price   = CASE
                            WHEN CAST(:price_factor AS NUMERIC) IS NULL THEN token_price
                            ELSE GREATEST(
                                ROUND(token_price * CAST(:price_factor AS NUMERIC), 2), 0
                            )
                        END,
        updated_at    = NOW()
    WHERE id = :prompt_id
    RETURNING id
""")


def _orm_to_domain(row: PromptORM) -> Prompt:
    return Prompt(
        id=row.id,
        title=row.title,
        description=row.description,
        category=row.category,
        creator_id=row.creator_id,
        quality_score=row.quality_score,
        token_price=row.token_price,
        total_usage=row.total_usage,
        total_revenue=row.total_revenue,
        is_hybrid=row.is_hybrid,
        parent_id1=row.parent_id1,
        parent_id2=row.parent_id2,
        contract_address=row.contract_address,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class PromptRepository:
    async def create(self, db: AsyncSession, prompt: Prompt) -> Prompt:
        db.add(
            PromptORM(
                id=prompt.id,
                title=prompt.title,
                description=prompt.description,
                category=prompt.category,
                creator_id=prompt.creator_id,
                quality_score=prompt.quality_score,
                token_price=prompt.token_price,
                total_usage=prompt.total_usage,
                total_revenue=prompt.total_revenue,
                is_hybrid=prompt.is_hybrid,
                parent_id1=prompt.parent_id1,
                parent_id2=prompt.parent_id2,
                contract_address=prompt.contract_address,
                created_at=prompt.created_at,
                updated_at=prompt.updated_at,
            )
        )
        await db.flush()
        return prompt

    async def get_by_id(self, db: AsyncSession, prompt_id: str) -> Prompt | None:
        row = await db.get(PromptORM, prompt_id, populate_existing=True)
        return _orm_to_domain(row) if row else None

    async def get_many(self, db: AsyncSession, prompt_ids: list[str]) -> dict[str, Prompt]:
        result = await db.execute(select(PromptORM).where(PromptORM.id.in_(prompt_ids)))
        return {row.id: _orm_to_domain(row) for row in result.scalars()}

    async def list_prompts(
        self,
        db: AsyncSession,
        category: str | None,
        skip: int,
        take: int,
    ) -> list[Prompt]:
        stmt = select(PromptORM)
        if category is not None:
            stmt = stmt.where(PromptORM.category == category)
        stmt = (
            stmt.order_by(PromptORM.quality_score.desc(), PromptORM.created_at.desc())
            .offset(skip)
            .limit(take)
        )
        result = await db.execute(stmt)
        return [_orm_to_domain(row) for row in result.scalars()]

    async def count_prompts(self, db: AsyncSession, category: str | None) -> int:
        stmt = select(func.count()).select_from(PromptORM)
        if category is not None:
            stmt = stmt.where(PromptORM.category == category)
        return (await db.execute(stmt)).scalar_one()

    async def list_all(self, db: AsyncSession) -> list[Prompt]:
        result = await db.execute(select(PromptORM))
        return [_orm_to_domain(row) for row in result.scalars()]

    async def apply_stats(
        self,
        db: AsyncSession,
        prompt_id: str,
        delta: PromptStatsDelta,
    ) -> Prompt | None:
        result = await db.execute(
            _APPLY_STATS_SQL,
            {
                "prompt_id": prompt_id,
                "usage_increment": delta.usage_increment,
                "revenue_increment": delta.revenue_increment,
                "price_factor": delta.price_factor,
            },
        )
        if result.fetchone() is None:
            return None
        return await self.get_by_id(db, prompt_id)
