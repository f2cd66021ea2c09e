"""BreedingRepository — breeding_events table, raw text() SQL.

link_child only moves an event from created (child_prompt_id NULL) to linked; a
second link attempt matches zero rows. lock_breeder takes a transaction-scoped
advisory lock so breeding requests for one breeder serialise across workers.
"""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_clearing.domain.models import BreedingEvent
from src.pm_common.datetime_utils import ensure_utc
from src.pm_common.enums import SettlementStatus

_COLUMNS = """
    id, parent1_id, parent2_id, breeder_id, child_title, child_description,
    child_quality, child_prompt_id, tx_hash, status, created_at
"""

_INSERT_SQL = text("""
    INSERT INTO breeding_events
        (id, parent1_id, parent2_id, breeder_id, child_title, child_description,
         child_quality, child_prompt_id, tx_hash, status, created_at)
    VALUES
        (:id, :parent1_id, :parent2_id, :breeder_id, :child_title, :child_description,
         :child_quality, NULL, :tx_hash, :status, :created_at)
""")

_LOCK_BREEDER_SQL = text("SELECT pg_advisory_xact_lock(hashtext(:breeder_id))")

_LINK_SQL = text("""
    UPDATE breeding_events
    SET child_prompt_id = :child_prompt_id
    WHERE id = :event_id AND child_prompt_id IS NULL
    RETURNING id
""")

_LAST_BY_BREEDER_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM breeding_events
    WHERE breeder_id = :breeder_id
    ORDER BY created_at DESC
    LIMIT 1
""")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM breeding_events
    WHERE (CAST(:breeder_id AS TEXT) IS NULL OR breeder_id = CAST(:breeder_id AS TEXT))
    ORDER BY created_at DESC, id DESC
    OFFSET :skip
    LIMIT :take
""")

_COUNT_SQL = text("""
    SELECT COUNT(*)
    FROM breeding_events
    WHERE (CAST(:breeder_id AS TEXT) IS NULL OR breeder_id = CAST(:breeder_id AS TEXT))
""")

_UNLINKED_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM breeding_events
    WHERE child_prompt_id IS NULL
    ORDER BY created_at
""")


def _row_to_event(row: Any) -> BreedingEvent:
    return BreedingEvent(
        id=row.id,
        parent1_id=row.parent1_id,
        parent2_id=row.parent2_id,
        breeder_id=row.breeder_id,
        child_title=row.child_title,
        child_description=row.child_description,
        child_quality=row.child_quality,
        child_prompt_id=row.child_prompt_id,
        tx_hash=row.tx_hash,
        status=SettlementStatus(row.status),
        created_at=ensure_utc(row.created_at),
    )


class BreedingRepository:
    async def lock_breeder(self, db: AsyncSession, breeder_id: str) -> None:
        await db.execute(_LOCK_BREEDER_SQL, {"breeder_id": breeder_id})

    async def create(self, db: AsyncSession, event: BreedingEvent) -> BreedingEvent:
        await db.execute(
            _INSERT_SQL,
            {
                "id": event.id,
                "parent1_id": event.parent1_id,
                "parent2_id": event.parent2_id,
                "breeder_id": event.breeder_id,
                "child_title": event.child_title,
                "child_description": event.child_description,
                "child_quality": event.child_quality,
                "tx_hash": event.tx_hash,
                "status": event.status.value,
                "created_at": event.created_at,
            },
        )
        return event

    async def link_child(self, db: AsyncSession, event_id: str, child_prompt_id: str) -> bool:
        result = await db.execute(
            _LINK_SQL, {"event_id": event_id, "child_prompt_id": child_prompt_id}
        )
        return result.fetchone() is not None

    async def get_last_by_breeder(
        self, db: AsyncSession, breeder_id: str
    ) -> BreedingEvent | None:
        row = (await db.execute(_LAST_BY_BREEDER_SQL, {"breeder_id": breeder_id})).fetchone()
        return _row_to_event(row) if row else None

    async def list_breedings(
        self,
        db: AsyncSession,
        breeder_id: str | None,
        skip: int,
        take: int,
    ) -> list[BreedingEvent]:
        rows = (
            await db.execute(
                _LIST_SQL, {"breeder_id": breeder_id, "skip": skip, "take": take}
            )
        ).fetchall()
        return [_row_to_event(r) for r in rows]

    async def count_breedings(self, db: AsyncSession, breeder_id: str | None) -> int:
        result = await db.execute(_COUNT_SQL, {"breeder_id": breeder_id})
        return int(result.scalar_one())

    async def list_unlinked(self, db: AsyncSession) -> list[BreedingEvent]:
        rows = (await db.execute(_UNLINKED_SQL)).fetchall()
        return [_row_to_event(r) for r in rows]
