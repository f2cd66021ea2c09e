"""Repository Protocols for trades and breeding events.

Unit tests inject the in-process implementations (infrastructure/memory.py);
production uses the PostgreSQL ones.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_clearing.domain.models import BreedingEvent, Trade


class TradeRepositoryProtocol(Protocol):
    async def create(self, db: AsyncSession, trade: Trade) -> Trade: ...

    async def list_trades(
        self,
        db: AsyncSession,
        prompt_id: str | None,
        trader_id: str | None,
        skip: int,
        take: int,
    ) -> list[Trade]:
        """Ordered by created_at DESC."""
        ...

    async def count_trades(
        self,
        db: AsyncSession,
        prompt_id: str | None,
        trader_id: str | None,
    ) -> int: ...


class BreedingRepositoryProtocol(Protocol):
    async def lock_breeder(self, db: AsyncSession, breeder_id: str) -> None:
        """Hold a per-breeder lock until the caller's transaction ends."""
        ...

    async def create(self, db: AsyncSession, event: BreedingEvent) -> BreedingEvent: ...

    async def link_child(
        self,
        db: AsyncSession,
        event_id: str,
        child_prompt_id: str,
    ) -> bool:
        """created -> linked. Returns False if the event is missing or already linked."""
        ...

    async def get_last_by_breeder(
        self,
        db: AsyncSession,
        breeder_id: str,
    ) -> BreedingEvent | None: ...

    async def list_breedings(
        self,
        db: AsyncSession,
        breeder_id: str | None,
        skip: int,
        take: int,
    ) -> list[BreedingEvent]:
        """Ordered by created_at DESC."""
        ...

    async def count_breedings(self, db: AsyncSession, breeder_id: str | None) -> int: ...

    async def list_unlinked(self, db: AsyncSession) -> list[BreedingEvent]: ...
