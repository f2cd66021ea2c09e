"""In-process trade and breeding-event stores (tests, local demo)."""

import dataclasses

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_clearing.domain.models import BreedingEvent, Trade


class InMemoryTradeRepository:
    def __init__(self) -> None:
        self._trades: list[Trade] = []

    def _matching(self, prompt_id: str | None, trader_id: str | None) -> list[Trade]:
        return [
            t for t in self._trades
            if (prompt_id is None or t.prompt_id == prompt_id)
            and (trader_id is None or t.trader_id == trader_id)
        ]

    async def create(self, db: AsyncSession, trade: Trade) -> Trade:
        self._trades.append(dataclasses.replace(trade))
        return trade

    async def list_trades(
        self,
        db: AsyncSession,
        prompt_id: str | None,
        trader_id: str | None,
        skip: int,
        take: int,
    ) -> list[Trade]:
        ordered = sorted(
            self._matching(prompt_id, trader_id), key=lambda t: t.created_at, reverse=True
        )
        return [dataclasses.replace(t) for t in ordered[skip:skip + take]]

    async def count_trades(
        self,
        db: AsyncSession,
        prompt_id: str | None,
        trader_id: str | None,
    ) -> int:
        return len(self._matching(prompt_id, trader_id))


class InMemoryBreedingRepository:
    def __init__(self) -> None:
        self._events: dict[str, BreedingEvent] = {}

    def _ordered(self, breeder_id: str | None) -> list[BreedingEvent]:
        matching = [
            e for e in self._events.values()
            if breeder_id is None or e.breeder_id == breeder_id
        ]
        return sorted(matching, key=lambda e: e.created_at, reverse=True)

    async def lock_breeder(self, db: AsyncSession, breeder_id: str) -> None:
        # SettlementService already serialises breeders within one process.
        return None

    async def create(self, db: AsyncSession, event: BreedingEvent) -> BreedingEvent:
        self._events[event.id] = dataclasses.replace(event, child_prompt_id=None)
        return event

    async def link_child(self, db: AsyncSession, event_id: str, child_prompt_id: str) -> bool:
        event = self._events.get(event_id)
        if event is None or event.is_linked:
            return False
        event.child_prompt_id = child_prompt_id
        return True

    async def get_last_by_breeder(
        self, db: AsyncSession, breeder_id: str
    ) -> BreedingEvent | None:
        ordered = self._ordered(breeder_id)
        return dataclasses.replace(ordered[0]) if ordered else None

    async def list_breedings(
        self,
        db: AsyncSession,
        breeder_id: str | None,
        skip: int,
        take: int,
    ) -> list[BreedingEvent]:
        return [dataclasses.replace(e) for e in self._ordered(breeder_id)[skip:skip + take]]

    async def count_breedings(self, db: AsyncSession, breeder_id: str | None) -> int:
        return len(self._ordered(breeder_id))

    async def list_unlinked(self, db: AsyncSession) -> list[BreedingEvent]:
        unlinked = [e for e in self._events.values() if not e.is_linked]
        return [dataclasses.replace(e) for e in sorted(unlinked, key=lambda e: e.created_at)]
