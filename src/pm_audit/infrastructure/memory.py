import dataclasses

from src.pm_audit.domain.models import AuditRecord


class InMemoryAuditRepository:
    def __init__(self) -> None:
        self._records: list[AuditRecord] = []

    async def insert(self, record: AuditRecord) -> None:
        self._records.append(dataclasses.replace(record))

    async def list_records(self, limit: int = 100) -> list[AuditRecord]:
        ordered = sorted(self._records, key=lambda r: r.created_at, reverse=True)
        return [dataclasses.replace(r) for r in ordered[:limit]]
