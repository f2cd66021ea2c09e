from typing import Protocol

from src.pm_audit.domain.models import AuditRecord


class AuditRepositoryProtocol(Protocol):
    async def insert(self, record: AuditRecord) -> None:
        """Persist in a transaction of its own, never the request's."""
        ...

    async def list_records(self, limit: int = 100) -> list[AuditRecord]:
        """Newest first."""
        ...
