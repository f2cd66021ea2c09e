"""AuditLogger — best-effort audit trail.

Called after the business transaction has committed. A failing audit write is logged
and swallowed: the user-visible outcome of a committed settlement never depends on it.
"""

import logging
import uuid
from typing import Any

from src.pm_audit.domain.models import AuditRecord
from src.pm_audit.domain.repository import AuditRepositoryProtocol
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import AuditAction

logger = logging.getLogger("pm.audit")


class AuditLogger:
    def __init__(self, repo: AuditRepositoryProtocol) -> None:
        self._repo = repo

    async def _write(self, record: AuditRecord) -> None:
        try:
            await self._repo.insert(record)
        except Exception:
            logger.exception(
                "Failed to write audit record %s for resource %s",
                record.action.value, record.resource_id,
            )

    async def record(
        self,
        action: AuditAction,
        actor_id: str | None,
        resource_id: str | None,
        origin: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        await self._write(AuditRecord(
            id=str(uuid.uuid4()),
            action=action,
            actor_id=actor_id,
            resource_id=resource_id,
            origin=origin,
            details=details or {},
            created_at=utc_now(),
        ))

    async def record_failure(
        self,
        action: AuditAction,
        actor_id: str | None,
        resource_id: str | None,
        origin: str | None,
        error: str,
    ) -> None:
        await self._write(AuditRecord(
            id=str(uuid.uuid4()),
            action=action,
            actor_id=actor_id,
            resource_id=resource_id,
            origin=origin,
            success=False,
            error_message=error,
            created_at=utc_now(),
        ))
