"""AuditRepository — audit_logs table, raw text() SQL.

Writes go through standalone_transaction(): an audit row is committed after the
business transaction and must not share its fate.
"""

import json
from typing import Any

from sqlalchemy import text

from src.pm_audit.domain.models import AuditRecord
from src.pm_common.database import standalone_transaction
from src.pm_common.enums import AuditAction

_INSERT_SQL = text("""
    INSERT INTO audit_logs
        (id, action, actor_id, resource_id, origin, details, success, error_message, created_at)
    VALUES
        (:id, :action, :actor_id, :resource_id, :origin, CAST(:details AS JSONB),
         :success, :error_message, :created_at)
""")

_LIST_SQL = text("""
    SELECT id, action, actor_id, resource_id, origin, details, success, error_message, created_at
    FROM audit_logs
    ORDER BY created_at DESC
    LIMIT :limit
""")


def _row_to_record(row: Any) -> AuditRecord:
    details = row.details
    if isinstance(details, str):
        details = json.loads(details)
    return AuditRecord(
        id=row.id,
        action=AuditAction(row.action),
        actor_id=row.actor_id,
        resource_id=row.resource_id,
        origin=row.origin,
        details=details or {},
        success=row.success,
        error_message=row.error_message,
        created_at=row.created_at,
    )


class AuditRepository:
    async def insert(self, record: AuditRecord) -> None:
        async with standalone_transaction() as db:
            await db.execute(
                _INSERT_SQL,
                {
                    "id": record.id,
                    "action": record.action.value,
                    "actor_id": record.actor_id,
                    "resource_id": record.resource_id,
                    "origin": record.origin,
                    "details": json.dumps(record.details, default=str),
                    "success": record.success,
                    "error_message": record.error_message,
                    "created_at": record.created_at,
                },
            )

    async def list_records(self, limit: int = 100) -> list[AuditRecord]:
        async with standalone_transaction() as db:
            rows = (await db.execute(_LIST_SQL, {"limit": limit})).fetchall()
        return [_row_to_record(r) for r in rows]
