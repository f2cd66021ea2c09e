"""Audit record — one row per security-relevant action, successful or not."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.pm_common.enums import AuditAction


@dataclass
class AuditRecord:
    id: str
    action: AuditAction
    actor_id: str | None
    resource_id: str | None
    origin: str | None
    created_at: datetime
    details: dict[str, Any] = field(default_factory=dict)
    success: bool = True
    error_message: str | None = None
