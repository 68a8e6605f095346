"""DTOs for the audit trail (role and entitlement mutations)."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class AuditLogEntryCreate:
    """Input for appending one audit log record. Append-only; no update."""

    entity_type: str
    entity_id: str
    action: str
    actor_id: str | None
    role_id: str | None = None
    org_id: str | None = None
    previous_state: dict[str, Any] | None = None
    new_state: dict[str, Any] | None = None
    changes: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None
    ip_address: str | None = None
    user_agent: str | None = None


@dataclass(frozen=True)
class AuditLogResult:
    """Single audit log entry (read-model for list/get)."""

    id: str
    entity_type: str
    entity_id: str
    action: str
    actor_id: str | None
    role_id: str | None
    org_id: str | None
    previous_state: dict[str, Any] | None
    new_state: dict[str, Any] | None
    changes: dict[str, Any] | None
    metadata: dict[str, Any] | None
    ip_address: str | None
    user_agent: str | None
    timestamp: datetime
