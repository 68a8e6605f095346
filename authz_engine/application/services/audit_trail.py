"""Audit trail: append-only writer and paginated query shared by both lifecycle services.

Entries are written through the sink bound to the caller's unit of work, so
a mutation and its audit record commit (or roll back) together.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from enum import Enum
from typing import Any

from authz_engine.application.dtos.audit_log import AuditLogEntryCreate, AuditLogResult
from authz_engine.application.dtos.entitlement import TenantEntitlementResult
from authz_engine.application.dtos.role import RoleResult
from authz_engine.application.interfaces.repositories import IAuditSink
from authz_engine.domain.exceptions import InvalidOperationException
from authz_engine.shared.enums import (
    AuditEntityType,
    EntitlementAuditAction,
    RoleAuditAction,
)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500


def _json_safe(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


def role_snapshot(role: RoleResult) -> dict[str, Any]:
    """Full JSON-safe snapshot of a role for previous_state/new_state."""
    return _json_safe(asdict(role))


def entitlement_snapshot(entitlement: TenantEntitlementResult) -> dict[str, Any]:
    """Full JSON-safe snapshot of an entitlement row."""
    return _json_safe(asdict(entitlement))


class AuditTrail:
    """Writes and queries audit entries through an IAuditSink."""

    def __init__(self, sink: IAuditSink, max_page_size: int = MAX_PAGE_SIZE) -> None:
        self._sink = sink
        self._max_page_size = max_page_size

    async def record_role_event(
        self,
        *,
        role_id: str,
        action: RoleAuditAction,
        actor_id: str | None,
        previous_state: dict[str, Any] | None,
        new_state: dict[str, Any] | None,
        changes: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AuditLogResult:
        """Append one role audit entry (create/update/delete/clone)."""
        return await self._sink.append(
            AuditLogEntryCreate(
                entity_type=AuditEntityType.ROLE.value,
                entity_id=role_id,
                action=action.value,
                actor_id=actor_id,
                role_id=role_id,
                previous_state=_json_safe(previous_state),
                new_state=_json_safe(new_state),
                changes=_json_safe(changes),
                metadata=_json_safe(metadata),
                ip_address=ip_address,
                user_agent=user_agent,
            )
        )

    async def record_entitlement_event(
        self,
        *,
        org_id: str,
        entitlement_id: str,
        action: EntitlementAuditAction,
        actor_id: str | None,
        previous_state: dict[str, Any] | None,
        new_state: dict[str, Any] | None,
        metadata: dict[str, Any] | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AuditLogResult:
        """Append one entitlement audit entry (plan/feature grant or revoke)."""
        return await self._sink.append(
            AuditLogEntryCreate(
                entity_type=AuditEntityType.TENANT_ENTITLEMENT.value,
                entity_id=entitlement_id,
                action=action.value,
                actor_id=actor_id,
                org_id=org_id,
                previous_state=_json_safe(previous_state),
                new_state=_json_safe(new_state),
                metadata=_json_safe(metadata),
                ip_address=ip_address,
                user_agent=user_agent,
            )
        )

    async def list_audit_logs(
        self,
        *,
        role_id: str | None = None,
        org_id: str | None = None,
        action: str | None = None,
        actor_id: str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> list[AuditLogResult]:
        """Return audit entries newest first.

        Raises:
            InvalidOperationException: If limit < 1 or offset < 0.
        """
        if limit < 1:
            raise InvalidOperationException("limit must be at least 1", field="limit")
        if offset < 0:
            raise InvalidOperationException("offset must not be negative", field="offset")
        return await self._sink.list(
            role_id=role_id,
            org_id=org_id,
            action=action,
            actor_id=actor_id,
            skip=offset,
            limit=min(limit, self._max_page_size),
        )
