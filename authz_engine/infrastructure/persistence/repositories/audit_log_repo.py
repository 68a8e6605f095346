"""Audit log repository. Append-only; implements IAuditSink."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from authz_engine.application.dtos.audit_log import AuditLogEntryCreate, AuditLogResult
from authz_engine.infrastructure.persistence.models.audit_log import AuthzAuditLog
from authz_engine.shared.utils import ensure_utc, generate_cuid


def _orm_to_result(row: AuthzAuditLog) -> AuditLogResult:
    """Map ORM to application DTO."""
    return AuditLogResult(
        id=row.id,
        entity_type=row.entity_type,
        entity_id=row.entity_id,
        action=row.action,
        actor_id=row.actor_id,
        role_id=row.role_id,
        org_id=row.org_id,
        previous_state=row.previous_state,
        new_state=row.new_state,
        changes=row.changes,
        metadata=row.entry_metadata,
        ip_address=row.ip_address,
        user_agent=row.user_agent,
        timestamp=ensure_utc(row.timestamp),
    )


class AuditLogRepository:
    """Append-only audit log repository. No update/delete."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def append(self, entry: AuditLogEntryCreate) -> AuditLogResult:
        """Append one audit log entry; return created record."""
        row = AuthzAuditLog(
            id=generate_cuid(),
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            action=entry.action,
            actor_id=entry.actor_id,
            role_id=entry.role_id,
            org_id=entry.org_id,
            previous_state=entry.previous_state,
            new_state=entry.new_state,
            changes=entry.changes,
            entry_metadata=entry.metadata,
            ip_address=entry.ip_address,
            user_agent=entry.user_agent,
        )
        self.db.add(row)
        await self.db.flush()
        await self.db.refresh(row)
        return _orm_to_result(row)

    async def list(
        self,
        *,
        role_id: str | None = None,
        org_id: str | None = None,
        action: str | None = None,
        actor_id: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[AuditLogResult]:
        """List audit log entries with optional filters (newest first)."""
        conditions = []
        if role_id is not None:
            conditions.append(AuthzAuditLog.role_id == role_id)
        if org_id is not None:
            conditions.append(AuthzAuditLog.org_id == org_id)
        if action is not None:
            conditions.append(AuthzAuditLog.action == action)
        if actor_id is not None:
            conditions.append(AuthzAuditLog.actor_id == actor_id)
        result = await self.db.execute(
            select(AuthzAuditLog)
            .where(*conditions)
            .order_by(AuthzAuditLog.timestamp.desc(), AuthzAuditLog.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return [_orm_to_result(r) for r in result.scalars().all()]
