"""Tenant entitlement repository. Implements ITenantEntitlementStore; rows are never deleted."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from authz_engine.application.dtos.entitlement import TenantEntitlementResult
from authz_engine.domain.exceptions import ResourceNotFoundException
from authz_engine.infrastructure.persistence.models.tenant_entitlement import TenantEntitlement
from authz_engine.infrastructure.persistence.repositories.base import BaseRepository
from authz_engine.shared.utils import ensure_utc, utc_now


def _entitlement_to_result(row: TenantEntitlement) -> TenantEntitlementResult:
    """Map ORM to application DTO."""
    return TenantEntitlementResult(
        id=row.id,
        org_id=row.org_id,
        plan_id=row.plan_id,
        feature_id=row.feature_id,
        value=row.value,
        limit=row.limit,
        expires_at=ensure_utc(row.expires_at),
        granted_by=row.granted_by,
        reason=row.reason,
        is_active=row.is_active,
        created_at=ensure_utc(row.created_at),
        updated_at=ensure_utc(row.updated_at),
    )


class TenantEntitlementRepository(BaseRepository[TenantEntitlement]):
    """Entitlement store."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, TenantEntitlement)

    async def get(self, entitlement_id: str) -> TenantEntitlementResult | None:
        row = await self.get_by_id(entitlement_id, refresh=True)
        return _entitlement_to_result(row) if row else None

    async def list_active_for_org(self, org_id: str) -> list[TenantEntitlementResult]:
        result = await self.db.execute(
            select(TenantEntitlement)
            .where(TenantEntitlement.org_id == org_id, TenantEntitlement.is_active.is_(True))
            .order_by(TenantEntitlement.created_at.desc())
        )
        return [_entitlement_to_result(r) for r in result.scalars().all()]

    async def list_active_plan_rows(self, org_id: str) -> list[TenantEntitlementResult]:
        result = await self.db.execute(
            select(TenantEntitlement).where(
                TenantEntitlement.org_id == org_id,
                TenantEntitlement.is_active.is_(True),
                TenantEntitlement.plan_id.is_not(None),
            )
        )
        return [_entitlement_to_result(r) for r in result.scalars().all()]

    async def get_active_feature_row(
        self, org_id: str, feature_id: str
    ) -> TenantEntitlementResult | None:
        result = await self.db.execute(
            select(TenantEntitlement)
            .where(
                TenantEntitlement.org_id == org_id,
                TenantEntitlement.feature_id == feature_id,
                TenantEntitlement.is_active.is_(True),
            )
            .order_by(TenantEntitlement.created_at.desc())
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return _entitlement_to_result(row) if row else None

    async def create_entitlement(
        self,
        *,
        org_id: str,
        plan_id: str | None = None,
        feature_id: str | None = None,
        value: Any = None,
        limit: int | None = None,
        expires_at: datetime | None = None,
        granted_by: str | None = None,
        reason: str | None = None,
    ) -> TenantEntitlementResult:
        """Insert an active entitlement row."""
        if (plan_id is None) == (feature_id is None):
            raise ValueError("Exactly one of plan_id or feature_id must be set")
        row = await self.add(
            TenantEntitlement(
                org_id=org_id,
                plan_id=plan_id,
                feature_id=feature_id,
                value=value,
                limit=limit,
                expires_at=ensure_utc(expires_at),
                granted_by=granted_by,
                reason=reason,
                is_active=True,
            )
        )
        return _entitlement_to_result(row)

    async def update_feature_override(
        self,
        entitlement_id: str,
        *,
        value: Any,
        limit: int | None,
        expires_at: datetime | None,
        granted_by: str | None,
        reason: str | None,
    ) -> TenantEntitlementResult:
        row = await self.get_by_id(entitlement_id)
        if row is None or row.feature_id is None:
            raise ResourceNotFoundException("tenant_entitlement", entitlement_id)
        row.value = value
        row.limit = limit
        row.expires_at = ensure_utc(expires_at)
        row.granted_by = granted_by
        row.reason = reason
        return _entitlement_to_result(await self.save(row))

    async def deactivate(self, entitlement_ids: list[str]) -> int:
        """Bulk set is_active=false; return rows changed."""
        if not entitlement_ids:
            return 0
        result = await self.db.execute(
            update(TenantEntitlement)
            .where(
                TenantEntitlement.id.in_(entitlement_ids),
                TenantEntitlement.is_active.is_(True),
            )
            .values(is_active=False, updated_at=utc_now())
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0
