"""Entitlement lifecycle service: assign plans, grant and revoke feature overrides.

Rows are never hard-deleted; revoke flips is_active. Each mutation and its
audit entry share one unit of work, and the single-active guarantees for
plans and (org, feature) pairs are additionally backed by partial unique
indexes in the store.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from authz_engine.application.dtos.entitlement import (
    PlanAssignmentResult,
    TenantEntitlementResult,
)
from authz_engine.application.interfaces.services import IUnitOfWork, UnitOfWorkFactory
from authz_engine.application.services.audit_trail import AuditTrail, entitlement_snapshot
from authz_engine.domain.exceptions import (
    FeatureNotFoundException,
    PlanNotFoundException,
    ResourceNotFoundException,
)
from authz_engine.shared.enums import EntitlementAuditAction
from authz_engine.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class EntitlementLifecycleService:
    """Mutates TenantEntitlement rows for one organization at a time."""

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    async def assign_plan(
        self,
        org_id: str,
        plan_id: str,
        granted_by: str | None,
        expires_at: datetime | None = None,
        reason: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> PlanAssignmentResult:
        """Replace the org's active plan assignment with plan_id.

        The returned plan_tier must be written to the organization record by
        the caller.

        Raises:
            PlanNotFoundException: plan_id is not in the catalog.
        """
        async with self._uow_factory() as uow:
            plan = await uow.plans.get_plan(plan_id)
            if plan is None:
                raise PlanNotFoundException(plan_id)

            previous = await uow.entitlements.list_active_plan_rows(org_id)
            deactivated_ids = [row.id for row in previous]
            if deactivated_ids:
                await uow.entitlements.deactivate(deactivated_ids)
            created = await uow.entitlements.create_entitlement(
                org_id=org_id,
                plan_id=plan.id,
                expires_at=expires_at,
                granted_by=granted_by,
                reason=reason,
            )
            await AuditTrail(uow.audit).record_entitlement_event(
                org_id=org_id,
                entitlement_id=created.id,
                action=EntitlementAuditAction.PLAN_ASSIGNED,
                actor_id=granted_by,
                previous_state=(
                    {"plans": [entitlement_snapshot(row) for row in previous]} if previous else None
                ),
                new_state=entitlement_snapshot(created),
                metadata={
                    "plan_tier": plan.tier.value,
                    "deactivated_entitlement_ids": deactivated_ids,
                    "reason": reason,
                },
                ip_address=ip_address,
                user_agent=user_agent,
            )
        logger.info(
            "Plan %s (%s) assigned to org %s; deactivated %d previous",
            plan.name,
            plan.tier.value,
            org_id,
            len(deactivated_ids),
        )
        return PlanAssignmentResult(
            entitlement=created,
            plan_tier=plan.tier,
            deactivated_entitlement_ids=deactivated_ids,
        )

    async def grant_feature(
        self,
        org_id: str,
        feature_id: str,
        value: Any,
        granted_by: str | None,
        limit: int | None = None,
        expires_at: datetime | None = None,
        reason: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> TenantEntitlementResult:
        """Grant (or re-grant) a feature override; an existing active row is updated in place.

        Raises:
            FeatureNotFoundException: feature_id is not in the catalog.
        """
        async with self._uow_factory() as uow:
            feature = await uow.features.get_feature(feature_id)
            if feature is None:
                raise FeatureNotFoundException(feature_id)

            existing = await uow.entitlements.get_active_feature_row(org_id, feature.id)
            if existing is not None:
                granted = await uow.entitlements.update_feature_override(
                    existing.id,
                    value=value,
                    limit=limit,
                    expires_at=expires_at,
                    granted_by=granted_by,
                    reason=reason,
                )
            else:
                granted = await uow.entitlements.create_entitlement(
                    org_id=org_id,
                    feature_id=feature.id,
                    value=value,
                    limit=limit,
                    expires_at=expires_at,
                    granted_by=granted_by,
                    reason=reason,
                )
            await AuditTrail(uow.audit).record_entitlement_event(
                org_id=org_id,
                entitlement_id=granted.id,
                action=EntitlementAuditAction.FEATURE_GRANTED,
                actor_id=granted_by,
                previous_state=entitlement_snapshot(existing) if existing else None,
                new_state=entitlement_snapshot(granted),
                metadata={
                    "feature_key": feature.key,
                    "updated_in_place": existing is not None,
                    "reason": reason,
                },
                ip_address=ip_address,
                user_agent=user_agent,
            )
        logger.info(
            "Feature %s %s for org %s",
            feature.key,
            "updated" if existing is not None else "granted",
            org_id,
        )
        return granted

    async def revoke(
        self,
        org_id: str,
        entitlement_id: str,
        actor_id: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> TenantEntitlementResult:
        """Deactivate one entitlement of org_id. Revoking an inactive row is a no-op.

        Raises:
            ResourceNotFoundException: Row missing or owned by another org.
        """
        async with self._uow_factory() as uow:
            row = await uow.entitlements.get(entitlement_id)
            if row is None or row.org_id != org_id:
                raise ResourceNotFoundException("tenant_entitlement", entitlement_id)
            if not row.is_active:
                return row
            return await self._deactivate(uow, row, actor_id, ip_address, user_agent)

    async def revoke_feature(
        self,
        org_id: str,
        feature_key: str,
        actor_id: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> TenantEntitlementResult | None:
        """Deactivate the active override of feature_key for org_id; None if there is none.

        Raises:
            FeatureNotFoundException: feature_key is not in the catalog.
        """
        async with self._uow_factory() as uow:
            feature = await uow.features.get_feature_by_key(feature_key)
            if feature is None:
                raise FeatureNotFoundException(feature_key)
            row = await uow.entitlements.get_active_feature_row(org_id, feature.id)
            if row is None:
                return None
            return await self._deactivate(uow, row, actor_id, ip_address, user_agent)

    async def _deactivate(
        self,
        uow: IUnitOfWork,
        row: TenantEntitlementResult,
        actor_id: str | None,
        ip_address: str | None,
        user_agent: str | None,
    ) -> TenantEntitlementResult:
        await uow.entitlements.deactivate([row.id])
        revoked = await uow.entitlements.get(row.id)
        action = (
            EntitlementAuditAction.PLAN_REVOKED
            if row.is_plan
            else EntitlementAuditAction.FEATURE_REVOKED
        )
        await AuditTrail(uow.audit).record_entitlement_event(
            org_id=row.org_id,
            entitlement_id=row.id,
            action=action,
            actor_id=actor_id,
            previous_state=entitlement_snapshot(row),
            new_state=entitlement_snapshot(revoked),
            ip_address=ip_address,
            user_agent=user_agent,
        )
        logger.info("Entitlement %s revoked for org %s (%s)", row.id, row.org_id, action.value)
        return revoked
