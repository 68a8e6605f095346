"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs only; no infrastructure imports.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from authz_engine.application.dtos.audit_log import (
        AuditLogEntryCreate,
        AuditLogResult,
    )
    from authz_engine.application.dtos.catalog import (
        FeatureResult,
        PlanFeatureResult,
        PlanResult,
    )
    from authz_engine.application.dtos.entitlement import TenantEntitlementResult
    from authz_engine.application.dtos.role import RoleResult
    from authz_engine.domain.enums import PlanTier


# Role store interface
class IRoleStore(Protocol):
    """Protocol for role persistence and graph-integrity primitives."""

    async def get(self, role_id: str) -> RoleResult:
        """Return role by ID. Raises ResourceNotFoundException if missing."""

    async def find(self, role_id: str) -> RoleResult | None:
        """Return role by ID, or None."""

    async def get_by_name(self, name: str) -> RoleResult | None:
        """Return role by unique name, or None."""

    async def list_roles(
        self,
        *,
        is_active: bool | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int | None = 50,
    ) -> list[RoleResult]:
        """Return roles ordered by priority desc, display_name asc; limit=None returns all."""

    async def count_roles(
        self, *, is_active: bool | None = None, search: str | None = None
    ) -> int:
        """Return number of roles matching the filters."""

    async def get_ancestor_chain(self, role_id: str) -> list[RoleResult]:
        """Return [role, parent, grandparent, ..., root]. Raises CycleDetectedException on revisit."""

    async def would_create_cycle(self, role_id: str, candidate_parent_id: str) -> bool:
        """Return True if making candidate_parent_id the parent of role_id would close a cycle."""

    async def list_children(self, role_id: str) -> list[RoleResult]:
        """Return roles whose parent_role_id is role_id."""

    async def create_role(self, **fields: Any) -> RoleResult:
        """Insert a role; return created read-model."""

    async def update_role(self, role_id: str, changes: dict[str, Any]) -> RoleResult:
        """Apply changes to a role; return updated read-model."""

    async def delete_role(self, role_id: str) -> None:
        """Hard-delete a role row."""


# Tenant entitlement store interface
class ITenantEntitlementStore(Protocol):
    """Protocol for TenantEntitlement rows (never hard-deleted)."""

    async def get(self, entitlement_id: str) -> TenantEntitlementResult | None:
        """Return entitlement by ID, or None."""

    async def list_active_for_org(self, org_id: str) -> list[TenantEntitlementResult]:
        """Return all is_active rows for org (expired rows included)."""

    async def list_active_plan_rows(self, org_id: str) -> list[TenantEntitlementResult]:
        """Return active plan-type rows for org."""

    async def get_active_feature_row(
        self, org_id: str, feature_id: str
    ) -> TenantEntitlementResult | None:
        """Return the active override for (org, feature), or None."""

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
        """Update an existing feature override in place."""

    async def deactivate(self, entitlement_ids: list[str]) -> int:
        """Set is_active=false on the given rows; return number of rows changed."""


# Plan catalog interface
class IPlanCatalog(Protocol):
    """Read-only plan catalog."""

    async def get_plan(self, plan_id: str) -> PlanResult | None:
        """Return plan by ID, or None."""

    async def get_default_plan_for_tier(self, tier: PlanTier) -> PlanResult | None:
        """Return the active catalog plan for a tier (baseline when no override exists)."""

    async def get_plan_features(self, plan_id: str) -> list[PlanFeatureResult]:
        """Return baseline features included in a plan."""


# Feature catalog interface
class IFeatureCatalog(Protocol):
    """Read-only feature catalog."""

    async def get_feature(self, feature_id: str) -> FeatureResult | None:
        """Return feature by ID, or None."""

    async def get_feature_by_key(self, key: str) -> FeatureResult | None:
        """Return feature by key, or None."""

    async def get_features_by_ids(self, feature_ids: set[str]) -> dict[str, FeatureResult]:
        """Return features keyed by ID (missing IDs are absent)."""


# Audit sink interface
class IAuditSink(Protocol):
    """Append-only audit log."""

    async def append(self, entry: AuditLogEntryCreate) -> AuditLogResult:
        """Append one entry; return the stored record."""

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
        """Return entries matching the filters, newest first."""
