"""DTOs for tenant entitlements (plan assignments and feature overrides)."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from authz_engine.domain.enums import PlanTier


@dataclass(frozen=True)
class TenantEntitlementResult:
    """TenantEntitlement read-model. Exactly one of plan_id / feature_id is set."""

    id: str
    org_id: str
    plan_id: str | None
    feature_id: str | None
    value: Any
    limit: int | None
    expires_at: datetime | None
    granted_by: str | None
    reason: str | None
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_plan(self) -> bool:
        return self.plan_id is not None

    def is_expired(self, now: datetime) -> bool:
        """True when expires_at is set and not later than now."""
        return self.expires_at is not None and self.expires_at <= now


@dataclass(frozen=True)
class FeatureOverride:
    """Effective state of one feature override for an org."""

    key: str
    feature_id: str
    entitlement_id: str
    granted: bool
    value: Any
    limit: int | None
    expires_at: datetime | None


@dataclass(frozen=True)
class EffectiveEntitlements:
    """Merged entitlement view for an org at one point in time.

    features only holds active, non-expired overrides; features without an
    override resolve against the plan baseline.
    """

    org_id: str
    plan_tier: PlanTier
    base_plan_tier: PlanTier
    plan_id: str | None
    plan_name: str | None
    plan_entitlement_id: str | None
    plan_expires_at: datetime | None
    limits: dict[str, int] = field(default_factory=dict)
    features: dict[str, FeatureOverride] = field(default_factory=dict)

    @property
    def is_plan_override(self) -> bool:
        return self.plan_entitlement_id is not None


@dataclass(frozen=True)
class PlanAssignmentResult:
    """Outcome of assign_plan.

    The engine does not own the organization record: callers must write
    plan_tier to the organization's denormalized planTier attribute.
    """

    entitlement: TenantEntitlementResult
    plan_tier: PlanTier
    deactivated_entitlement_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class LimitCheck:
    """Result of checking a usage count against a plan limit (-1 = unlimited)."""

    allowed: bool
    limit: int
    current: int
    remaining: int
