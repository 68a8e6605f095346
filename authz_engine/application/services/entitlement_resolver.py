"""Entitlement resolver: effective plan and feature state of an organization.

Merges the org's active TenantEntitlement rows with the plan and feature
catalogs. Expiry is evaluated at read time; expired rows are ignored but
never deleted here.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from authz_engine.application.dtos.catalog import FeatureResult, PlanFeatureResult, PlanResult
from authz_engine.application.dtos.entitlement import (
    EffectiveEntitlements,
    FeatureOverride,
    LimitCheck,
    TenantEntitlementResult,
)
from authz_engine.application.interfaces.services import (
    IOrganizationDirectory,
    IUnitOfWork,
    UnitOfWorkFactory,
)
from authz_engine.core.constants import DEFAULT_PLAN_LIMITS, UNLIMITED
from authz_engine.domain.enums import FeatureValueType, PlanTier
from authz_engine.domain.exceptions import (
    InvalidOperationException,
    ResourceNotFoundException,
)
from authz_engine.shared.telemetry.logging import get_logger
from authz_engine.shared.utils import ensure_utc, utc_now

logger = get_logger(__name__)

_EPOCH = datetime.min.replace(tzinfo=UTC)


def is_granted(value_type: FeatureValueType, value: Any) -> bool:
    """Interpret a feature value as granted/not granted for its value type."""
    if value_type == FeatureValueType.BOOLEAN:
        return value is True or value == "true"
    if value_type == FeatureValueType.NUMBER:
        return value is not None and value is not False and value != 0
    return value is not None


def _newest(rows: list[TenantEntitlementResult]) -> TenantEntitlementResult:
    return max(rows, key=lambda r: ensure_utc(r.created_at) or _EPOCH)


class EntitlementResolver:
    """Answers "does org X have capability Y, and at what limit?"."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        organizations: IOrganizationDirectory,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._organizations = organizations
        self._clock = clock

    async def resolve_for_org(self, org_id: str) -> EffectiveEntitlements:
        """Return the merged entitlement view of org_id.

        Raises:
            ResourceNotFoundException: If the organization does not exist.
        """
        base_tier = await self._base_tier(org_id)
        async with self._uow_factory() as uow:
            return await self._resolve(uow, org_id, base_tier)

    async def has_feature(self, org_id: str, feature_key: str) -> bool:
        """True if an override grants the feature, else the plan baseline, else its default."""
        granted, _, _ = await self._feature_state(org_id, feature_key)
        return granted

    async def get_limit(self, org_id: str, feature_key: str) -> int | None:
        """Limit of a feature for org_id (override, then plan baseline); None = no cap."""
        _, _, limit = await self._feature_state(org_id, feature_key)
        return limit

    async def get_feature_value(self, org_id: str, feature_key: str) -> Any:
        """Effective value of a feature (override, then plan baseline, then default)."""
        _, value, _ = await self._feature_state(org_id, feature_key)
        return value

    async def get_plan_limit(self, org_id: str, limit_key: str) -> int:
        """Named plan limit (e.g. teamSeats) for org_id. -1 means unlimited.

        Raises:
            InvalidOperationException: If limit_key is unknown for the tier.
        """
        effective = await self.resolve_for_org(org_id)
        if limit_key in effective.limits:
            return int(effective.limits[limit_key])
        defaults = DEFAULT_PLAN_LIMITS.get(effective.plan_tier, {})
        if limit_key not in defaults:
            raise InvalidOperationException(f"Unknown plan limit: {limit_key}", field="limit_key")
        return defaults[limit_key]

    async def check_limit(self, org_id: str, limit_key: str, current_count: int) -> LimitCheck:
        """Check current_count against a plan limit."""
        limit = await self.get_plan_limit(org_id, limit_key)
        if limit == UNLIMITED:
            return LimitCheck(allowed=True, limit=UNLIMITED, current=current_count, remaining=UNLIMITED)
        return LimitCheck(
            allowed=current_count < limit,
            limit=limit,
            current=current_count,
            remaining=max(0, limit - current_count),
        )

    async def _base_tier(self, org_id: str) -> PlanTier:
        tier = await self._organizations.get_plan_tier(org_id)
        if tier is None:
            raise ResourceNotFoundException("organization", org_id)
        return PlanTier(tier)

    async def _resolve(
        self, uow: IUnitOfWork, org_id: str, base_tier: PlanTier
    ) -> EffectiveEntitlements:
        now = self._clock()
        rows = [
            row
            for row in await uow.entitlements.list_active_for_org(org_id)
            if not row.is_expired(now)
        ]
        plan_rows = [row for row in rows if row.plan_id is not None]
        feature_rows: dict[str, list[TenantEntitlementResult]] = {}
        for row in rows:
            if row.feature_id is not None:
                feature_rows.setdefault(row.feature_id, []).append(row)

        plan_row: TenantEntitlementResult | None = None
        if plan_rows:
            if len(plan_rows) > 1:
                logger.warning(
                    "Org %s has %d active plan entitlements; using newest", org_id, len(plan_rows)
                )
            plan_row = _newest(plan_rows)

        plan: PlanResult | None = None
        if plan_row is not None:
            plan = await uow.plans.get_plan(plan_row.plan_id)
            if plan is None:
                logger.warning(
                    "Plan %s of entitlement %s missing from catalog", plan_row.plan_id, plan_row.id
                )
        plan_tier = plan.tier if plan is not None else base_tier
        if plan is None:
            plan = await uow.plans.get_default_plan_for_tier(plan_tier)

        catalog = await uow.features.get_features_by_ids(set(feature_rows))
        baseline: dict[str, PlanFeatureResult] = {}
        if feature_rows and plan is not None:
            baseline = {
                included.feature.id: included
                for included in await uow.plans.get_plan_features(plan.id)
            }
        features: dict[str, FeatureOverride] = {}
        for feature_id, candidates in feature_rows.items():
            feature = catalog.get(feature_id)
            if feature is None:
                logger.warning("Override for unknown feature %s ignored (org %s)", feature_id, org_id)
                continue
            if len(candidates) > 1:
                logger.warning(
                    "Org %s has %d active overrides for %s; using newest",
                    org_id,
                    len(candidates),
                    feature.key,
                )
            row = _newest(candidates)
            value, limit = _merge_override(row, baseline.get(feature_id), feature)
            features[feature.key] = FeatureOverride(
                key=feature.key,
                feature_id=feature_id,
                entitlement_id=row.id,
                granted=is_granted(feature.value_type, value),
                value=value,
                limit=limit,
                expires_at=row.expires_at,
            )

        return EffectiveEntitlements(
            org_id=org_id,
            plan_tier=plan_tier,
            base_plan_tier=base_tier,
            plan_id=plan.id if plan is not None else None,
            plan_name=plan.name if plan is not None else None,
            plan_entitlement_id=plan_row.id if plan_row is not None else None,
            plan_expires_at=plan_row.expires_at if plan_row is not None else None,
            limits=dict(plan.limits) if plan is not None else {},
            features=features,
        )

    async def _feature_state(self, org_id: str, feature_key: str) -> tuple[bool, Any, int | None]:
        base_tier = await self._base_tier(org_id)
        async with self._uow_factory() as uow:
            effective = await self._resolve(uow, org_id, base_tier)
            override = effective.features.get(feature_key)
            if override is not None:
                return override.granted, override.value, override.limit

            feature = await uow.features.get_feature_by_key(feature_key)
            if feature is None or not feature.is_active:
                return False, None, None
            if effective.plan_id is not None:
                for included in await uow.plans.get_plan_features(effective.plan_id):
                    if included.feature.id == feature.id:
                        return (
                            is_granted(feature.value_type, included.value),
                            included.value,
                            included.limit,
                        )
            return _default_state(feature)


def _default_state(feature: FeatureResult) -> tuple[bool, Any, int | None]:
    return is_granted(feature.value_type, feature.default_value), feature.default_value, None


def _merge_override(
    row: TenantEntitlementResult,
    included: PlanFeatureResult | None,
    feature: FeatureResult,
) -> tuple[Any, int | None]:
    """Override fields left null inherit the plan baseline, then the feature default."""
    value = row.value
    if value is None and included is not None:
        value = included.value
    if value is None:
        value = feature.default_value
    limit = row.limit
    if limit is None and included is not None:
        limit = included.limit
    return value, limit
