"""EntitlementResolver unit tests with mocked entitlement store and catalogs."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from authz_engine.application.dtos.catalog import FeatureResult, PlanFeatureResult, PlanResult
from authz_engine.application.dtos.entitlement import TenantEntitlementResult
from authz_engine.application.services.entitlement_resolver import (
    EntitlementResolver,
    is_granted,
)
from authz_engine.domain.enums import FeatureValueType, PlanTier
from authz_engine.domain.exceptions import InvalidOperationException, ResourceNotFoundException

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

STARTER = PlanResult("p-starter", "starter", "Starter", PlanTier.STARTER, True, {"teamSeats": 3})
PRO = PlanResult("p-pro", "pro", "Professional", PlanTier.PROFESSIONAL, True, {"teamSeats": 10})
SSO = FeatureResult("f-sso", "sso", "Single sign-on", FeatureValueType.BOOLEAN, False, True)
SEATS = FeatureResult("f-seats", "extra_seats", "Extra seats", FeatureValueType.NUMBER, 0, True)


def _row(
    row_id: str,
    *,
    plan_id: str | None = None,
    feature_id: str | None = None,
    value=None,
    limit: int | None = None,
    expires_at: datetime | None = None,
    created_at: datetime = NOW - timedelta(days=1),
) -> TenantEntitlementResult:
    return TenantEntitlementResult(
        id=row_id,
        org_id="org-a",
        plan_id=plan_id,
        feature_id=feature_id,
        value=value,
        limit=limit,
        expires_at=expires_at,
        granted_by="admin-1",
        reason=None,
        is_active=True,
        created_at=created_at,
    )


@pytest.fixture
def resolver(uow_factory, fake_uow, organizations) -> EntitlementResolver:
    organizations.tiers["org-a"] = PlanTier.STARTER
    fake_uow.entitlements.list_active_for_org = AsyncMock(return_value=[])
    fake_uow.plans.get_plan = AsyncMock(side_effect=lambda pid: {"p-pro": PRO}.get(pid))
    fake_uow.plans.get_default_plan_for_tier = AsyncMock(
        side_effect=lambda tier: {PlanTier.STARTER: STARTER, PlanTier.PROFESSIONAL: PRO}.get(tier)
    )
    fake_uow.plans.get_plan_features = AsyncMock(return_value=[])
    fake_uow.features.get_features_by_ids = AsyncMock(
        side_effect=lambda ids: {f.id: f for f in (SSO, SEATS) if f.id in ids}
    )
    fake_uow.features.get_feature_by_key = AsyncMock(
        side_effect=lambda key: {"sso": SSO, "extra_seats": SEATS}.get(key)
    )
    return EntitlementResolver(uow_factory, organizations, clock=lambda: NOW)


@pytest.mark.parametrize(
    ("value_type", "value", "expected"),
    [
        (FeatureValueType.BOOLEAN, True, True),
        (FeatureValueType.BOOLEAN, "true", True),
        (FeatureValueType.BOOLEAN, False, False),
        (FeatureValueType.BOOLEAN, 1, False),
        (FeatureValueType.NUMBER, 5, True),
        (FeatureValueType.NUMBER, 0, False),
        (FeatureValueType.NUMBER, None, False),
        (FeatureValueType.STRING, "", True),
        (FeatureValueType.JSON, None, False),
    ],
)
def test_is_granted_follows_value_type(value_type, value, expected) -> None:
    assert is_granted(value_type, value) is expected


async def test_falls_back_to_base_tier_without_plan_row(resolver) -> None:
    effective = await resolver.resolve_for_org("org-a")
    assert effective.plan_tier == PlanTier.STARTER
    assert effective.base_plan_tier == PlanTier.STARTER
    assert effective.plan_id == "p-starter"
    assert effective.is_plan_override is False
    assert effective.features == {}


async def test_plan_override_row_sets_tier_and_limits(resolver, fake_uow) -> None:
    fake_uow.entitlements.list_active_for_org = AsyncMock(
        return_value=[_row("e1", plan_id="p-pro")]
    )
    effective = await resolver.resolve_for_org("org-a")
    assert effective.plan_tier == PlanTier.PROFESSIONAL
    assert effective.plan_entitlement_id == "e1"
    assert effective.limits == {"teamSeats": 10}


async def test_expired_rows_are_ignored(resolver, fake_uow) -> None:
    fake_uow.entitlements.list_active_for_org = AsyncMock(
        return_value=[
            _row("e1", plan_id="p-pro", expires_at=NOW - timedelta(seconds=1)),
            _row("e2", feature_id="f-sso", value=True, expires_at=NOW),
        ]
    )
    effective = await resolver.resolve_for_org("org-a")
    assert effective.plan_tier == PlanTier.STARTER
    assert effective.features == {}


async def test_feature_override_keyed_by_feature_key(resolver, fake_uow) -> None:
    fake_uow.entitlements.list_active_for_org = AsyncMock(
        return_value=[
            _row("e1", feature_id="f-sso", value=True, expires_at=NOW + timedelta(days=1)),
            _row("e2", feature_id="f-seats", value=0, limit=25),
        ]
    )
    effective = await resolver.resolve_for_org("org-a")
    assert effective.features["sso"].granted is True
    assert effective.features["extra_seats"].granted is False
    assert effective.features["extra_seats"].limit == 25


async def test_duplicate_active_rows_use_newest(resolver, fake_uow) -> None:
    fake_uow.entitlements.list_active_for_org = AsyncMock(
        return_value=[
            _row("old", feature_id="f-sso", value=False, created_at=NOW - timedelta(days=2)),
            _row("new", feature_id="f-sso", value=True, created_at=NOW - timedelta(hours=1)),
        ]
    )
    effective = await resolver.resolve_for_org("org-a")
    assert effective.features["sso"].entitlement_id == "new"


async def test_unknown_organization(resolver) -> None:
    with pytest.raises(ResourceNotFoundException):
        await resolver.resolve_for_org("org-missing")


async def test_has_feature_override_then_plan_baseline_then_default(resolver, fake_uow) -> None:
    assert await resolver.has_feature("org-a", "sso") is False

    fake_uow.plans.get_plan_features = AsyncMock(
        return_value=[PlanFeatureResult(feature=SSO, value=True, limit=None)]
    )
    assert await resolver.has_feature("org-a", "sso") is True

    fake_uow.entitlements.list_active_for_org = AsyncMock(
        return_value=[_row("e1", feature_id="f-sso", value=False)]
    )
    assert await resolver.has_feature("org-a", "sso") is False
    assert await resolver.has_feature("org-a", "unknown") is False


async def test_get_limit_and_value(resolver, fake_uow) -> None:
    fake_uow.plans.get_plan_features = AsyncMock(
        return_value=[PlanFeatureResult(feature=SEATS, value=5, limit=5)]
    )
    assert await resolver.get_limit("org-a", "extra_seats") == 5
    fake_uow.entitlements.list_active_for_org = AsyncMock(
        return_value=[_row("e1", feature_id="f-seats", value=20, limit=20)]
    )
    assert await resolver.get_limit("org-a", "extra_seats") == 20
    assert await resolver.get_feature_value("org-a", "extra_seats") == 20
    assert await resolver.get_limit("org-a", "sso") is None


async def test_plan_limits_and_defaults(resolver, fake_uow) -> None:
    assert await resolver.get_plan_limit("org-a", "teamSeats") == 3
    assert await resolver.get_plan_limit("org-a", "dashboards") == 3
    with pytest.raises(InvalidOperationException):
        await resolver.get_plan_limit("org-a", "nonexistentLimit")


async def test_check_limit(resolver, organizations, fake_uow) -> None:
    check = await resolver.check_limit("org-a", "teamSeats", 2)
    assert (check.allowed, check.limit, check.remaining) == (True, 3, 1)
    check = await resolver.check_limit("org-a", "teamSeats", 5)
    assert (check.allowed, check.remaining) == (False, 0)

    organizations.tiers["org-a"] = PlanTier.ENTERPRISE
    fake_uow.plans.get_default_plan_for_tier = AsyncMock(return_value=None)
    check = await resolver.check_limit("org-a", "agentRuns", 10_000)
    assert (check.allowed, check.limit, check.remaining) == (True, -1, -1)


async def test_override_null_fields_inherit_plan_baseline(resolver, fake_uow) -> None:
    fake_uow.plans.get_plan_features = AsyncMock(
        return_value=[PlanFeatureResult(feature=SEATS, value=5, limit=10)]
    )
    fake_uow.entitlements.list_active_for_org = AsyncMock(
        return_value=[_row("e1", feature_id="f-seats", value=8)]
    )
    assert await resolver.get_limit("org-a", "extra_seats") == 10
    assert await resolver.get_feature_value("org-a", "extra_seats") == 8

    fake_uow.entitlements.list_active_for_org = AsyncMock(
        return_value=[_row("e1", feature_id="f-seats", limit=40)]
    )
    effective = await resolver.resolve_for_org("org-a")
    assert effective.features["extra_seats"].value == 5
    assert effective.features["extra_seats"].limit == 40
    assert effective.features["extra_seats"].granted is True


async def test_override_null_value_without_baseline_uses_default(resolver, fake_uow) -> None:
    fake_uow.entitlements.list_active_for_org = AsyncMock(
        return_value=[_row("e1", feature_id="f-sso")]
    )
    effective = await resolver.resolve_for_org("org-a")
    assert effective.features["sso"].value is False
    assert effective.features["sso"].granted is False
    assert effective.features["sso"].limit is None
