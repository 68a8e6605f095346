"""Plan and feature catalog repositories (read-only). Implement IPlanCatalog and IFeatureCatalog."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from authz_engine.application.dtos.catalog import FeatureResult, PlanFeatureResult, PlanResult
from authz_engine.domain.enums import FeatureValueType, PlanTier
from authz_engine.infrastructure.persistence.models.catalog import Feature, Plan, PlanFeature
from authz_engine.infrastructure.persistence.repositories.base import BaseRepository


def _plan_to_result(row: Plan) -> PlanResult:
    return PlanResult(
        id=row.id,
        name=row.name,
        display_name=row.display_name,
        tier=PlanTier(row.tier),
        is_active=row.is_active,
        limits=dict(row.limits or {}),
    )


def _feature_to_result(row: Feature) -> FeatureResult:
    return FeatureResult(
        id=row.id,
        key=row.key,
        name=row.name,
        value_type=FeatureValueType(row.value_type),
        default_value=row.default_value,
        is_active=row.is_active,
    )


class PlanCatalogRepository(BaseRepository[Plan]):
    """Plan catalog."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Plan)

    async def get_plan(self, plan_id: str) -> PlanResult | None:
        row = await self.get_by_id(plan_id)
        return _plan_to_result(row) if row else None

    async def get_default_plan_for_tier(self, tier: PlanTier) -> PlanResult | None:
        """Oldest active plan of the tier."""
        result = await self.db.execute(
            select(Plan)
            .where(Plan.tier == PlanTier(tier).value, Plan.is_active.is_(True))
            .order_by(Plan.created_at.asc())
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return _plan_to_result(row) if row else None

    async def get_plan_features(self, plan_id: str) -> list[PlanFeatureResult]:
        result = await self.db.execute(
            select(PlanFeature, Feature)
            .join(Feature, Feature.id == PlanFeature.feature_id)
            .where(PlanFeature.plan_id == plan_id, Feature.is_active.is_(True))
            .order_by(Feature.key)
        )
        return [
            PlanFeatureResult(feature=_feature_to_result(feature), value=pf.value, limit=pf.limit)
            for pf, feature in result.all()
        ]


class FeatureCatalogRepository(BaseRepository[Feature]):
    """Feature catalog."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Feature)

    async def get_feature(self, feature_id: str) -> FeatureResult | None:
        row = await self.get_by_id(feature_id)
        return _feature_to_result(row) if row else None

    async def get_feature_by_key(self, key: str) -> FeatureResult | None:
        result = await self.db.execute(select(Feature).where(Feature.key == key))
        row = result.scalar_one_or_none()
        return _feature_to_result(row) if row else None

    async def get_features_by_ids(self, feature_ids: set[str]) -> dict[str, FeatureResult]:
        if not feature_ids:
            return {}
        result = await self.db.execute(select(Feature).where(Feature.id.in_(feature_ids)))
        return {row.id: _feature_to_result(row) for row in result.scalars().all()}
