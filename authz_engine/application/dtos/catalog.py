"""DTOs for the plan and feature catalogs (read-only for the engine)."""

from dataclasses import dataclass, field
from typing import Any

from authz_engine.domain.enums import FeatureValueType, PlanTier


@dataclass(frozen=True)
class PlanResult:
    """Plan catalog entry."""

    id: str
    name: str
    display_name: str
    tier: PlanTier
    is_active: bool
    limits: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class FeatureResult:
    """Feature catalog entry."""

    id: str
    key: str
    name: str
    value_type: FeatureValueType
    default_value: Any
    is_active: bool


@dataclass(frozen=True)
class PlanFeatureResult:
    """Baseline value and limit of a feature included in a plan."""

    feature: FeatureResult
    value: Any
    limit: int | None
