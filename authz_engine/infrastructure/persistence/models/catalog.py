"""Plan and feature catalog ORM models. Read-only for the engine (seeded externally)."""

from typing import Any

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from authz_engine.infrastructure.persistence.database import Base
from authz_engine.infrastructure.persistence.models.mixins import CuidMixin, TimestampMixin

_JSON = JSON().with_variant(JSONB, "postgresql")


class Plan(CuidMixin, TimestampMixin, Base):
    """Commercial plan. Table: plan. limits maps limit keys to caps (-1 = unlimited)."""

    __tablename__ = "plan"

    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    tier: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    limits: Mapped[dict[str, int]] = mapped_column(_JSON, nullable=False, default=dict)


class Feature(CuidMixin, TimestampMixin, Base):
    """Feature flag or capability. Table: feature. Unique key."""

    __tablename__ = "feature"

    key: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    value_type: Mapped[str] = mapped_column(String(16), nullable=False, default="boolean")
    default_value: Mapped[Any] = mapped_column(_JSON, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class PlanFeature(CuidMixin, Base):
    """Baseline inclusion of a feature in a plan. Table: plan_feature. Unique (plan_id, feature_id)."""

    __tablename__ = "plan_feature"

    plan_id: Mapped[str] = mapped_column(
        String, ForeignKey("plan.id", ondelete="CASCADE"), nullable=False, index=True
    )
    feature_id: Mapped[str] = mapped_column(
        String, ForeignKey("feature.id", ondelete="CASCADE"), nullable=False
    )
    value: Mapped[Any] = mapped_column(_JSON, nullable=True)
    limit: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (UniqueConstraint("plan_id", "feature_id", name="uq_plan_feature"),)
