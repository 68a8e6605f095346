"""Tenant entitlement ORM model. Plan assignments and feature overrides per organization."""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from authz_engine.infrastructure.persistence.database import Base
from authz_engine.infrastructure.persistence.models.mixins import CuidMixin, TimestampMixin

_ACTIVE_PLAN = text("is_active AND plan_id IS NOT NULL")
_ACTIVE_FEATURE = text("is_active AND feature_id IS NOT NULL")


class TenantEntitlement(CuidMixin, TimestampMixin, Base):
    """Entitlement row. Table: tenant_entitlement. Never hard-deleted.

    Exactly one of plan_id / feature_id is set. Partial unique indexes allow
    at most one active plan row per org and one active row per (org, feature).
    """

    __tablename__ = "tenant_entitlement"

    org_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    plan_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("plan.id"), nullable=True
    )
    feature_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("feature.id"), nullable=True
    )
    value: Mapped[Any] = mapped_column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    granted_by: Mapped[str | None] = mapped_column(String, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint(
            "(plan_id IS NULL) <> (feature_id IS NULL)",
            name="ck_tenant_entitlement_plan_xor_feature",
        ),
        Index(
            "uq_tenant_entitlement_active_plan",
            "org_id",
            unique=True,
            postgresql_where=_ACTIVE_PLAN,
            sqlite_where=_ACTIVE_PLAN,
        ),
        Index(
            "uq_tenant_entitlement_active_feature",
            "org_id",
            "feature_id",
            unique=True,
            postgresql_where=_ACTIVE_FEATURE,
            sqlite_where=_ACTIVE_FEATURE,
        ),
        Index("ix_tenant_entitlement_org_active", "org_id", "is_active"),
    )
