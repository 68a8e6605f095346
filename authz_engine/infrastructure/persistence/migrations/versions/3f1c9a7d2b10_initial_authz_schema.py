"""Initial schema: admin roles, plan/feature catalog, tenant entitlements, audit log

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-17 09:12:40.118204

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3f1c9a7d2b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")
_ACTIVE_PLAN = sa.text("is_active AND plan_id IS NOT NULL")
_ACTIVE_FEATURE = sa.text("is_active AND feature_id IS NOT NULL")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create initial schema."""
    # Create admin_role table
    op.create_table(
        "admin_role",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("display_name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("permissions", _JSON, nullable=False),
        sa.Column("parent_role_id", sa.String(), nullable=True),
        sa.Column("color", sa.String(), nullable=True),
        sa.Column("icon", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_system", sa.Boolean(), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["parent_role_id"], ["admin_role.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index(
        op.f("ix_admin_role_parent_role_id"), "admin_role", ["parent_role_id"], unique=False
    )

    # Create plan / feature catalog tables
    op.create_table(
        "plan",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=False),
        sa.Column("tier", sa.String(length=32), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("limits", _JSON, nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index(op.f("ix_plan_tier"), "plan", ["tier"], unique=False)

    op.create_table(
        "feature",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("value_type", sa.String(length=16), nullable=False),
        sa.Column("default_value", _JSON, nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("key"),
    )

    op.create_table(
        "plan_feature",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("plan_id", sa.String(), nullable=False),
        sa.Column("feature_id", sa.String(), nullable=False),
        sa.Column("value", _JSON, nullable=True),
        sa.Column("limit", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["plan_id"], ["plan.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["feature_id"], ["feature.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("plan_id", "feature_id", name="uq_plan_feature"),
    )
    op.create_index(op.f("ix_plan_feature_plan_id"), "plan_feature", ["plan_id"], unique=False)

    # Create tenant_entitlement table
    op.create_table(
        "tenant_entitlement",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("org_id", sa.String(), nullable=False),
        sa.Column("plan_id", sa.String(), nullable=True),
        sa.Column("feature_id", sa.String(), nullable=True),
        sa.Column("value", _JSON, nullable=True),
        sa.Column("limit", sa.Integer(), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("granted_by", sa.String(), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "(plan_id IS NULL) <> (feature_id IS NULL)",
            name="ck_tenant_entitlement_plan_xor_feature",
        ),
        sa.ForeignKeyConstraint(["plan_id"], ["plan.id"]),
        sa.ForeignKeyConstraint(["feature_id"], ["feature.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_tenant_entitlement_org_id"), "tenant_entitlement", ["org_id"], unique=False
    )
    op.create_index(
        "ix_tenant_entitlement_org_active",
        "tenant_entitlement",
        ["org_id", "is_active"],
        unique=False,
    )
    op.create_index(
        "uq_tenant_entitlement_active_plan",
        "tenant_entitlement",
        ["org_id"],
        unique=True,
        postgresql_where=_ACTIVE_PLAN,
        sqlite_where=_ACTIVE_PLAN,
    )
    op.create_index(
        "uq_tenant_entitlement_active_feature",
        "tenant_entitlement",
        ["org_id", "feature_id"],
        unique=True,
        postgresql_where=_ACTIVE_FEATURE,
        sqlite_where=_ACTIVE_FEATURE,
    )

    # Create authz_audit_log table (append-only)
    op.create_table(
        "authz_audit_log",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("entity_type", sa.String(length=32), nullable=False),
        sa.Column("entity_id", sa.String(), nullable=False),
        sa.Column("action", sa.String(length=32), nullable=False),
        sa.Column("actor_id", sa.String(), nullable=True),
        sa.Column("role_id", sa.String(), nullable=True),
        sa.Column("org_id", sa.String(), nullable=True),
        sa.Column("previous_state", _JSON, nullable=True),
        sa.Column("new_state", _JSON, nullable=True),
        sa.Column("changes", _JSON, nullable=True),
        sa.Column("metadata", _JSON, nullable=True),
        sa.Column("ip_address", sa.String(), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("action", "actor_id", "role_id", "org_id", "timestamp"):
        op.create_index(
            op.f(f"ix_authz_audit_log_{column}"), "authz_audit_log", [column], unique=False
        )


def downgrade() -> None:
    """Drop initial schema."""
    op.drop_table("authz_audit_log")
    op.drop_index("uq_tenant_entitlement_active_feature", table_name="tenant_entitlement")
    op.drop_index("uq_tenant_entitlement_active_plan", table_name="tenant_entitlement")
    op.drop_index("ix_tenant_entitlement_org_active", table_name="tenant_entitlement")
    op.drop_index(op.f("ix_tenant_entitlement_org_id"), table_name="tenant_entitlement")
    op.drop_table("tenant_entitlement")
    op.drop_index(op.f("ix_plan_feature_plan_id"), table_name="plan_feature")
    op.drop_table("plan_feature")
    op.drop_table("feature")
    op.drop_index(op.f("ix_plan_tier"), table_name="plan")
    op.drop_table("plan")
    op.drop_index(op.f("ix_admin_role_parent_role_id"), table_name="admin_role")
    op.drop_table("admin_role")
