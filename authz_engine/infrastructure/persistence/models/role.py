"""Admin role ORM model. Nodes of the role graph (single parent, own permissions)."""

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from authz_engine.infrastructure.persistence.database import Base
from authz_engine.infrastructure.persistence.models.mixins import CuidMixin, TimestampMixin


class AdminRole(CuidMixin, TimestampMixin, Base):
    """Administrative role. Table: admin_role. Unique name.

    parent_role_id has no ON DELETE action: a role with children cannot be
    deleted until they are moved.
    """

    __tablename__ = "admin_role"

    name: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    permissions: Mapped[list[str]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list
    )
    parent_role_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("admin_role.id"), nullable=True, index=True
    )
    color: Mapped[str | None] = mapped_column(String, nullable=True)
    icon: Mapped[str | None] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_system: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)
