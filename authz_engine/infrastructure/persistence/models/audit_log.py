"""Authorization audit log ORM model. Append-only trail of role and entitlement mutations."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Connection, DateTime, String, Text, event
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, Mapper, mapped_column

from authz_engine.infrastructure.persistence.database import Base
from authz_engine.shared.utils import generate_cuid, utc_now

_JSON = JSON().with_variant(JSONB, "postgresql")


class AuthzAuditLog(Base):
    """Audit entry. Who changed which role or entitlement, when, and how. No update/delete."""

    __tablename__ = "authz_audit_log"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=generate_cuid)
    entity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    entity_id: Mapped[str] = mapped_column(String, nullable=False)
    action: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    actor_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    role_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    org_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    previous_state: Mapped[dict[str, Any] | None] = mapped_column(_JSON, nullable=True)
    new_state: Mapped[dict[str, Any] | None] = mapped_column(_JSON, nullable=True)
    changes: Mapped[dict[str, Any] | None] = mapped_column(_JSON, nullable=True)
    # "metadata" is reserved on declarative classes.
    entry_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", _JSON, nullable=True
    )
    ip_address: Mapped[str | None] = mapped_column(String, nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False, index=True
    )


@event.listens_for(AuthzAuditLog, "before_update")
def _prevent_audit_log_updates(
    _mapper: Mapper[Any], _connection: Connection, _target: AuthzAuditLog
) -> None:
    """Audit log entries are append-only; updates are forbidden."""
    raise ValueError("Audit log entries are immutable and cannot be updated.")


@event.listens_for(AuthzAuditLog, "before_delete")
def _prevent_audit_log_deletes(
    _mapper: Mapper[Any], _connection: Connection, _target: AuthzAuditLog
) -> None:
    """Audit log entries cannot be deleted."""
    raise ValueError("Audit log entries cannot be deleted.")
