"""Shared enumerations for the engine.

Cross-cutting enums used by application and infrastructure (audit actions,
audited entity types). Domain-specific enums (e.g. PlanTier) live in
authz_engine.domain.enums.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class AuditEntityType(_ValuesMixin, str, Enum):
    """Kind of record an audit entry describes."""

    ROLE = "role"
    TENANT_ENTITLEMENT = "tenant_entitlement"


class RoleAuditAction(_ValuesMixin, str, Enum):
    """Audit actions for role graph mutations."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    CLONE = "clone"


class EntitlementAuditAction(_ValuesMixin, str, Enum):
    """Audit actions for tenant entitlement mutations."""

    PLAN_ASSIGNED = "PLAN_ASSIGNED"
    PLAN_REVOKED = "PLAN_REVOKED"
    FEATURE_GRANTED = "FEATURE_GRANTED"
    FEATURE_REVOKED = "FEATURE_REVOKED"
