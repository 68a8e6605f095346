"""ORM models. Importing this package registers every table on Base.metadata."""

from authz_engine.infrastructure.persistence.models.audit_log import AuthzAuditLog
from authz_engine.infrastructure.persistence.models.catalog import Feature, Plan, PlanFeature
from authz_engine.infrastructure.persistence.models.role import AdminRole
from authz_engine.infrastructure.persistence.models.tenant_entitlement import TenantEntitlement

__all__ = [
    "AdminRole",
    "AuthzAuditLog",
    "Feature",
    "Plan",
    "PlanFeature",
    "TenantEntitlement",
]
