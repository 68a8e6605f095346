"""SQLAlchemy repositories implementing the application store ports."""

from authz_engine.infrastructure.persistence.repositories.audit_log_repo import AuditLogRepository
from authz_engine.infrastructure.persistence.repositories.catalog_repo import (
    FeatureCatalogRepository,
    PlanCatalogRepository,
)
from authz_engine.infrastructure.persistence.repositories.entitlement_repo import (
    TenantEntitlementRepository,
)
from authz_engine.infrastructure.persistence.repositories.role_repo import RoleRepository

__all__ = [
    "AuditLogRepository",
    "FeatureCatalogRepository",
    "PlanCatalogRepository",
    "RoleRepository",
    "TenantEntitlementRepository",
]
