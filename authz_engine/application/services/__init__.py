"""Application services: permission resolution, role and entitlement lifecycle, audit."""

from authz_engine.application.services.audit_trail import AuditTrail
from authz_engine.application.services.entitlement_lifecycle_service import (
    EntitlementLifecycleService,
)
from authz_engine.application.services.entitlement_resolver import EntitlementResolver
from authz_engine.application.services.permission_resolver import PermissionResolver
from authz_engine.application.services.role_lifecycle_service import RoleLifecycleService

__all__ = [
    "AuditTrail",
    "EntitlementLifecycleService",
    "EntitlementResolver",
    "PermissionResolver",
    "RoleLifecycleService",
]
