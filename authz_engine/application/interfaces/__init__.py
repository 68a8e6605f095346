"""Application interfaces (ports): repository and service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from authz_engine.infrastructure.
"""

from authz_engine.application.interfaces.repositories import (
    IAuditSink,
    IFeatureCatalog,
    IPlanCatalog,
    IRoleStore,
    ITenantEntitlementStore,
)
from authz_engine.application.interfaces.services import (
    IAssignmentChecker,
    IGraphVersion,
    IOrganizationDirectory,
    IUnitOfWork,
    UnitOfWorkFactory,
)

__all__ = [
    "IAssignmentChecker",
    "IAuditSink",
    "IFeatureCatalog",
    "IGraphVersion",
    "IOrganizationDirectory",
    "IPlanCatalog",
    "IRoleStore",
    "ITenantEntitlementStore",
    "IUnitOfWork",
    "UnitOfWorkFactory",
]
