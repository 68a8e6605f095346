"""Service interfaces (ports) for the application layer.

Collaborators the engine consumes but does not own: the transactional
store boundary, actor assignments, organizations and the cache generation
counter.
"""

from __future__ import annotations

from collections.abc import Callable
from types import TracebackType
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from authz_engine.application.interfaces.repositories import (
        IAuditSink,
        IFeatureCatalog,
        IPlanCatalog,
        IRoleStore,
        ITenantEntitlementStore,
    )
    from authz_engine.domain.enums import PlanTier


# Unit of work (store transaction boundary)
class IUnitOfWork(Protocol):
    """One store transaction. Commits on clean exit, rolls back on exception.

    Implementations must run at snapshot/serializable isolation and raise
    ConflictException when the store rejects a concurrent write.
    """

    roles: IRoleStore
    entitlements: ITenantEntitlementStore
    plans: IPlanCatalog
    features: IFeatureCatalog
    audit: IAuditSink

    async def __aenter__(self) -> IUnitOfWork:
        """Open the transaction."""

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool | None:
        """Commit or roll back."""


UnitOfWorkFactory = Callable[[], IUnitOfWork]


# Actor assignment lookup (owned by the surrounding application)
class IAssignmentChecker(Protocol):
    """Answers whether any actor is still assigned a role."""

    async def has_active_assignments(self, role_id: str) -> bool:
        """Return True if at least one actor holds role_id."""


# Organization lookup (owned by the surrounding application)
class IOrganizationDirectory(Protocol):
    """Reads the organization's base plan tier."""

    async def get_plan_tier(self, org_id: str) -> PlanTier | None:
        """Return the org's denormalized planTier, or None if the org does not exist."""


# Role graph generation counter (permission cache invalidation)
class IGraphVersion(Protocol):
    """Monotonic generation of the role graph; bumped on every role mutation."""

    async def current(self) -> int | None:
        """Return current generation, or None when unavailable (disables caching)."""

    async def bump(self) -> None:
        """Advance the generation so every cached resolution becomes stale."""
