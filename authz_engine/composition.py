"""Composition root: build the engine's services from infrastructure implementations.

Request handlers (outside this package) hold one AuthzEngine per process
and call its services; they depend on these services only, never on the
persistence or cache modules directly.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authz_engine.application.dtos.audit_log import AuditLogResult
from authz_engine.application.interfaces.services import (
    IAssignmentChecker,
    IGraphVersion,
    IOrganizationDirectory,
    UnitOfWorkFactory,
)
from authz_engine.application.services import (
    AuditTrail,
    EntitlementLifecycleService,
    EntitlementResolver,
    PermissionResolver,
    RoleLifecycleService,
)
from authz_engine.core.config import Settings, get_settings
from authz_engine.infrastructure.cache import LocalGraphVersion, RedisGraphVersion
from authz_engine.infrastructure.persistence.database import get_session_factory
from authz_engine.infrastructure.persistence.unit_of_work import make_uow_factory
from authz_engine.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def build_graph_version(settings: Settings) -> IGraphVersion:
    """LocalGraphVersion or RedisGraphVersion per settings.graph_version_backend."""
    if settings.graph_version_backend == "redis":
        logger.info("Permission cache invalidation shared through Redis")
        return RedisGraphVersion.from_url(settings.redis_url, key=settings.redis_graph_version_key)
    return LocalGraphVersion()


class AuthzEngine:
    """Roles, permissions, entitlements and audit behind one object.

    Attributes:
        permissions: PermissionResolver (check / resolve).
        roles: RoleLifecycleService.
        entitlements: EntitlementResolver.
        entitlement_admin: EntitlementLifecycleService.
    """

    def __init__(
        self,
        *,
        uow_factory: UnitOfWorkFactory,
        assignment_checker: IAssignmentChecker,
        organization_directory: IOrganizationDirectory,
        graph_version: IGraphVersion | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._uow_factory = uow_factory
        self.graph_version = graph_version or build_graph_version(self.settings)
        self.permissions = PermissionResolver(uow_factory, self.graph_version)
        self.roles = RoleLifecycleService(uow_factory, self.permissions, assignment_checker)
        self.entitlements = EntitlementResolver(uow_factory, organization_directory)
        self.entitlement_admin = EntitlementLifecycleService(uow_factory)

    @classmethod
    def from_settings(
        cls,
        *,
        assignment_checker: IAssignmentChecker,
        organization_directory: IOrganizationDirectory,
        settings: Settings | None = None,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> AuthzEngine:
        """Build an engine on the process-wide SQLAlchemy engine (or session_factory)."""
        settings = settings or get_settings()
        factory = session_factory or get_session_factory()
        return cls(
            uow_factory=make_uow_factory(factory, role_max_depth=settings.role_max_depth),
            assignment_checker=assignment_checker,
            organization_directory=organization_directory,
            settings=settings,
        )

    async def list_audit_logs(
        self,
        *,
        role_id: str | None = None,
        org_id: str | None = None,
        action: str | None = None,
        actor_id: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[AuditLogResult]:
        """Audit entries newest first; limit defaults to settings.audit_default_page_size."""
        async with self._uow_factory() as uow:
            trail = AuditTrail(uow.audit, max_page_size=self.settings.audit_max_page_size)
            return await trail.list_audit_logs(
                role_id=role_id,
                org_id=org_id,
                action=action,
                actor_id=actor_id,
                limit=limit if limit is not None else self.settings.audit_default_page_size,
                offset=offset,
            )
