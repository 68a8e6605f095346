"""SQLAlchemy unit of work: one session and one transaction per engine operation.

Commits on clean exit and rolls back on any exception. Store-level
rejections of concurrent writes (unique violations, serialization failures,
lock timeouts) surface as ConflictException so callers may retry.
"""

from __future__ import annotations

from types import TracebackType

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authz_engine.domain.exceptions import ConflictException
from authz_engine.infrastructure.persistence.repositories import (
    AuditLogRepository,
    FeatureCatalogRepository,
    PlanCatalogRepository,
    RoleRepository,
    TenantEntitlementRepository,
)
from authz_engine.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

# unique_violation, serialization_failure, deadlock_detected
_CONFLICT_SQLSTATES = frozenset({"23505", "40001", "40P01"})

# SQLite reports no SQLSTATE; match its messages instead.
_SQLITE_CONFLICT_MESSAGES = ("UNIQUE constraint failed", "database is locked")


def _is_conflict(exc: BaseException) -> bool:
    """True for rejections a retry may resolve: unique races, serialization failures, lock waits.

    CHECK and foreign key violations, missing tables and lost connections are
    not conflicts.
    """
    if not isinstance(exc, DBAPIError):
        return False
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code is not None:
        return code in _CONFLICT_SQLSTATES
    if isinstance(exc, (IntegrityError, OperationalError)):
        message = str(orig)
        return any(marker in message for marker in _SQLITE_CONFLICT_MESSAGES)
    return False


class SqlAlchemyUnitOfWork:
    """IUnitOfWork over an AsyncSession."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        role_max_depth: int = 64,
    ) -> None:
        self._session_factory = session_factory
        self._role_max_depth = role_max_depth
        self.session: AsyncSession | None = None

    async def __aenter__(self) -> SqlAlchemyUnitOfWork:
        self.session = self._session_factory()
        self.roles = RoleRepository(self.session, max_depth=self._role_max_depth)
        self.entitlements = TenantEntitlementRepository(self.session)
        self.plans = PlanCatalogRepository(self.session)
        self.features = FeatureCatalogRepository(self.session)
        self.audit = AuditLogRepository(self.session)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        session = self.session
        if session is None:
            return
        try:
            if exc is None:
                try:
                    await session.commit()
                except DBAPIError as e:
                    await session.rollback()
                    if _is_conflict(e):
                        logger.warning("Transaction rejected at commit: %s", e.orig)
                        raise ConflictException() from e
                    raise
            else:
                await session.rollback()
                if isinstance(exc, DBAPIError) and _is_conflict(exc):
                    logger.warning("Transaction rejected by store: %s", exc.orig)
                    raise ConflictException() from exc
        finally:
            await session.close()
            self.session = None


def make_uow_factory(
    session_factory: async_sessionmaker[AsyncSession],
    role_max_depth: int = 64,
):
    """Return a zero-arg callable producing a fresh unit of work per operation."""

    def _factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(session_factory, role_max_depth=role_max_depth)

    return _factory
