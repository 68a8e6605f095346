"""Pytest configuration and fixtures for authz-engine.

Unit tests use FakeUnitOfWork (AsyncMock repositories). Integration tests
run against a temporary SQLite file created with Base.metadata.create_all,
through the same engine setup production uses.
"""

from unittest.mock import AsyncMock

import pytest

from authz_engine.composition import AuthzEngine
from authz_engine.core.config import Settings
from authz_engine.domain.enums import PlanTier
from authz_engine.infrastructure.cache import LocalGraphVersion
from authz_engine.infrastructure.persistence import models  # noqa: F401
from authz_engine.infrastructure.persistence.database import (
    Base,
    create_engine_from_settings,
    create_session_factory,
)
from authz_engine.infrastructure.persistence.unit_of_work import make_uow_factory


class FakeUnitOfWork:
    """In-memory IUnitOfWork: every repository is an AsyncMock; records commit/rollback."""

    def __init__(self) -> None:
        self.roles = AsyncMock()
        self.entitlements = AsyncMock()
        self.plans = AsyncMock()
        self.features = AsyncMock()
        self.audit = AsyncMock()
        self.commits = 0
        self.rollbacks = 0

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc is None:
            self.commits += 1
        else:
            self.rollbacks += 1


class FakeAssignmentChecker:
    """Role ids listed in assigned have live actor assignments."""

    def __init__(self) -> None:
        self.assigned: set[str] = set()

    async def has_active_assignments(self, role_id: str) -> bool:
        return role_id in self.assigned


class FakeOrganizationDirectory:
    """Organizations keyed by id with their base plan tier."""

    def __init__(self) -> None:
        self.tiers: dict[str, PlanTier] = {}

    async def get_plan_tier(self, org_id: str) -> PlanTier | None:
        return self.tiers.get(org_id)


@pytest.fixture
def fake_uow() -> FakeUnitOfWork:
    return FakeUnitOfWork()


@pytest.fixture
def uow_factory(fake_uow: FakeUnitOfWork):
    """Factory returning the same FakeUnitOfWork so tests can inspect calls."""
    return lambda: fake_uow


@pytest.fixture
def assignment_checker() -> FakeAssignmentChecker:
    return FakeAssignmentChecker()


@pytest.fixture
def organizations() -> FakeOrganizationDirectory:
    return FakeOrganizationDirectory()


@pytest.fixture
def sqlite_settings(tmp_path) -> Settings:
    """Settings pointing at a fresh SQLite file (no .env)."""
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'authz.db'}",
        role_max_depth=8,
    )


@pytest.fixture
async def db_engine(sqlite_settings: Settings):
    """Async engine with the full schema created."""
    engine = create_engine_from_settings(sqlite_settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
def sql_uow_factory(session_factory, sqlite_settings: Settings):
    return make_uow_factory(session_factory, role_max_depth=sqlite_settings.role_max_depth)


@pytest.fixture
def authz(
    sql_uow_factory,
    sqlite_settings: Settings,
    assignment_checker: FakeAssignmentChecker,
    organizations: FakeOrganizationDirectory,
) -> AuthzEngine:
    """Fully wired engine over the temporary SQLite database."""
    return AuthzEngine(
        uow_factory=sql_uow_factory,
        assignment_checker=assignment_checker,
        organization_directory=organizations,
        graph_version=LocalGraphVersion(),
        settings=sqlite_settings,
    )
