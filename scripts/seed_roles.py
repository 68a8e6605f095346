"""Seed the default system roles (super-admin, platform-admin, support-agent, analyst).

Usage:
    python -m scripts.seed_roles [actor_id]
Idempotent: roles that already exist (by name) are left untouched.
Run `alembic upgrade head` first.
"""

import asyncio
import sys

from authz_engine.application.services import PermissionResolver, RoleLifecycleService
from authz_engine.core.config import get_settings
from authz_engine.core.default_roles import DEFAULT_SYSTEM_ROLES
from authz_engine.composition import build_graph_version
from authz_engine.infrastructure.persistence.database import dispose_engine, get_session_factory
from authz_engine.infrastructure.persistence.unit_of_work import make_uow_factory
from authz_engine.schemas.role import RoleCreate
from authz_engine.shared.telemetry.logging import setup_logging


class _NoAssignments:
    """Seeding never deletes roles; assignments are irrelevant."""

    async def has_active_assignments(self, role_id: str) -> bool:
        return False


async def seed_system_roles(roles: RoleLifecycleService, actor_id: str | None) -> list[str]:
    """Create missing system roles; return names of roles created."""
    created: list[str] = []
    for definition in DEFAULT_SYSTEM_ROLES:
        if await roles.get_role_by_name(definition["name"]):
            continue
        await roles.create(RoleCreate(**definition, is_system=True), actor_id=actor_id)
        created.append(definition["name"])
    return created


async def main() -> None:
    """Seed system roles into the configured database."""
    setup_logging()
    settings = get_settings()
    actor_id = sys.argv[1] if len(sys.argv) > 1 else None
    uow_factory = make_uow_factory(get_session_factory(), role_max_depth=settings.role_max_depth)
    resolver = PermissionResolver(uow_factory, build_graph_version(settings))
    roles = RoleLifecycleService(uow_factory, resolver, _NoAssignments())
    try:
        created = await seed_system_roles(roles, actor_id)
    finally:
        await dispose_engine()
    if created:
        print(f"Seeded system roles: {', '.join(created)}")
    else:
        print("System roles already present")


if __name__ == "__main__":
    asyncio.run(main())
