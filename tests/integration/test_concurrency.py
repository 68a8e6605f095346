"""Concurrent writers on one SQLite file: single-active rows and an acyclic role graph."""

import asyncio

import pytest

from authz_engine.domain.exceptions import CircularReferenceException, ConflictException
from authz_engine.schemas.role import RoleCreate, RolePatch

pytestmark = pytest.mark.requires_db


def _split(outcomes: list) -> tuple[list, list[BaseException]]:
    done = [o for o in outcomes if not isinstance(o, BaseException)]
    failed = [o for o in outcomes if isinstance(o, BaseException)]
    return done, failed


async def test_concurrent_plan_assignments_leave_one_active_plan(
    authz, catalog, sql_uow_factory
) -> None:
    outcomes = await asyncio.gather(
        authz.entitlement_admin.assign_plan("org-a", catalog.starter.id, "admin-1"),
        authz.entitlement_admin.assign_plan("org-a", catalog.pro.id, "admin-2"),
        return_exceptions=True,
    )
    done, failed = _split(outcomes)
    assert done
    assert all(isinstance(exc, ConflictException) for exc in failed)

    async with sql_uow_factory() as uow:
        active = await uow.entitlements.list_active_plan_rows("org-a")
    assert len(active) == 1
    assert active[0].id in {result.entitlement.id for result in done}


async def test_concurrent_feature_grants_leave_one_active_row(
    authz, catalog, sql_uow_factory
) -> None:
    outcomes = await asyncio.gather(
        authz.entitlement_admin.grant_feature("org-a", catalog.seats.id, 1, "admin-1", limit=10),
        authz.entitlement_admin.grant_feature("org-a", catalog.seats.id, 1, "admin-2", limit=20),
        return_exceptions=True,
    )
    done, failed = _split(outcomes)
    assert done
    assert all(isinstance(exc, ConflictException) for exc in failed)

    async with sql_uow_factory() as uow:
        active = await uow.entitlements.list_active_for_org("org-a")
    assert len(active) == 1
    assert active[0].limit in {result.limit for result in done}


async def test_crossed_reparents_never_form_a_cycle(authz, sql_uow_factory) -> None:
    role_a = await authz.roles.create(
        RoleCreate(name="role-a", display_name="A", permissions=["a:read"]), actor_id=None
    )
    role_b = await authz.roles.create(
        RoleCreate(name="role-b", display_name="B", permissions=["b:read"]), actor_id=None
    )

    outcomes = await asyncio.gather(
        authz.roles.update(role_a.id, RolePatch(parent_role_id=role_b.id), actor_id=None),
        authz.roles.update(role_b.id, RolePatch(parent_role_id=role_a.id), actor_id=None),
        return_exceptions=True,
    )
    done, failed = _split(outcomes)
    assert len(failed) >= 1
    assert all(
        isinstance(exc, (CircularReferenceException, ConflictException)) for exc in failed
    )

    async with sql_uow_factory() as uow:
        chain_a = await uow.roles.get_ancestor_chain(role_a.id)
        chain_b = await uow.roles.get_ancestor_chain(role_b.id)
    assert len(chain_a) + len(chain_b) <= 3
    assert await authz.permissions.check(role_a.id, "a:read") is True
    assert await authz.permissions.check(role_b.id, "b:read") is True
