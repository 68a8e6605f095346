"""PermissionResolver unit tests with a fake unit of work and local graph version."""

from unittest.mock import AsyncMock

import pytest

from authz_engine.application.dtos.role import RoleResult
from authz_engine.application.services.permission_resolver import (
    PermissionResolver,
    merge_chain,
)
from authz_engine.domain.exceptions import CycleDetectedException, ResourceNotFoundException
from authz_engine.infrastructure.cache import LocalGraphVersion


def _role(
    role_id: str,
    permissions: list[str],
    parent_role_id: str | None = None,
    is_active: bool = True,
) -> RoleResult:
    return RoleResult(
        id=role_id,
        name=role_id,
        display_name=role_id.title(),
        description=None,
        permissions=permissions,
        parent_role_id=parent_role_id,
        color=None,
        icon=None,
        is_active=is_active,
        is_system=False,
        priority=0,
    )


EDITOR = _role("editor", ["reports:read", "reports:write"])
SENIOR = _role("senior-editor", ["reports:publish"], parent_role_id="editor")


@pytest.fixture
def resolver(uow_factory) -> PermissionResolver:
    return PermissionResolver(uow_factory, LocalGraphVersion())


def test_merge_chain_unions_ancestors() -> None:
    merged = merge_chain([SENIOR, EDITOR])
    assert merged.to_list() == ["reports:publish", "reports:read", "reports:write"]


def test_merge_chain_inactive_rules() -> None:
    """Inactive role resolves to nothing; inactive ancestors contribute nothing."""
    inactive_parent = _role("editor", ["reports:read"], is_active=False)
    assert merge_chain([SENIOR, inactive_parent]).to_list() == ["reports:publish"]
    inactive_self = _role("senior-editor", ["reports:publish"], "editor", is_active=False)
    assert len(merge_chain([inactive_self, EDITOR])) == 0
    assert len(merge_chain([inactive_self, inactive_parent], include_inactive=True)) == 2


async def test_resolve_includes_inherited_permissions(resolver, fake_uow) -> None:
    fake_uow.roles.get_ancestor_chain = AsyncMock(return_value=[SENIOR, EDITOR])
    resolved = await resolver.resolve("senior-editor")
    assert set(resolved) == {"reports:read", "reports:write", "reports:publish"}
    fake_uow.roles.get_ancestor_chain.assert_awaited_once_with("senior-editor")


async def test_resolve_is_cached_until_invalidated(resolver, fake_uow) -> None:
    fake_uow.roles.get_ancestor_chain = AsyncMock(return_value=[EDITOR])
    await resolver.resolve("editor")
    await resolver.resolve("editor")
    assert fake_uow.roles.get_ancestor_chain.await_count == 1

    await resolver.invalidate()
    await resolver.resolve("editor")
    assert fake_uow.roles.get_ancestor_chain.await_count == 2


async def test_generation_bump_elsewhere_makes_cache_stale(uow_factory, fake_uow) -> None:
    """Two resolvers sharing one generation counter observe each other's invalidations."""
    version = LocalGraphVersion()
    reader = PermissionResolver(uow_factory, version)
    writer = PermissionResolver(uow_factory, version)
    fake_uow.roles.get_ancestor_chain = AsyncMock(return_value=[EDITOR])
    await reader.resolve("editor")
    await writer.invalidate()
    await reader.resolve("editor")
    assert fake_uow.roles.get_ancestor_chain.await_count == 2


async def test_unavailable_generation_disables_cache(uow_factory, fake_uow) -> None:
    version = AsyncMock()
    version.current = AsyncMock(return_value=None)
    resolver = PermissionResolver(uow_factory, version)
    fake_uow.roles.get_ancestor_chain = AsyncMock(return_value=[EDITOR])
    await resolver.resolve("editor")
    await resolver.resolve("editor")
    assert fake_uow.roles.get_ancestor_chain.await_count == 2


async def test_check_matches_wildcards(resolver, fake_uow) -> None:
    admin = _role("admin", ["services:clients:*"])
    fake_uow.roles.get_ancestor_chain = AsyncMock(return_value=[admin])
    assert await resolver.check("admin", "services:clients:read") is True
    assert await resolver.check("admin", "services:clientsRead") is False


async def test_check_unknown_role_is_denied(resolver, fake_uow) -> None:
    fake_uow.roles.get_ancestor_chain = AsyncMock(
        side_effect=ResourceNotFoundException("role", "ghost")
    )
    assert await resolver.check("ghost", "reports:read") is False


async def test_check_propagates_corrupt_graph(resolver, fake_uow) -> None:
    fake_uow.roles.get_ancestor_chain = AsyncMock(
        side_effect=CycleDetectedException("a", ["a", "b"])
    )
    with pytest.raises(CycleDetectedException):
        await resolver.check("a", "reports:read")


async def test_get_effective_permissions_ignores_activity(resolver, fake_uow) -> None:
    inactive = _role("editor", ["reports:read"], is_active=False)
    fake_uow.roles.get_ancestor_chain = AsyncMock(return_value=[inactive])
    assert await resolver.check("editor", "reports:read") is False
    assert await resolver.get_effective_permissions("editor") == ["reports:read"]
