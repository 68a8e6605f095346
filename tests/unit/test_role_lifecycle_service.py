"""RoleLifecycleService unit tests with mocked role store and audit sink."""

from dataclasses import replace
from unittest.mock import AsyncMock

import pytest

from authz_engine.application.dtos.role import RoleResult
from authz_engine.application.services.permission_resolver import PermissionResolver
from authz_engine.application.services.role_lifecycle_service import RoleLifecycleService
from authz_engine.domain.exceptions import (
    AlreadyExistsException,
    CircularReferenceException,
    HasDependentsException,
    InvalidOperationException,
    ResourceNotFoundException,
    SystemRoleProtectedException,
)
from authz_engine.schemas.role import RoleCreate, RolePatch


def _role(
    role_id: str = "r1",
    name: str = "editor",
    permissions: list[str] | None = None,
    parent_role_id: str | None = None,
    is_system: bool = False,
) -> RoleResult:
    return RoleResult(
        id=role_id,
        name=name,
        display_name=name.replace("-", " ").title(),
        description=None,
        permissions=permissions if permissions is not None else ["reports:read"],
        parent_role_id=parent_role_id,
        color="#000000",
        icon="Shield",
        is_active=True,
        is_system=is_system,
        priority=10,
    )


@pytest.fixture
def resolver() -> AsyncMock:
    return AsyncMock(spec=PermissionResolver)


@pytest.fixture
def service(uow_factory, resolver, assignment_checker) -> RoleLifecycleService:
    return RoleLifecycleService(uow_factory, resolver, assignment_checker)


def _audit_entry(fake_uow):
    fake_uow.audit.append.assert_awaited_once()
    return fake_uow.audit.append.await_args.args[0]


# create


async def test_create_writes_role_and_audit(service, fake_uow, resolver) -> None:
    created = _role(permissions=["reports:read", "reports:write"])
    fake_uow.roles.get_by_name = AsyncMock(return_value=None)
    fake_uow.roles.create_role = AsyncMock(return_value=created)

    result = await service.create(
        RoleCreate(
            name="editor",
            display_name="Editor",
            permissions=["reports:read", "reports:write", "reports:read"],
        ),
        actor_id="admin-1",
        ip_address="10.0.0.1",
    )

    assert result == created
    kwargs = fake_uow.roles.create_role.await_args.kwargs
    assert kwargs["permissions"] == ["reports:read", "reports:write"]
    assert kwargs["created_by"] == "admin-1"
    entry = _audit_entry(fake_uow)
    assert entry.action == "create"
    assert entry.role_id == "r1"
    assert entry.previous_state is None
    assert entry.new_state["name"] == "editor"
    assert entry.ip_address == "10.0.0.1"
    resolver.invalidate.assert_awaited_once()
    assert fake_uow.commits == 1


@pytest.mark.parametrize("name", ["Editor", "a", "senior_editor"])
async def test_create_rejects_bad_name_before_any_read(service, fake_uow, name) -> None:
    with pytest.raises(InvalidOperationException):
        await service.create(RoleCreate(name=name, display_name="X"))
    fake_uow.roles.get_by_name.assert_not_awaited()


async def test_create_rejects_malformed_token(service, fake_uow) -> None:
    with pytest.raises(InvalidOperationException) as exc_info:
        await service.create(
            RoleCreate(name="editor", display_name="Editor", permissions=["reports"])
        )
    assert exc_info.value.details == {"field": "permissions"}
    fake_uow.roles.create_role.assert_not_awaited()


async def test_create_duplicate_name(service, fake_uow, resolver) -> None:
    fake_uow.roles.get_by_name = AsyncMock(return_value=_role())
    with pytest.raises(AlreadyExistsException):
        await service.create(RoleCreate(name="editor", display_name="Editor"))
    fake_uow.roles.create_role.assert_not_awaited()
    fake_uow.audit.append.assert_not_awaited()
    resolver.invalidate.assert_not_awaited()
    assert fake_uow.rollbacks == 1


async def test_create_missing_parent(service, fake_uow) -> None:
    fake_uow.roles.get_by_name = AsyncMock(return_value=None)
    fake_uow.roles.get = AsyncMock(side_effect=ResourceNotFoundException("role", "nope"))
    with pytest.raises(ResourceNotFoundException):
        await service.create(
            RoleCreate(name="editor", display_name="Editor", parent_role_id="nope")
        )
    fake_uow.roles.create_role.assert_not_awaited()


# update


async def test_update_records_only_changed_fields(service, fake_uow, resolver) -> None:
    current = _role()
    updated = replace(current, display_name="Report Editor", priority=10)
    fake_uow.roles.get = AsyncMock(return_value=current)
    fake_uow.roles.update_role = AsyncMock(return_value=updated)

    result = await service.update(
        "r1", RolePatch(display_name="Report Editor", priority=10), actor_id="admin-1"
    )

    assert result == updated
    fake_uow.roles.update_role.assert_awaited_once_with("r1", {"display_name": "Report Editor"})
    entry = _audit_entry(fake_uow)
    assert entry.action == "update"
    assert entry.changes == {"display_name": {"old": "Editor", "new": "Report Editor"}}
    assert entry.previous_state == {"display_name": "Editor"}
    assert entry.new_state == {"display_name": "Report Editor"}
    resolver.invalidate.assert_awaited_once()


async def test_update_without_changes_is_a_no_op(service, fake_uow, resolver) -> None:
    current = _role(permissions=["reports:read", "reports:write"])
    fake_uow.roles.get = AsyncMock(return_value=current)
    result = await service.update(
        "r1",
        RolePatch(name="editor", permissions=["reports:write", "reports:read"]),
        actor_id="admin-1",
    )
    assert result == current
    fake_uow.roles.update_role.assert_not_awaited()
    fake_uow.audit.append.assert_not_awaited()
    resolver.invalidate.assert_not_awaited()


async def test_update_rejects_rename(service, fake_uow) -> None:
    fake_uow.roles.get = AsyncMock(return_value=_role())
    with pytest.raises(InvalidOperationException) as exc_info:
        await service.update("r1", RolePatch(name="writer"), actor_id=None)
    assert exc_info.value.details == {"field": "name"}
    fake_uow.roles.update_role.assert_not_awaited()


async def test_update_rejects_self_parent(service, fake_uow) -> None:
    fake_uow.roles.get = AsyncMock(return_value=_role())
    with pytest.raises(InvalidOperationException):
        await service.update("r1", RolePatch(parent_role_id="r1"), actor_id=None)


async def test_update_rejects_cycle(service, fake_uow) -> None:
    """B under A; moving A under B closes a cycle."""
    role_a = _role("a", "role-a")
    role_b = _role("b", "role-b", parent_role_id="a")
    fake_uow.roles.get = AsyncMock(side_effect=lambda rid: {"a": role_a, "b": role_b}[rid])
    fake_uow.roles.would_create_cycle = AsyncMock(return_value=True)

    with pytest.raises(CircularReferenceException):
        await service.update("a", RolePatch(parent_role_id="b"), actor_id=None)

    fake_uow.roles.would_create_cycle.assert_awaited_once_with("a", "b")
    fake_uow.roles.update_role.assert_not_awaited()
    fake_uow.audit.append.assert_not_awaited()


async def test_update_reparent_system_role_is_protected(service, fake_uow) -> None:
    fake_uow.roles.get = AsyncMock(return_value=_role(is_system=True))
    with pytest.raises(SystemRoleProtectedException):
        await service.update("r1", RolePatch(parent_role_id="p1"), actor_id=None)


async def test_update_system_role_display_fields_allowed(service, fake_uow) -> None:
    current = _role(is_system=True)
    fake_uow.roles.get = AsyncMock(return_value=current)
    fake_uow.roles.update_role = AsyncMock(return_value=replace(current, color="#fff"))
    await service.update("r1", RolePatch(color="#fff"), actor_id=None)
    fake_uow.roles.update_role.assert_awaited_once_with("r1", {"color": "#fff"})


async def test_update_detach_from_parent(service, fake_uow) -> None:
    current = _role(parent_role_id="p1")
    fake_uow.roles.get = AsyncMock(return_value=current)
    fake_uow.roles.update_role = AsyncMock(return_value=replace(current, parent_role_id=None))
    await service.update("r1", RolePatch(parent_role_id=None), actor_id=None)
    fake_uow.roles.would_create_cycle.assert_not_awaited()
    fake_uow.roles.update_role.assert_awaited_once_with("r1", {"parent_role_id": None})


# delete


async def test_delete_system_role_always_protected(service, fake_uow) -> None:
    fake_uow.roles.get = AsyncMock(return_value=_role(is_system=True))
    with pytest.raises(SystemRoleProtectedException):
        await service.delete("r1", actor_id=None)
    fake_uow.roles.list_children.assert_not_awaited()
    fake_uow.roles.delete_role.assert_not_awaited()


async def test_delete_blocked_by_children(service, fake_uow) -> None:
    fake_uow.roles.get = AsyncMock(return_value=_role())
    fake_uow.roles.list_children = AsyncMock(
        return_value=[_role("c1", "child", parent_role_id="r1")]
    )
    with pytest.raises(HasDependentsException) as exc_info:
        await service.delete("r1", actor_id=None)
    assert exc_info.value.details["child_role_ids"] == ["c1"]


async def test_delete_blocked_by_assignments(service, fake_uow, assignment_checker) -> None:
    fake_uow.roles.get = AsyncMock(return_value=_role())
    fake_uow.roles.list_children = AsyncMock(return_value=[])
    assignment_checker.assigned.add("r1")
    with pytest.raises(HasDependentsException) as exc_info:
        await service.delete("r1", actor_id=None)
    assert exc_info.value.details["has_assignments"] is True
    fake_uow.roles.delete_role.assert_not_awaited()


async def test_delete_writes_audit_with_previous_state(service, fake_uow, resolver) -> None:
    role = _role()
    fake_uow.roles.get = AsyncMock(return_value=role)
    fake_uow.roles.list_children = AsyncMock(return_value=[])
    result = await service.delete("r1", actor_id="admin-1")
    assert result == role
    fake_uow.roles.delete_role.assert_awaited_once_with("r1")
    entry = _audit_entry(fake_uow)
    assert entry.action == "delete"
    assert entry.previous_state["name"] == "editor"
    assert entry.new_state is None
    resolver.invalidate.assert_awaited_once()


# clone


async def test_clone_copies_own_grants_and_parent(service, fake_uow) -> None:
    source = _role("s1", "editor", ["reports:read"], parent_role_id="base", is_system=True)
    fake_uow.roles.get = AsyncMock(return_value=source)
    fake_uow.roles.get_by_name = AsyncMock(return_value=None)
    fake_uow.roles.create_role = AsyncMock(return_value=_role("c1", "editor-copy"))

    await service.clone("s1", "editor-copy", "Editor Copy", actor_id="admin-1")

    kwargs = fake_uow.roles.create_role.await_args.kwargs
    assert kwargs["permissions"] == ["reports:read"]
    assert kwargs["parent_role_id"] == "base"
    assert kwargs["is_system"] is False
    assert kwargs["is_active"] is True
    assert kwargs["description"] == "Cloned from Editor"
    assert kwargs["color"] == "#000000"
    assert kwargs["priority"] == 10
    entry = _audit_entry(fake_uow)
    assert entry.action == "clone"
    assert entry.metadata == {"source_role_id": "s1"}


async def test_clone_name_taken(service, fake_uow) -> None:
    fake_uow.roles.get = AsyncMock(return_value=_role())
    fake_uow.roles.get_by_name = AsyncMock(return_value=_role("x", "editor-copy"))
    with pytest.raises(AlreadyExistsException):
        await service.clone("r1", "editor-copy", "Editor Copy", actor_id=None)
    fake_uow.roles.create_role.assert_not_awaited()


async def test_clone_missing_source(service, fake_uow) -> None:
    fake_uow.roles.get = AsyncMock(side_effect=ResourceNotFoundException("role", "nope"))
    with pytest.raises(ResourceNotFoundException):
        await service.clone("nope", "editor-copy", "Editor Copy", actor_id=None)


# queries


async def test_list_roles_paginates(service, fake_uow) -> None:
    fake_uow.roles.list_roles = AsyncMock(return_value=[_role()])
    fake_uow.roles.count_roles = AsyncMock(return_value=21)
    page = await service.list_roles(search="edit", page=3, limit=10)
    fake_uow.roles.list_roles.assert_awaited_once_with(
        is_active=None, search="edit", skip=20, limit=10
    )
    assert page.total == 21
    assert page.total_pages == 3


async def test_list_roles_rejects_bad_page(service) -> None:
    with pytest.raises(InvalidOperationException):
        await service.list_roles(page=0)


async def test_get_role_hierarchy_nests_children(service, fake_uow) -> None:
    root = _role("root", "root-role")
    child = _role("child", "child-role", parent_role_id="root")
    orphan = _role("orphan", "orphan-role", parent_role_id="inactive-parent")
    fake_uow.roles.list_roles = AsyncMock(return_value=[root, child, orphan])
    forest = await service.get_role_hierarchy()
    assert [node.role.id for node in forest] == ["root", "orphan"]
    assert [node.role.id for node in forest[0].children] == ["child"]
