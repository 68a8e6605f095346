"""Role lifecycle service: create, update, delete and clone roles with audit.

Every mutation runs inside one unit of work: validation reads, the write and
its audit entry commit together. The permission cache is invalidated after
commit and before the call returns.
"""

from __future__ import annotations

from typing import Any

from authz_engine.application.dtos.role import RoleHierarchyNode, RolePage, RoleResult
from authz_engine.application.interfaces.services import (
    IAssignmentChecker,
    UnitOfWorkFactory,
)
from authz_engine.application.services.audit_trail import AuditTrail, role_snapshot
from authz_engine.application.services.permission_resolver import PermissionResolver
from authz_engine.domain.exceptions import (
    AlreadyExistsException,
    CircularReferenceException,
    HasDependentsException,
    InvalidOperationException,
    SystemRoleProtectedException,
)
from authz_engine.domain.value_objects import PermissionToken, RoleName
from authz_engine.schemas.role import RoleCreate, RolePatch
from authz_engine.shared.enums import RoleAuditAction
from authz_engine.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

_MUTABLE_FIELDS = (
    "display_name",
    "description",
    "permissions",
    "parent_role_id",
    "color",
    "icon",
    "is_active",
    "priority",
)


def _validate_name(name: str) -> str:
    try:
        return RoleName(name).value
    except ValueError as e:
        raise InvalidOperationException(str(e), field="name") from e


def _validate_permissions(permissions: list[str]) -> list[str]:
    """Validate each token; return them de-duplicated in input order."""
    seen: dict[str, None] = {}
    for raw in permissions:
        try:
            seen[PermissionToken(raw).value] = None
        except ValueError as e:
            raise InvalidOperationException(str(e), field="permissions") from e
    return list(seen)


def _differs(field: str, old: Any, new: Any) -> bool:
    if field == "permissions":
        return set(old or []) != set(new or [])
    return old != new


class RoleLifecycleService:
    """Safe mutation of the role graph."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        permission_resolver: PermissionResolver,
        assignment_checker: IAssignmentChecker,
    ) -> None:
        self._uow_factory = uow_factory
        self._resolver = permission_resolver
        self._assignments = assignment_checker

    async def create(
        self,
        data: RoleCreate,
        actor_id: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> RoleResult:
        """Create a role.

        Raises:
            InvalidOperationException: Malformed name or permission token.
            AlreadyExistsException: Name already taken.
            ResourceNotFoundException: parent_role_id does not exist.
        """
        name = _validate_name(data.name)
        permissions = _validate_permissions(data.permissions)
        async with self._uow_factory() as uow:
            if await uow.roles.get_by_name(name):
                raise AlreadyExistsException("Role", name)
            if data.parent_role_id is not None:
                await uow.roles.get(data.parent_role_id)
            created = await uow.roles.create_role(
                name=name,
                display_name=data.display_name,
                description=data.description,
                permissions=permissions,
                parent_role_id=data.parent_role_id,
                color=data.color,
                icon=data.icon,
                is_system=data.is_system,
                is_active=data.is_active,
                priority=data.priority,
                created_by=actor_id,
            )
            await AuditTrail(uow.audit).record_role_event(
                role_id=created.id,
                action=RoleAuditAction.CREATE,
                actor_id=actor_id,
                previous_state=None,
                new_state=role_snapshot(created),
                ip_address=ip_address,
                user_agent=user_agent,
            )
        await self._resolver.invalidate()
        logger.info("Role created: %s (%s)", created.name, created.id)
        return created

    async def update(
        self,
        role_id: str,
        patch: RolePatch,
        actor_id: str | None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> RoleResult:
        """Apply the fields present in patch.

        Only changed fields are written and audited; a patch that changes
        nothing returns the role without writing.

        Raises:
            ResourceNotFoundException: Role (or new parent) does not exist.
            InvalidOperationException: Rename attempt, self-parenting, malformed token.
            SystemRoleProtectedException: Reparenting a system role.
            CircularReferenceException: New parent is a descendant of the role.
        """
        fields = patch.present_fields()
        if "permissions" in fields:
            fields["permissions"] = _validate_permissions(fields["permissions"])

        async with self._uow_factory() as uow:
            current = await uow.roles.get(role_id)
            if "name" in fields and fields.pop("name") != current.name:
                raise InvalidOperationException(
                    "Role name is immutable after creation", field="name"
                )

            if "parent_role_id" in fields and fields["parent_role_id"] != current.parent_role_id:
                new_parent_id = fields["parent_role_id"]
                if current.is_system:
                    raise SystemRoleProtectedException(role_id, "reparent")
                if new_parent_id == role_id:
                    raise InvalidOperationException(
                        "Role cannot be its own parent", field="parent_role_id"
                    )
                if new_parent_id is not None:
                    await uow.roles.get(new_parent_id)
                    if await uow.roles.would_create_cycle(role_id, new_parent_id):
                        logger.info(
                            "Rejected reparent of %s under %s: cycle", role_id, new_parent_id
                        )
                        raise CircularReferenceException(role_id, new_parent_id)

            changes = {
                field: {"old": getattr(current, field), "new": value}
                for field, value in fields.items()
                if field in _MUTABLE_FIELDS and _differs(field, getattr(current, field), value)
            }
            if not changes:
                return current

            updated = await uow.roles.update_role(
                role_id, {field: change["new"] for field, change in changes.items()}
            )
            await AuditTrail(uow.audit).record_role_event(
                role_id=role_id,
                action=RoleAuditAction.UPDATE,
                actor_id=actor_id,
                previous_state={field: change["old"] for field, change in changes.items()},
                new_state={field: change["new"] for field, change in changes.items()},
                changes=changes,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        await self._resolver.invalidate()
        logger.info("Role updated: %s fields=%s", role_id, sorted(changes))
        return updated

    async def delete(
        self,
        role_id: str,
        actor_id: str | None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> RoleResult:
        """Delete a role that has no children and no assigned actors.

        Children are never reparented implicitly; callers move them first.

        Raises:
            ResourceNotFoundException: Role does not exist.
            SystemRoleProtectedException: Role is a system role.
            HasDependentsException: Role has children or active assignments.
        """
        async with self._uow_factory() as uow:
            role = await uow.roles.get(role_id)
            if role.is_system:
                raise SystemRoleProtectedException(role_id, "delete")
            children = await uow.roles.list_children(role_id)
            if children:
                raise HasDependentsException(role_id, child_role_ids=[c.id for c in children])
            if await self._assignments.has_active_assignments(role_id):
                raise HasDependentsException(role_id, has_assignments=True)
            await uow.roles.delete_role(role_id)
            await AuditTrail(uow.audit).record_role_event(
                role_id=role_id,
                action=RoleAuditAction.DELETE,
                actor_id=actor_id,
                previous_state=role_snapshot(role),
                new_state=None,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        await self._resolver.invalidate()
        logger.info("Role deleted: %s (%s)", role.name, role_id)
        return role

    async def clone(
        self,
        source_id: str,
        new_name: str,
        new_display_name: str,
        actor_id: str | None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> RoleResult:
        """Create a non-system copy of a role's own grants under a new name.

        The copy keeps the source's parent, so its effective permissions match
        the source's; inherited grants are not flattened into it.

        Raises:
            InvalidOperationException: new_name is not a valid role name.
            ResourceNotFoundException: Source role does not exist.
            AlreadyExistsException: new_name is taken.
        """
        name = _validate_name(new_name)
        async with self._uow_factory() as uow:
            source = await uow.roles.get(source_id)
            if await uow.roles.get_by_name(name):
                raise AlreadyExistsException("Role", name)
            created = await uow.roles.create_role(
                name=name,
                display_name=new_display_name,
                description=f"Cloned from {source.display_name}",
                permissions=list(source.permissions),
                parent_role_id=source.parent_role_id,
                color=source.color,
                icon=source.icon,
                is_system=False,
                is_active=True,
                priority=source.priority,
                created_by=actor_id,
            )
            await AuditTrail(uow.audit).record_role_event(
                role_id=created.id,
                action=RoleAuditAction.CLONE,
                actor_id=actor_id,
                previous_state=None,
                new_state=role_snapshot(created),
                metadata={"source_role_id": source.id},
                ip_address=ip_address,
                user_agent=user_agent,
            )
        await self._resolver.invalidate()
        logger.info("Role cloned: %s -> %s (%s)", source.name, created.name, created.id)
        return created

    async def get_role(self, role_id: str) -> RoleResult:
        async with self._uow_factory() as uow:
            return await uow.roles.get(role_id)

    async def get_role_by_name(self, name: str) -> RoleResult | None:
        async with self._uow_factory() as uow:
            return await uow.roles.get_by_name(name)

    async def list_roles(
        self,
        *,
        is_active: bool | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> RolePage:
        """Return one page of roles ordered by priority (desc) then display name."""
        if page < 1:
            raise InvalidOperationException("page must be at least 1", field="page")
        if limit < 1:
            raise InvalidOperationException("limit must be at least 1", field="limit")
        async with self._uow_factory() as uow:
            items = await uow.roles.list_roles(
                is_active=is_active, search=search, skip=(page - 1) * limit, limit=limit
            )
            total = await uow.roles.count_roles(is_active=is_active, search=search)
        return RolePage(items=items, total=total, page=page, limit=limit)

    async def get_role_hierarchy(self) -> list[RoleHierarchyNode]:
        """Return active roles as a forest.

        Roles whose parent is missing or inactive are treated as roots.
        """
        async with self._uow_factory() as uow:
            roles = await uow.roles.list_roles(is_active=True, skip=0, limit=None)
        nodes = {role.id: RoleHierarchyNode(role=role) for role in roles}
        roots: list[RoleHierarchyNode] = []
        for role in roles:
            node = nodes[role.id]
            parent = nodes.get(role.parent_role_id) if role.parent_role_id else None
            if parent is not None:
                parent.children.append(node)
            else:
                roots.append(node)
        return roots
