"""Role repository: CRUD plus ancestor walks over the role graph. Implements IRoleStore."""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from authz_engine.application.dtos.role import RoleResult
from authz_engine.domain.exceptions import CycleDetectedException, ResourceNotFoundException
from authz_engine.infrastructure.persistence.models.role import AdminRole
from authz_engine.infrastructure.persistence.repositories.base import BaseRepository
from authz_engine.shared.telemetry.logging import get_logger
from authz_engine.shared.utils import ensure_utc

logger = get_logger(__name__)

_UPDATABLE = frozenset(
    {
        "display_name",
        "description",
        "permissions",
        "parent_role_id",
        "color",
        "icon",
        "is_active",
        "priority",
    }
)


def _role_to_result(row: AdminRole) -> RoleResult:
    """Map ORM to application DTO."""
    return RoleResult(
        id=row.id,
        name=row.name,
        display_name=row.display_name,
        description=row.description,
        permissions=list(row.permissions or []),
        parent_role_id=row.parent_role_id,
        color=row.color,
        icon=row.icon,
        is_active=row.is_active,
        is_system=row.is_system,
        priority=row.priority,
        created_by=row.created_by,
        created_at=ensure_utc(row.created_at),
        updated_at=ensure_utc(row.updated_at),
    )


class RoleRepository(BaseRepository[AdminRole]):
    """Role store. Ancestor walks are bounded by max_depth."""

    def __init__(self, db: AsyncSession, max_depth: int = 64) -> None:
        super().__init__(db, AdminRole)
        self.max_depth = max_depth

    async def _require(self, role_id: str) -> AdminRole:
        row = await self.get_by_id(role_id)
        if row is None:
            raise ResourceNotFoundException("role", role_id)
        return row

    async def get(self, role_id: str) -> RoleResult:
        return _role_to_result(await self._require(role_id))

    async def find(self, role_id: str) -> RoleResult | None:
        row = await self.get_by_id(role_id)
        return _role_to_result(row) if row else None

    async def get_by_name(self, name: str) -> RoleResult | None:
        result = await self.db.execute(select(AdminRole).where(AdminRole.name == name))
        row = result.scalar_one_or_none()
        return _role_to_result(row) if row else None

    def _filters(self, is_active: bool | None, search: str | None) -> list[Any]:
        conditions: list[Any] = []
        if is_active is not None:
            conditions.append(AdminRole.is_active == is_active)
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    AdminRole.name.ilike(pattern),
                    AdminRole.display_name.ilike(pattern),
                    AdminRole.description.ilike(pattern),
                )
            )
        return conditions

    async def list_roles(
        self,
        *,
        is_active: bool | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int | None = 50,
    ) -> list[RoleResult]:
        """List roles ordered by priority desc, display_name asc."""
        stmt = (
            select(AdminRole)
            .where(*self._filters(is_active, search))
            .order_by(AdminRole.priority.desc(), AdminRole.display_name.asc())
            .offset(skip)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return [_role_to_result(r) for r in result.scalars().all()]

    async def count_roles(
        self, *, is_active: bool | None = None, search: str | None = None
    ) -> int:
        stmt = select(func.count()).select_from(AdminRole).where(*self._filters(is_active, search))
        result = await self.db.execute(stmt)
        return int(result.scalar_one())

    async def get_ancestor_chain(self, role_id: str) -> list[RoleResult]:
        """Return [role, parent, ..., root].

        Raises:
            ResourceNotFoundException: role_id does not exist.
            CycleDetectedException: A role repeats or the chain exceeds max_depth.
        """
        chain: list[RoleResult] = []
        visited: set[str] = set()
        current_id: str | None = role_id
        while current_id is not None:
            if current_id in visited or len(chain) >= self.max_depth:
                logger.error(
                    "Corrupt role graph: ancestor walk of %s aborted at %s (depth %d)",
                    role_id,
                    current_id,
                    len(chain),
                )
                raise CycleDetectedException(role_id, [r.id for r in chain])
            visited.add(current_id)
            row = await self.get_by_id(current_id)
            if row is None:
                if not chain:
                    raise ResourceNotFoundException("role", role_id)
                # Dangling parent pointer: treat the last resolved role as root.
                logger.warning("Role %s references missing parent %s", chain[-1].id, current_id)
                break
            chain.append(_role_to_result(row))
            current_id = row.parent_role_id
        return chain

    async def would_create_cycle(self, role_id: str, candidate_parent_id: str) -> bool:
        """True if role_id is candidate_parent_id or one of its ancestors."""
        if role_id == candidate_parent_id:
            return True
        chain = await self.get_ancestor_chain(candidate_parent_id)
        return any(r.id == role_id for r in chain)

    async def list_children(self, role_id: str) -> list[RoleResult]:
        result = await self.db.execute(
            select(AdminRole).where(AdminRole.parent_role_id == role_id).order_by(AdminRole.name)
        )
        return [_role_to_result(r) for r in result.scalars().all()]

    async def create_role(self, **fields: Any) -> RoleResult:
        """Insert a role; return created read-model."""
        row = await self.add(AdminRole(**fields))
        return _role_to_result(row)

    async def update_role(self, role_id: str, changes: dict[str, Any]) -> RoleResult:
        """Apply changes (updatable fields only); return updated read-model."""
        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValueError(f"Cannot update role fields: {sorted(unknown)}")
        row = await self._require(role_id)
        for field, value in changes.items():
            setattr(row, field, value)
        return _role_to_result(await self.save(row))

    async def delete_role(self, role_id: str) -> None:
        await self.delete(await self._require(role_id))
