"""DTOs for role use cases (no dependency on ORM)."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class RoleResult:
    """Role read-model (result of get, get_ancestor_chain, create_role, etc.)."""

    id: str
    name: str
    display_name: str
    description: str | None
    permissions: list[str]
    parent_role_id: str | None
    color: str | None
    icon: str | None
    is_active: bool
    is_system: bool
    priority: int
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class RolePage:
    """One page of roles with totals for pagination."""

    items: list[RoleResult]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0


@dataclass
class RoleHierarchyNode:
    """Role with its child roles nested (tree view of the role graph)."""

    role: RoleResult
    children: list["RoleHierarchyNode"] = field(default_factory=list)
