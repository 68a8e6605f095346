"""Input schemas (pydantic) accepted by the lifecycle services."""

from authz_engine.schemas.role import RoleCreate, RolePatch

__all__ = ["RoleCreate", "RolePatch"]
