"""Domain value objects (immutable, self-validating)."""

from authz_engine.domain.value_objects.core import PermissionToken, RoleName
from authz_engine.domain.value_objects.permission_set import PermissionSet

__all__ = ["PermissionSet", "PermissionToken", "RoleName"]
