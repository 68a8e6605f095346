"""Role input schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Fields that may be present in a patch but must not be null.
_NON_NULLABLE_PATCH_FIELDS = ("display_name", "permissions", "is_active", "priority")


class RoleCreate(BaseModel):
    """Input for creating a role. Name and token syntax are checked by the service."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=64)
    display_name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=500)
    permissions: list[str] = Field(default_factory=list, max_length=500)
    parent_role_id: str | None = None
    color: str | None = Field(default=None, max_length=32)
    icon: str | None = Field(default=None, max_length=64)
    is_system: bool = False
    is_active: bool = True
    priority: int = 0


class RolePatch(BaseModel):
    """Partial role update. Only fields explicitly set are applied.

    parent_role_id=None detaches the role from its parent; omitting it
    leaves the parent untouched. name is accepted only so the service can
    reject attempts to rename (names are immutable).
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    display_name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=500)
    permissions: list[str] | None = Field(default=None, max_length=500)
    parent_role_id: str | None = None
    color: str | None = Field(default=None, max_length=32)
    icon: str | None = Field(default=None, max_length=64)
    is_active: bool | None = None
    priority: int | None = None

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "RolePatch":
        for name in _NON_NULLABLE_PATCH_FIELDS:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def present_fields(self) -> dict[str, Any]:
        """Return only the fields the caller set (absent fields stay untouched)."""
        return self.model_dump(exclude_unset=True)
