"""Domain exceptions for the authorization engine.

Every failure an engine operation can produce is one of these classes, each
with a stable machine-readable error_code. Callers (request handlers) map
them to their own transport; the engine never swallows them.
"""

from typing import Any


class AuthzEngineException(Exception):
    """Base exception for all engine errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. role_id, org_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class ResourceNotFoundException(AuthzEngineException):
    """Raised when a referenced role or entitlement does not exist."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'role', 'tenant_entitlement').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class CircularReferenceException(AuthzEngineException):
    """Raised when reparenting a role would introduce a cycle."""

    def __init__(self, role_id: str, parent_role_id: str) -> None:
        super().__init__(
            "This would create a circular dependency in the role hierarchy",
            "CIRCULAR_REFERENCE",
            {"role_id": role_id, "parent_role_id": parent_role_id},
        )


class CycleDetectedException(AuthzEngineException):
    """Raised when an ancestor walk revisits a role or exceeds the depth cap.

    Only reachable through out-of-band writes; writes through the engine
    reject cycles up front.
    """

    def __init__(self, role_id: str, path: list[str]) -> None:
        """Initialize with the starting role and the ids visited so far.

        Args:
            role_id: Role whose ancestor chain was being walked.
            path: Ids visited before the walk was aborted.
        """
        super().__init__(
            f"Cycle detected in ancestor chain of role {role_id}",
            "CYCLE_DETECTED",
            {"role_id": role_id, "path": path},
        )


class InvalidOperationException(AuthzEngineException):
    """Raised for malformed names or tokens, self-parenting and immutable-field edits."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the rejected operation.
            field: Optional field that caused the rejection.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "INVALID_OPERATION", details)


class SystemRoleProtectedException(AuthzEngineException):
    """Raised when deleting or reparenting a system role."""

    def __init__(self, role_id: str, operation: str) -> None:
        super().__init__(
            f"System roles cannot be modified by {operation}",
            "SYSTEM_ROLE_PROTECTED",
            {"role_id": role_id, "operation": operation},
        )


class HasDependentsException(AuthzEngineException):
    """Raised when a role still has child roles or live actor assignments."""

    def __init__(
        self,
        role_id: str,
        child_role_ids: list[str] | None = None,
        has_assignments: bool = False,
    ) -> None:
        """Initialize with the blocking dependents.

        Args:
            role_id: Role that could not be deleted.
            child_role_ids: Roles that still name role_id as their parent.
            has_assignments: True when actors are still assigned the role.
        """
        if child_role_ids:
            message = "Cannot delete role with child roles. Reparent or delete them first."
        else:
            message = "Cannot delete role with assigned actors. Please reassign them first."
        super().__init__(
            message,
            "HAS_DEPENDENTS",
            {
                "role_id": role_id,
                "child_role_ids": child_role_ids or [],
                "has_assignments": has_assignments,
            },
        )


class AlreadyExistsException(AuthzEngineException):
    """Raised when a role name is already taken."""

    def __init__(self, resource_type: str, name: str) -> None:
        super().__init__(
            f"{resource_type} with name '{name}' already exists",
            "ALREADY_EXISTS",
            {"resource_type": resource_type, "name": name},
        )


class PlanNotFoundException(AuthzEngineException):
    """Raised when a plan id does not resolve in the plan catalog."""

    def __init__(self, plan_id: str) -> None:
        super().__init__(
            f"Plan not found: {plan_id}",
            "PLAN_NOT_FOUND",
            {"plan_id": plan_id},
        )


class FeatureNotFoundException(AuthzEngineException):
    """Raised when a feature id or key does not resolve in the feature catalog."""

    def __init__(self, feature_ref: str) -> None:
        super().__init__(
            f"Feature not found: {feature_ref}",
            "FEATURE_NOT_FOUND",
            {"feature": feature_ref},
        )


class ConflictException(AuthzEngineException):
    """Raised when the store rejects a transaction because of a concurrent write. Retryable."""

    def __init__(self, message: str = "Concurrent modification detected; retry.") -> None:
        super().__init__(message, "CONFLICT")


class SqlNotConfiguredException(AuthzEngineException):
    """Raised when the SQL store is used before a database URL is configured."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )
