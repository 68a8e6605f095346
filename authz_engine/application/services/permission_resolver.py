"""Permission resolver: effective (inherited) permissions for a role, memoized per graph generation."""

from __future__ import annotations

from authz_engine.application.dtos.role import RoleResult
from authz_engine.application.interfaces.services import IGraphVersion, UnitOfWorkFactory
from authz_engine.domain.exceptions import ResourceNotFoundException
from authz_engine.domain.value_objects import PermissionSet, PermissionToken
from authz_engine.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def merge_chain(chain: list[RoleResult], *, include_inactive: bool = False) -> PermissionSet:
    """Union the own permissions of every role in an ancestor chain.

    An inactive role resolves to nothing; inactive ancestors contribute
    nothing. include_inactive ignores both rules (admin views).
    """
    if not chain:
        return PermissionSet.empty()
    if not include_inactive and not chain[0].is_active:
        return PermissionSet.empty()
    result = PermissionSet.empty()
    for role in chain:
        if include_inactive or role.is_active:
            result = result | PermissionSet(frozenset(role.permissions))
    return result


class PermissionResolver:
    """Resolves and checks permissions by walking the role's ancestor chain.

    Results are cached per resolver instance and tagged with the graph
    generation they were computed under; a bump of the generation (any role
    mutation) makes every cached entry stale. Reads racing a write may see
    the old graph; a resolve started after invalidate() sees the new one.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        graph_version: IGraphVersion,
    ) -> None:
        self._uow_factory = uow_factory
        self._graph_version = graph_version
        self._cache: dict[tuple[str, bool], PermissionSet] = {}
        self._cache_generation: int | None = None

    async def resolve(self, role_id: str, *, include_inactive: bool = False) -> PermissionSet:
        """Return the effective permission set of role_id.

        Raises:
            ResourceNotFoundException: If the role does not exist.
            CycleDetectedException: If the stored graph is corrupt.
        """
        generation = await self._graph_version.current()
        if generation is None or generation != self._cache_generation:
            self._cache.clear()
            self._cache_generation = generation
        key = (role_id, include_inactive)
        if generation is not None:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

        async with self._uow_factory() as uow:
            chain = await uow.roles.get_ancestor_chain(role_id)
        permissions = merge_chain(chain, include_inactive=include_inactive)

        # A newer generation may have been observed while loading; do not cache stale data under it.
        if generation is not None and self._cache_generation == generation:
            self._cache[key] = permissions
        return permissions

    async def check(self, role_id: str, permission: str | PermissionToken) -> bool:
        """Return True if role_id is granted permission. Unknown roles are denied."""
        try:
            permissions = await self.resolve(role_id)
        except ResourceNotFoundException:
            logger.info("Permission check against unknown role %s denied", role_id)
            return False
        return permissions.contains(permission)

    async def get_effective_permissions(self, role_id: str) -> list[str]:
        """Sorted effective tokens of a role regardless of activity flags."""
        resolved = await self.resolve(role_id, include_inactive=True)
        return resolved.to_list()

    async def invalidate(self) -> None:
        """Drop every cached resolution (local and, through the generation, shared)."""
        self._cache.clear()
        self._cache_generation = None
        await self._graph_version.bump()
        logger.debug("Permission cache invalidated")
