"""Domain value objects for the role graph.

Value objects are immutable types that represent domain concepts with
self-validation. They have no identity, only value.
"""

import re
from dataclasses import dataclass

from authz_engine.core.constants import (
    PERMISSION_MAX_LENGTH,
    PERMISSION_SEP,
    PERMISSION_WILDCARD,
    ROLE_NAME_MAX_LENGTH,
    ROLE_NAME_MIN_LENGTH,
)

# Role names: lowercase alphanumeric with optional hyphens (e.g. senior-editor).
_SLUG_RE = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")
# One permission segment (e.g. reports, reset-password, api_keys).
_SEGMENT_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


@dataclass(frozen=True)
class RoleName:
    """Value object for a role name (slug, immutable after creation).

    Role names are 2-64 characters, lowercase alphanumeric with optional
    hyphens (e.g. 'editor', 'senior-editor').
    """

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValueError("Role name must be a non-empty string")
        if not ROLE_NAME_MIN_LENGTH <= len(self.value) <= ROLE_NAME_MAX_LENGTH:
            raise ValueError(
                f"Role name must be {ROLE_NAME_MIN_LENGTH}-{ROLE_NAME_MAX_LENGTH} characters"
            )
        if not _SLUG_RE.match(self.value):
            raise ValueError(
                "Role name must be lowercase alphanumeric with optional hyphens "
                "(e.g., 'editor', 'senior-editor')"
            )


@dataclass(frozen=True)
class PermissionToken:
    """Value object for a permission grant.

    Accepted forms:
        - ``namespace:resource[:action...]``: at least two segments.
        - ``namespace[:resource...]:*``: wildcard over everything under the prefix.
        - ``*``: global wildcard.

    Matching is case-sensitive; wildcards only apply at segment boundaries.
    """

    value: str

    def __post_init__(self) -> None:
        """Validate token syntax.

        Raises:
            ValueError: If the token is empty, too long, or malformed.
        """
        if not self.value:
            raise ValueError("Permission token must be a non-empty string")
        if len(self.value) > PERMISSION_MAX_LENGTH:
            raise ValueError(
                f"Permission token must not exceed {PERMISSION_MAX_LENGTH} characters"
            )
        if self.value == PERMISSION_WILDCARD:
            return
        segments = self.value.split(PERMISSION_SEP)
        if len(segments) < 2:
            raise ValueError(
                f"Permission token {self.value!r} must have the form namespace:resource:action"
            )
        *head, last = segments
        for segment in head:
            if not _SEGMENT_RE.match(segment):
                raise ValueError(
                    f"Permission token {self.value!r} has an invalid segment {segment!r}"
                )
        if last != PERMISSION_WILDCARD and not _SEGMENT_RE.match(last):
            raise ValueError(
                f"Permission token {self.value!r} has an invalid segment {last!r}"
            )

    @property
    def is_wildcard(self) -> bool:
        """True for ``*`` and for tokens ending in ``:*``."""
        return self.value == PERMISSION_WILDCARD or self.value.endswith(
            PERMISSION_SEP + PERMISSION_WILDCARD
        )

    @property
    def namespace(self) -> str:
        """First segment (``*`` for the global wildcard)."""
        return self.value.split(PERMISSION_SEP, 1)[0]

    def __str__(self) -> str:
        return self.value
