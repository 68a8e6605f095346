"""PermissionSet: immutable collection of permission tokens with wildcard-aware membership."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from authz_engine.core.constants import (
    GLOBAL_WILDCARD_TOKENS,
    PERMISSION_SEP,
    PERMISSION_WILDCARD,
)
from authz_engine.domain.value_objects.core import PermissionToken


@dataclass(frozen=True)
class PermissionSet:
    """Set of validated permission tokens.

    Specific tokens and wildcards are both kept as granted; precedence is
    decided by contains() at query time, so union never collapses entries.
    """

    tokens: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, tokens: Iterable[str | PermissionToken]) -> "PermissionSet":
        """Build a set from raw strings, validating each token.

        Raises:
            ValueError: If any token is malformed.
        """
        return cls(frozenset(PermissionToken(str(t)).value for t in tokens))

    @classmethod
    def empty(cls) -> "PermissionSet":
        return cls()

    def contains(self, token: str | PermissionToken) -> bool:
        """Return True if token is granted exactly, by a prefix wildcard, or by a global wildcard.

        ``services:clients:*`` grants ``services:clients:read`` but not
        ``services:clientsRead``. Unknown or malformed query tokens are simply
        not granted.
        """
        value = str(token)
        if not value:
            return False
        if value in self.tokens:
            return True
        if not self.tokens.isdisjoint(GLOBAL_WILDCARD_TOKENS):
            return True
        segments = value.split(PERMISSION_SEP)
        for i in range(1, len(segments)):
            prefix = PERMISSION_SEP.join(segments[:i])
            if f"{prefix}{PERMISSION_SEP}{PERMISSION_WILDCARD}" in self.tokens:
                return True
        return False

    def union(self, other: "PermissionSet") -> "PermissionSet":
        """Return a new set with tokens from both sets."""
        return PermissionSet(self.tokens | other.tokens)

    def __or__(self, other: "PermissionSet") -> "PermissionSet":
        return self.union(other)

    def __contains__(self, token: object) -> bool:
        if not isinstance(token, (str, PermissionToken)):
            return False
        return self.contains(token)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.tokens))

    def __len__(self) -> int:
        return len(self.tokens)

    def to_list(self) -> list[str]:
        """Tokens in sorted order (stable for serialization and audit)."""
        return sorted(self.tokens)
