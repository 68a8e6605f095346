"""Engine configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Values are validated at load time.
"""

from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ISOLATION_LEVELS = frozenset(
    {"SERIALIZABLE", "REPEATABLE READ", "READ COMMITTED", "AUTOCOMMIT"}
)


class Settings(BaseSettings):
    """Engine settings loaded from environment and .env.

    Role graph writes rely on serializable transactions; lowering
    db_isolation_level is only safe for read-only deployments.
    """

    # App
    app_name: str = "authz-engine"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./authz_engine.db"
    database_echo: bool = False
    db_isolation_level: str = "SERIALIZABLE"
    db_pool_size: int | None = None
    db_max_overflow: int | None = None

    # Role graph
    role_max_depth: int = 64

    # Permission cache invalidation: "local" (per process) or "redis" (shared generation counter)
    graph_version_backend: str = "local"
    redis_url: str = "redis://localhost:6379/0"
    redis_graph_version_key: str = "authz:role_graph:version"

    # Audit query pagination
    audit_default_page_size: int = 50
    audit_max_page_size: int = 500

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_backends(self) -> "Settings":
        """Validate isolation level, graph version backend and depth cap."""
        level = self.db_isolation_level.upper()
        if level not in _ISOLATION_LEVELS:
            raise ValueError(
                f"db_isolation_level must be one of {sorted(_ISOLATION_LEVELS)}, "
                f"got: {self.db_isolation_level!r}"
            )
        self.db_isolation_level = level
        if self.graph_version_backend not in ("local", "redis"):
            raise ValueError(
                f"graph_version_backend must be 'local' or 'redis', got: {self.graph_version_backend!r}"
            )
        if self.role_max_depth < 1:
            raise ValueError("role_max_depth must be at least 1")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (call cache_clear() in tests after env changes)."""
    return Settings()
