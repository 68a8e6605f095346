"""Cache infrastructure: role graph generation counters."""

from authz_engine.infrastructure.cache.graph_version import LocalGraphVersion, RedisGraphVersion

__all__ = ["LocalGraphVersion", "RedisGraphVersion"]
