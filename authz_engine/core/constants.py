"""Core constants: token grammar, role naming, plan limit defaults.

Single source of truth for literal values shared by the domain and the
services (DRY).
"""

from authz_engine.domain.enums import PlanTier

# Permission tokens: namespace:resource:action, segments joined by PERMISSION_SEP.
PERMISSION_SEP = ":"
PERMISSION_WILDCARD = "*"
PERMISSION_MAX_LENGTH = 128

# Tokens that satisfy every check ("super:*" super-admin, "admin:*" organization admin).
GLOBAL_WILDCARD_TOKENS = frozenset({"*", "super:*", "admin:*"})

# Role names: lowercase alphanumeric with optional hyphens (e.g. senior-editor).
ROLE_NAME_MIN_LENGTH = 2
ROLE_NAME_MAX_LENGTH = 64

# Graph version key used when invalidation is shared through Redis.
GRAPH_VERSION_KEY = "authz:role_graph:version"

# Plan limits used when no plan row (or no limits map) exists for the tier. -1 = unlimited.
UNLIMITED = -1
DEFAULT_PLAN_LIMITS: dict[PlanTier, dict[str, int]] = {
    PlanTier.STARTER: {
        "agentRuns": 100,
        "teamSeats": 3,
        "dataSources": 5,
        "apiCallsPerMin": 100,
        "retentionDays": 30,
        "tokensPerMonth": 100_000,
        "dashboards": 3,
        "reports": 10,
        "workflows": 2,
        "brandTrackings": 1,
    },
    PlanTier.PROFESSIONAL: {
        "agentRuns": 1000,
        "teamSeats": 10,
        "dataSources": 25,
        "apiCallsPerMin": 500,
        "retentionDays": 90,
        "tokensPerMonth": 1_000_000,
        "dashboards": 20,
        "reports": 100,
        "workflows": 10,
        "brandTrackings": 5,
    },
    PlanTier.ENTERPRISE: {
        "agentRuns": UNLIMITED,
        "teamSeats": UNLIMITED,
        "dataSources": UNLIMITED,
        "apiCallsPerMin": 2000,
        "retentionDays": 365,
        "tokensPerMonth": UNLIMITED,
        "dashboards": UNLIMITED,
        "reports": UNLIMITED,
        "workflows": UNLIMITED,
        "brandTrackings": UNLIMITED,
    },
}
