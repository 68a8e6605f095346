"""Default system roles seeded into every installation.

Seeded with is_system=True: they cannot be deleted or reparented through
the engine. Used by scripts/seed_roles.py.
"""

from typing import Any

DEFAULT_SYSTEM_ROLES: list[dict[str, Any]] = [
    {
        "name": "super-admin",
        "display_name": "Super Admin",
        "description": "Full platform access with all permissions",
        "priority": 100,
        "color": "#8B5CF6",
        "icon": "Shield",
        "permissions": ["super:*"],
    },
    {
        "name": "platform-admin",
        "display_name": "Platform Admin",
        "description": "Standard admin with most management capabilities",
        "priority": 80,
        "color": "#3B82F6",
        "icon": "UserCog",
        "permissions": [
            "organizations:list", "organizations:read", "organizations:create",
            "organizations:update", "organizations:suspend", "organizations:restore",
            "organizations:export",
            "users:list", "users:read", "users:create", "users:update",
            "users:ban", "users:unban", "users:reset-password", "users:export",
            "admins:list", "admins:read",
            "roles:list", "roles:read", "roles:create", "roles:update", "roles:assign",
            "security:dashboard", "security:policies:read", "security:threats:read",
            "security:violations:read", "security:violations:manage",
            "audit:read", "audit:export",
            "analytics:*",
            "features:list", "features:read", "features:create", "features:update",
            "features:toggle", "features:rollout",
            "billing:dashboard", "billing:plans:read", "billing:subscriptions:read",
            "billing:subscriptions:write", "billing:invoices:read",
            "support:*",
            "system:config:read", "system:rules:read", "system:rules:write",
            "system:health:read", "system:logs:read", "system:jobs:read",
            "notifications:*",
            "integrations:*",
            "compliance:dashboard", "compliance:frameworks:read", "compliance:audits:read",
            "identity:domains:read", "identity:sso:read", "identity:scim:read",
            "operations:incidents:read", "operations:releases:read",
        ],
    },
    {
        "name": "support-agent",
        "display_name": "Support Agent",
        "description": "Customer support with limited write access",
        "priority": 60,
        "color": "#10B981",
        "icon": "Headphones",
        "permissions": [
            "organizations:list", "organizations:read",
            "users:list", "users:read", "users:reset-password",
            "audit:read",
            "analytics:dashboard", "analytics:usage:read",
            "features:list", "features:read",
            "billing:dashboard", "billing:subscriptions:read", "billing:invoices:read",
            "support:tickets:list", "support:tickets:read", "support:tickets:create",
            "support:tickets:respond", "support:tickets:close",
            "support:knowledge:read",
            "notifications:list", "notifications:create",
        ],
    },
    {
        "name": "analyst",
        "display_name": "Analyst",
        "description": "Read-only analytics access",
        "priority": 40,
        "color": "#F59E0B",
        "icon": "BarChart",
        "permissions": [
            "organizations:list", "organizations:read",
            "users:list", "users:read",
            "audit:read",
            "analytics:dashboard", "analytics:usage:read", "analytics:revenue:read",
            "analytics:growth:read", "analytics:export", "analytics:reports:create",
            "analytics:reports:schedule",
            "features:list", "features:read",
        ],
    },
]
