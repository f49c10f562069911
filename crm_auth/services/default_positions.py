"""Default CRM positions (levels 1-6) and their permission maps."""

_FULL = {"view": True, "create": True, "edit": True, "delete": True}

# Sections every CRM screen is registered under; admins are granted all of them.
KNOWN_SECTIONS: frozenset[str] = frozenset(
    {
        "dashboard",
        "users",
        "deals",
        "post-deal",
        "book",
        "carriers",
        "products",
        "positions",
        "analytics",
        "settings",
        "configuration",
        "monitoring",
        "account-settings",
    }
)

DEFAULT_POSITIONS: list[dict[str, object]] = [
    {
        "name": "Agent",
        "level": 1,
        "description": "Regular agent with basic permissions",
        "permissions": {
            "dashboard": {"view": True},
            "deals": {"view": True, "create": True, "edit": True},
            "post-deal": {"view": True, "create": True, "edit": True},
            "book": {"view": True},
        },
    },
    {
        "name": "Senior Agent",
        "level": 2,
        "description": "Senior agent with additional permissions",
        "permissions": {
            "dashboard": {"view": True},
            "deals": dict(_FULL),
            "post-deal": dict(_FULL),
            "book": {"view": True, "create": True, "edit": True},
            "analytics": {"view": True},
        },
    },
    {
        "name": "Team Lead",
        "level": 3,
        "description": "Team leader with management permissions",
        "permissions": {
            "dashboard": {"view": True},
            "users": {"view": True},
            "deals": dict(_FULL),
            "post-deal": dict(_FULL),
            "book": dict(_FULL),
            "analytics": {"view": True},
        },
    },
    {
        "name": "Manager",
        "level": 4,
        "description": "Manager with extended permissions",
        "permissions": {
            "dashboard": {"view": True},
            "users": {"view": True, "create": True, "edit": True},
            "deals": dict(_FULL),
            "post-deal": dict(_FULL),
            "book": dict(_FULL),
            "carriers": {"view": True, "create": True, "edit": True},
            "products": {"view": True, "create": True, "edit": True},
            "analytics": {"view": True},
            "settings": {"view": True},
        },
    },
    {
        "name": "Director",
        "level": 5,
        "description": "Director with high-level permissions",
        "permissions": {
            "dashboard": {"view": True},
            "users": dict(_FULL),
            "deals": dict(_FULL),
            "post-deal": dict(_FULL),
            "book": dict(_FULL),
            "carriers": dict(_FULL),
            "products": dict(_FULL),
            "positions": {"view": True},
            "analytics": {"view": True},
            "settings": {"view": True, "edit": True},
        },
    },
    {
        "name": "Admin",
        "level": 6,
        "description": "Administrator with full system access",
        "permissions": {section: dict(_FULL) for section in sorted(KNOWN_SECTIONS)},
    },
]

