"""Permission resolver: decide whether a position may perform an action on a section.

Policy is default-deny with an explicit admin bypass:

1. Admin positions are allowed everything.
2. The account-settings section allows view/edit to every authenticated user and
   denies create/delete to everyone else.
3. Otherwise the position's permission map is consulted; missing entries deny.
"""

from crm_auth.schemas.access import (
    ACTION_VALUES,
    ACTIONS,
    ROLE_VALUES,
    PositionSnapshot,
)

ADMIN_POSITION_NAME = "Admin"

ACCOUNT_SETTINGS_SECTION = "account-settings"
ACCOUNT_SETTINGS_ACTIONS: frozenset[str] = frozenset({"view", "edit"})

# Position assigned to a new account when none is given explicitly.
DEFAULT_POSITION_BY_ROLE: dict[str, str] = {
    "admin": "Admin",
    "owner": "Director",
    "manager": "Manager",
    "agent": "Agent",
}

if set(DEFAULT_POSITION_BY_ROLE) != ROLE_VALUES:
    raise RuntimeError("DEFAULT_POSITION_BY_ROLE must cover every role")


def is_admin_position(name: str, level: int, admin_level_threshold: int) -> bool:
    """Admin flag rule for positions: level at/above the threshold, or the Admin position."""
    return level >= admin_level_threshold or name == ADMIN_POSITION_NAME


def default_position_name(role: str) -> str:
    """Default position for a role. Raises KeyError for an unknown role."""
    return DEFAULT_POSITION_BY_ROLE[role]


def is_allowed(position: PositionSnapshot | None, section: str, action: str) -> bool:
    """Return True if the position grants action on section. Never raises."""
    if position is not None and position.is_admin is True:
        return True
    if section == ACCOUNT_SETTINGS_SECTION:
        return action in ACCOUNT_SETTINGS_ACTIONS
    if position is None or action not in ACTION_VALUES:
        return False
    section_flags = position.permissions.get(section)
    if not isinstance(section_flags, dict):
        return False
    return section_flags.get(action) is True


def effective_permissions(
    position: PositionSnapshot | None,
    known_sections: frozenset[str] | None = None,
) -> dict[str, list[str]]:
    """
    Allowed actions per section for the given position, as lists in ACTIONS order.

    For admin positions every section in the position map, in known_sections, and
    account-settings is listed with all actions.
    """
    sections: set[str] = {ACCOUNT_SETTINGS_SECTION}
    if position is not None:
        sections.update(position.permissions)
    if known_sections and position is not None and position.is_admin:
        sections.update(known_sections)
    result: dict[str, list[str]] = {}
    for section in sorted(sections):
        allowed = [action for action in ACTIONS if is_allowed(position, section, action)]
        if allowed:
            result[section] = allowed
    return result


def may_assign(
    actor: PositionSnapshot | None,
    role: str,
    target: PositionSnapshot | None,
) -> bool:
    """
    Whether an actor holding users/create may give a new account this role and position.

    Admins may assign anything. Everyone else is limited to non-admin roles and to
    positions that are neither admin nor at/above their own level.
    """
    if actor is not None and actor.is_admin is True:
        return True
    if role == "admin":
        return False
    if target is None:
        return True
    if target.is_admin:
        return False
    return actor is not None and target.level < actor.level
