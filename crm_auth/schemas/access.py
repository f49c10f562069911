"""Pydantic schemas for roles, positions, permission maps and the per-request identity."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# User roles. Authorization itself is driven by positions; the role is carried in the
# token and profile and selects the default position for new accounts.
Role = Literal["admin", "owner", "manager", "agent"]

ROLE_VALUES: frozenset[str] = frozenset({"admin", "owner", "manager", "agent"})

# Actions a permission map can grant on a section, in display order.
Action = Literal["view", "create", "edit", "delete"]

ACTIONS: tuple[str, ...] = ("view", "create", "edit", "delete")
ACTION_VALUES: frozenset[str] = frozenset(ACTIONS)

# section -> {action: allowed}
PermissionMap = dict[str, dict[str, bool]]


def parse_role(value: str | None) -> str:
    """Normalize a stored or submitted role; raises ValueError for anything outside ROLE_VALUES."""
    if not value or not value.strip():
        raise ValueError("role must be non-empty")
    normalized = value.strip().lower()
    if normalized not in ROLE_VALUES:
        raise ValueError(f"role must be one of {sorted(ROLE_VALUES)}, got {value!r}")
    return normalized


def coerce_permission_map(raw: object) -> PermissionMap:
    """
    Keep only well-formed entries of a stored permission map.

    Sections must map to dicts and flags must be real booleans; anything else is
    dropped so that it can never read as a grant.
    """
    if not isinstance(raw, dict):
        return {}
    result: PermissionMap = {}
    for section, actions in raw.items():
        if not isinstance(section, str) or not isinstance(actions, dict):
            continue
        flags = {
            action: flag
            for action, flag in actions.items()
            if action in ACTION_VALUES and isinstance(flag, bool)
        }
        result[section] = flags
    return result


class PositionSnapshot(BaseModel):
    """Position as seen by the permission resolver for one request."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    name: str
    level: int
    is_admin: bool = False
    permissions: PermissionMap = Field(default_factory=dict)

    @field_validator("permissions", mode="before")
    @classmethod
    def validate_permissions(cls, v: object) -> PermissionMap:
        return coerce_permission_map(v)


class PositionSummary(BaseModel):
    """Public position summary included in user profiles."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    level: int
    is_admin: bool


class RequestIdentity(BaseModel):
    """Resolved identity attached to a request after the access gate succeeds."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    email: str
    full_name: str = ""
    role: Role
    position: PositionSnapshot | None = None
    permissions: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Effective allowed actions per section",
    )


class TokenClaims(BaseModel):
    """Claims carried by a verified access token."""

    user_id: int
    role: str
    position_id: int | None = None
    issued_at: datetime
    expires_at: datetime


class PermissionCheckResponse(BaseModel):
    """Response for GET /access/check."""

    section: str
    action: str
    allowed: bool


class EffectivePermissionsResponse(BaseModel):
    """Response for GET /access/permissions."""

    is_admin: bool
    position: PositionSummary | None = None
    permissions: dict[str, list[str]]
