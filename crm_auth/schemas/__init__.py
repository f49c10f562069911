"""Pydantic request/response schemas."""

from crm_auth.schemas.access import (
    ACTIONS,
    ROLE_VALUES,
    Action,
    PositionSnapshot,
    PositionSummary,
    RequestIdentity,
    Role,
    TokenClaims,
)
from crm_auth.schemas.auth import LoginRequest, LoginResponse, UserProfile
from crm_auth.schemas.health import HealthResponse

__all__ = [
    "ACTIONS",
    "Action",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "PositionSnapshot",
    "PositionSummary",
    "ROLE_VALUES",
    "RequestIdentity",
    "Role",
    "TokenClaims",
    "UserProfile",
]
