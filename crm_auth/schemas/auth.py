"""Request/response schemas for auth endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from crm_auth.core.security import EMAIL_MAX_LEN, PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from crm_auth.schemas.access import PositionSummary, Role, parse_role


def _validate_email(value: str) -> str:
    """Minimal shape check; case is normalized by the store."""
    s = value.strip()
    if "@" not in s or s.startswith("@") or s.endswith("@"):
        raise ValueError("email must look like name@domain")
    return s


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str = Field(..., min_length=3, max_length=EMAIL_MAX_LEN, description="Email")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")


class UserProfile(BaseModel):
    """Public user profile (never includes the password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    full_name: str
    role: Role
    position: PositionSummary | None = None


class LoginResponse(BaseModel):
    """Profile and bearer token returned after successful login."""

    user: UserProfile
    token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_at: datetime


class RegisterRequest(BaseModel):
    """New account created by an operator with users/create permission."""

    email: str = Field(..., min_length=3, max_length=EMAIL_MAX_LEN)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    full_name: str = Field(..., min_length=1, max_length=255)
    role: str = Field(default="agent")
    position_id: int | None = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _validate_email(v)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        return parse_role(v)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)
    new_password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class VerifyTokenRequest(BaseModel):
    token: str = Field(..., min_length=1)


class VerifyTokenResponse(BaseModel):
    """Decoded claims of a valid token (signature and expiry only; no account lookup)."""

    valid: bool = True
    user_id: int
    role: str
    position_id: int | None = None
    issued_at: datetime
    expires_at: datetime
