"""Token issuer and token verifier.

Login turns verified credentials into a signed, time-bounded JWT. Verification checks
signature and expiry, then re-reads the account so deactivation and role or position
changes take effect on the next request.
"""

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import jwt

from crm_auth.core.errors import AuthError
from crm_auth.core.security import (
    burn_password_check,
    create_access_token,
    decode_access_token,
    verify_password,
)
from crm_auth.models import Position, User
from crm_auth.schemas.access import (
    PositionSnapshot,
    PositionSummary,
    RequestIdentity,
    TokenClaims,
    parse_role,
)
from crm_auth.schemas.auth import LoginResponse, UserProfile
from crm_auth.services.default_positions import KNOWN_SECTIONS
from crm_auth.services.permissions import effective_permissions
from crm_auth.services.users import UserStore

if TYPE_CHECKING:
    from crm_auth.core.config import Settings

logger = logging.getLogger(__name__)


def position_snapshot(position: Position | None) -> PositionSnapshot | None:
    if position is None:
        return None
    return PositionSnapshot.model_validate(position)


def position_summary(position: Position | PositionSnapshot | None) -> PositionSummary | None:
    if position is None:
        return None
    return PositionSummary(
        id=position.id,
        name=position.name,
        level=position.level,
        is_admin=bool(position.is_admin),
    )


def user_profile(user: User) -> UserProfile:
    """Public profile for a user row; the password hash is not part of it."""
    return UserProfile(
        id=user.id,
        email=user.email,
        full_name=user.full_name or "",
        role=parse_role(user.role),
        position=position_summary(user.position),
    )


def build_identity(user: User) -> RequestIdentity:
    snapshot = position_snapshot(user.position)
    return RequestIdentity(
        user_id=user.id,
        email=user.email,
        full_name=user.full_name or "",
        role=parse_role(user.role),
        position=snapshot,
        permissions=effective_permissions(snapshot, KNOWN_SECTIONS),
    )


def authenticate(
    store: UserStore,
    email: str,
    password: str,
    settings: "Settings",
) -> LoginResponse:
    """
    Verify email/password and issue a token.

    Every failure raises AuthError("invalid_credentials") with the same client message,
    whether the account is unknown, inactive, or the password is wrong.
    """
    user = store.find_user_by_email(email)
    if user is None:
        burn_password_check(password, settings.BCRYPT_ROUNDS)
        logger.info("Login failed", extra={"reason": "unknown_email"})
        raise AuthError.invalid_credentials("unknown email")

    if user.password_hash:
        password_ok = verify_password(password, user.password_hash)
    else:
        burn_password_check(password, settings.BCRYPT_ROUNDS)
        password_ok = False
    if not user.is_active:
        logger.info("Login failed", extra={"reason": "inactive", "user_id": user.id})
        raise AuthError.invalid_credentials("inactive account")
    if not password_ok:
        logger.info("Login failed", extra={"reason": "bad_password", "user_id": user.id})
        raise AuthError.invalid_credentials("password mismatch")

    role = parse_role(user.role)
    issued = datetime.now(UTC)
    token = create_access_token(
        settings,
        sub=user.id,
        role=role,
        position_id=user.position_id,
        now=issued,
    )
    store.record_login(user)
    claims = inspect_token(token, settings)
    logger.info("Login succeeded", extra={"user_id": user.id, "role": role})
    return LoginResponse(
        user=user_profile(user),
        token=token,
        token_type="bearer",
        expires_at=claims.expires_at,
    )


def inspect_token(token: str, settings: "Settings") -> TokenClaims:
    """
    Check signature and expiry and return the token's claims. No database access.

    Raises AuthError("token_expired") for a correctly signed but expired token and
    AuthError("token_invalid") for every other defect.
    """
    try:
        payload = decode_access_token(settings, token)
    except jwt.ExpiredSignatureError:
        raise AuthError.token_expired()
    except jwt.PyJWTError as e:
        raise AuthError.token_invalid(type(e).__name__)

    sub = payload.get("sub")
    try:
        user_id = int(sub)
    except (TypeError, ValueError):
        raise AuthError.token_invalid("non-integer sub")

    position_id = payload.get("pos")
    if position_id is not None and not isinstance(position_id, int):
        raise AuthError.token_invalid("malformed pos claim")
    role = payload.get("role")
    if not isinstance(role, str):
        raise AuthError.token_invalid("missing role claim")

    try:
        issued_at = datetime.fromtimestamp(int(payload["iat"]), tz=UTC)
        expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=UTC)
    except (TypeError, ValueError, OverflowError):
        raise AuthError.token_invalid("malformed timestamps")

    return TokenClaims(
        user_id=user_id,
        role=role,
        position_id=position_id,
        issued_at=issued_at,
        expires_at=expires_at,
    )


def verify_token(store: UserStore, token: str, settings: "Settings") -> RequestIdentity:
    """Resolve a bearer token to the current identity of its account."""
    claims = inspect_token(token, settings)
    user = store.find_user_by_id(claims.user_id)
    if user is None:
        raise AuthError.user_inactive("account no longer exists")
    if not user.is_active:
        raise AuthError.user_inactive("account deactivated")
    return build_identity(user)
