"""Auth endpoints: login, current user, password change, registration, token check."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from crm_auth.api.deps import (
    get_app_settings,
    get_request_identity,
    get_user_store,
    require_permission,
)
from crm_auth.core.config import Settings
from crm_auth.core.errors import AuthError
from crm_auth.schemas.access import RequestIdentity
from crm_auth.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    UserProfile,
    VerifyTokenRequest,
    VerifyTokenResponse,
)
from crm_auth.services.authentication import (
    authenticate,
    inspect_token,
    position_snapshot,
    user_profile,
)
from crm_auth.services.permissions import may_assign
from crm_auth.services.users import (
    DuplicateEmailError,
    PasswordChangeError,
    UnknownPositionError,
    UserStore,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    store: Annotated[UserStore, Depends(get_user_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> LoginResponse:
    """
    Authenticate with email and password; returns the user profile and a JWT.
    Include the token in the Authorization header as: Bearer <token>
    """
    return authenticate(store, body.email, body.password, settings)


@router.get("/me", response_model=UserProfile)
def me(
    identity: Annotated[RequestIdentity, Depends(get_request_identity)],
    store: Annotated[UserStore, Depends(get_user_store)],
) -> UserProfile:
    """Current user's profile, read fresh from the credential store."""
    user = store.find_user_by_id(identity.user_id)
    if user is None:
        raise AuthError.user_inactive("account removed during request")
    return user_profile(user)


@router.put("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    identity: Annotated[RequestIdentity, Depends(require_permission("account-settings", "edit"))],
    store: Annotated[UserStore, Depends(get_user_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> MessageResponse:
    user = store.find_user_by_id(identity.user_id)
    if user is None:
        raise AuthError.user_inactive("account removed during request")
    try:
        store.change_password(
            user,
            body.current_password,
            body.new_password,
            bcrypt_rounds=settings.BCRYPT_ROUNDS,
        )
    except PasswordChangeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    return MessageResponse(message="Password updated successfully")


@router.post("/register", response_model=UserProfile, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    identity: Annotated[RequestIdentity, Depends(require_permission("users", "create"))],
    store: Annotated[UserStore, Depends(get_user_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> UserProfile:
    """
    Create a user account (requires users/create).

    Non-admin callers may not create admin accounts or place users at or above their own level.
    """
    try:
        target = store.resolve_position(body.role, body.position_id)
        if not may_assign(identity.position, body.role, position_snapshot(target)):
            logger.warning(
                "Registration denied",
                extra={"user_id": identity.user_id, "role": body.role, "position_id": body.position_id},
            )
            raise AuthError.forbidden("role or position above caller")
        user = store.create_user(
            email=body.email,
            password=body.password,
            full_name=body.full_name,
            role=body.role,
            position_id=body.position_id,
            bcrypt_rounds=settings.BCRYPT_ROUNDS,
        )
    except DuplicateEmailError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from e
    except UnknownPositionError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message) from e
    logger.info("Registered user", extra={"user_id": user.id, "created_by": identity.user_id})
    return user_profile(user)


@router.post("/verify-token", response_model=VerifyTokenResponse)
def verify_token_claims(
    body: VerifyTokenRequest,
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> VerifyTokenResponse:
    """Check a token's signature and expiry and return its claims (no account lookup)."""
    claims = inspect_token(body.token.strip(), settings)
    return VerifyTokenResponse(
        user_id=claims.user_id,
        role=claims.role,
        position_id=claims.position_id,
        issued_at=claims.issued_at,
        expires_at=claims.expires_at,
    )
