"""Request dependencies: settings, credential store, and the access gate.

Gate states per request: no token -> token present -> verified | rejected ->
authorized | forbidden -> handled. Failures short-circuit with AuthError, which the
app renders as 401/403.
"""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from crm_auth.core.config import Settings
from crm_auth.core.database import get_db
from crm_auth.core.errors import AuthError
from crm_auth.schemas.access import Action, RequestIdentity
from crm_auth.services.authentication import verify_token
from crm_auth.services.permissions import is_allowed
from crm_auth.services.users import UserStore

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    """Settings the application was built with."""
    return request.app.state.settings


def get_user_store(db: Annotated[Session, Depends(get_db)]) -> UserStore:
    return UserStore(db)


def get_request_identity(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    store: Annotated[UserStore, Depends(get_user_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> RequestIdentity:
    """Dependency: require a valid Bearer token for an active account (no permission check)."""
    if credentials is None or not credentials.credentials.strip():
        raise AuthError.unauthenticated()
    identity = verify_token(store, credentials.credentials.strip(), settings)
    request.state.identity = identity
    return identity


def require_permission(section: str, action: Action) -> Callable[..., RequestIdentity]:
    """
    Build a dependency that authenticates the caller and requires (section, action).

    Usage: `identity: Annotated[RequestIdentity, Depends(require_permission("deals", "delete"))]`
    or `dependencies=[Depends(require_permission(...))]` on a route or router.
    """

    def _gate(
        identity: Annotated[RequestIdentity, Depends(get_request_identity)],
    ) -> RequestIdentity:
        if not is_allowed(identity.position, section, action):
            logger.info(
                "Access denied",
                extra={
                    "user_id": identity.user_id,
                    "section": section,
                    "action": action,
                },
            )
            raise AuthError.forbidden(f"{section}:{action}")
        return identity

    _gate.__name__ = f"require_{section.replace('-', '_')}_{action}"
    return _gate
