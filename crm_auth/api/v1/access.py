"""Permission introspection for the calling user."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from crm_auth.api.deps import get_request_identity
from crm_auth.schemas.access import (
    Action,
    EffectivePermissionsResponse,
    PermissionCheckResponse,
    RequestIdentity,
)
from crm_auth.services.authentication import position_summary
from crm_auth.services.permissions import is_allowed

router = APIRouter()


@router.get("/permissions", response_model=EffectivePermissionsResponse)
def get_permissions(
    identity: Annotated[RequestIdentity, Depends(get_request_identity)],
) -> EffectivePermissionsResponse:
    """Effective allowed actions per section for the caller's position."""
    return EffectivePermissionsResponse(
        is_admin=bool(identity.position and identity.position.is_admin),
        position=position_summary(identity.position),
        permissions=identity.permissions,
    )


@router.get("/check", response_model=PermissionCheckResponse)
def check_permission(
    identity: Annotated[RequestIdentity, Depends(get_request_identity)],
    section: Annotated[str, Query(min_length=1, max_length=64)],
    action: Annotated[Action, Query()],
) -> PermissionCheckResponse:
    """Answer whether the caller may perform action on section, without performing it."""
    return PermissionCheckResponse(
        section=section,
        action=action,
        allowed=is_allowed(identity.position, section, action),
    )
