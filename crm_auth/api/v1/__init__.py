"""API v1 routes."""

from fastapi import APIRouter

from crm_auth.api.v1 import access, auth, health

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(access.router, prefix="/access", tags=["access"])
