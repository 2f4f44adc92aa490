"""API v1 routes."""

from fastapi import APIRouter

from app.api.v1 import account, admin, admin_users, auth, debug, health
from app.core.config import settings

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(account.router, prefix="/user", tags=["user"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
router.include_router(admin_users.router, prefix="/admin/users", tags=["admin"])
if settings.DEBUG_ENDPOINTS_ENABLED:
    router.include_router(debug.router, prefix="/debug", tags=["debug"])
