"""Admin overview endpoints: user listings, dashboard stats, tenants, and the trial-expiry check."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.v1.auth import require_cron_or_super_admin, require_super_admin
from app.core.clock import utcnow
from app.core.config import get_settings
from app.core.database import get_db
from app.schemas.auth import CurrentUser
from app.schemas.tenants import TenantListResponse
from app.schemas.trial import BlockedUsersResponse, TrialReportResponse, TrialSweepResponse
from app.schemas.users import (
    USER_STATUS_VALUES,
    DashboardStatsResponse,
    UserListResponse,
    UserOut,
)
from app.services import users as user_service
from app.services.tenants import list_tenants
from app.services.trial import find_blocked_users, run_trial_expiry, trial_report

logger = logging.getLogger(__name__)

router = APIRouter()

AdminUser = Annotated[CurrentUser, Depends(require_super_admin)]
DbSession = Annotated[Session, Depends(get_db)]


@router.get("/users", response_model=UserListResponse)
def list_users(
    _admin: AdminUser,
    db: DbSession,
    user_status: Annotated[str | None, Query(alias="status")] = None,
) -> UserListResponse:
    """All users, newest first; optionally filtered by status."""
    if user_status is not None and user_status not in USER_STATUS_VALUES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Geçersiz durum bilgisi",
        )
    users = user_service.list_users(db, user_status)
    return UserListResponse(users=[UserOut.model_validate(u) for u in users], count=len(users))


@router.get("/pending-users", response_model=UserListResponse)
def list_pending_users(_admin: AdminUser, db: DbSession) -> UserListResponse:
    """Users waiting for approval."""
    users = user_service.list_users(db, "PENDING_APPROVAL")
    return UserListResponse(users=[UserOut.model_validate(u) for u in users], count=len(users))


@router.get("/dashboard-stats", response_model=DashboardStatsResponse)
def dashboard_stats(_admin: AdminUser, db: DbSession) -> DashboardStatsResponse:
    return DashboardStatsResponse.model_validate(user_service.dashboard_stats(db))


@router.get("/tenants", response_model=TenantListResponse)
def tenants(_admin: AdminUser, db: DbSession) -> TenantListResponse:
    """Users grouped by tenant with per-status counts and plan labels."""
    return list_tenants(db, utcnow())


@router.get("/blocked-users", response_model=BlockedUsersResponse)
def blocked_users(_admin: AdminUser, db: DbSession) -> BlockedUsersResponse:
    """Tenant admins whose trial ended without an activated subscription."""
    users = find_blocked_users(db, utcnow())
    return BlockedUsersResponse(
        message=f"{len(users)} süresi dolan kullanıcı bulundu",
        expired_users=users,
    )


@router.get("/trial-expiry-check", response_model=TrialReportResponse)
def trial_expiry_report(
    _caller: Annotated[str, Depends(require_cron_or_super_admin)],
    db: DbSession,
) -> TrialReportResponse:
    """Counts of expired and soon-expiring trials. Read-only."""
    return trial_report(db, utcnow(), get_settings().TRIAL_EXPIRING_SOON_DAYS)


@router.post("/trial-expiry-check", response_model=TrialSweepResponse)
def trial_expiry_sweep(
    caller: Annotated[str, Depends(require_cron_or_super_admin)],
    db: DbSession,
) -> TrialSweepResponse:
    """Expire ended trials without a subscription and suspend their tenants."""
    try:
        result = run_trial_expiry(db, utcnow())
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Trial expiry sweep failed", extra={"caller": caller})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Deneme süresi kontrolü sırasında bir hata oluştu",
        ) from e
    logger.info(
        "Trial expiry sweep requested",
        extra={"caller": caller, "expired_users": result.expired_users_count},
    )
    return result
