"""Schemas for the trial-expiry report, sweep and login-block decision."""

from datetime import datetime
from typing import Any

from app.schemas.common import CamelModel


class TrialUserItem(CamelModel):
    """User row in the trial report lists."""

    id: str
    email: str
    tenant_name: str | None = None
    trial_end_date: datetime | None = None
    extra_trial_days: int = 0


class TrialReportResponse(CamelModel):
    """GET /admin/trial-expiry-check: counts plus the users behind them."""

    current_time: datetime
    expired_users: int
    expiring_soon_users: int
    expired_users_list: list[TrialUserItem]
    expiring_soon_list: list[TrialUserItem]


class TrialSweepResult(CamelModel):
    """Outcome for one user processed by the sweep."""

    user_id: str
    email: str
    tenant_name: str | None = None
    trial_end_date: datetime | None = None
    sub_users_affected: int = 0
    error: str | None = None


class TrialSweepResponse(CamelModel):
    """POST /admin/trial-expiry-check."""

    message: str
    expired_users_count: int
    expired_tenants_count: int
    check_date: datetime
    results: list[TrialSweepResult]


class TrialInfo(CamelModel):
    trial_end_date: datetime | None = None
    current_date: datetime
    is_trial_expired: bool
    has_active_subscription: bool
    profile_data: dict[str, Any]


class TrialDecision(CamelModel):
    should_block_login: bool
    message: str


class BlockedUserItem(CamelModel):
    id: str
    email: str
    trial_end_date: datetime | None = None


class BlockedUsersResponse(CamelModel):
    success: bool = True
    message: str
    expired_users: list[BlockedUserItem]
