"""Schemas for users and the admin user-lifecycle endpoints."""

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from app.schemas.common import CamelModel

UserRole = Literal["SUPER_ADMIN", "TENANT_ADMIN", "TENANT_USER"]
UserStatus = Literal[
    "ACTIVE",
    "INACTIVE",
    "SUSPENDED",
    "REJECTED",
    "PENDING_APPROVAL",
    "TRIAL_EXPIRED",
]

# The privileged role: never deleted or suspended through admin endpoints.
PRIVILEGED_ROLE: UserRole = "SUPER_ADMIN"
TENANT_ADMIN_ROLE: UserRole = "TENANT_ADMIN"

USER_ROLE_VALUES: frozenset[str] = frozenset({"SUPER_ADMIN", "TENANT_ADMIN", "TENANT_USER"})
USER_STATUS_VALUES: frozenset[str] = frozenset(
    {"ACTIVE", "INACTIVE", "SUSPENDED", "REJECTED", "PENDING_APPROVAL", "TRIAL_EXPIRED"}
)
# Statuses an admin may set directly through the status endpoint.
ADMIN_SETTABLE_STATUSES: tuple[str, ...] = ("ACTIVE", "INACTIVE", "SUSPENDED")

TRIAL_ACTIONS: frozenset[str] = frozenset({"add", "subtract", "set"})


class UserOut(CamelModel):
    """User as returned by the API (no password hash, no raw profile)."""

    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    role: str
    status: str
    tenant_id: str | None = None
    trial_start_date: datetime | None = None
    trial_end_date: datetime | None = None
    extra_trial_days: int = 0
    last_login_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserListResponse(CamelModel):
    """Response for user listings."""

    users: list[UserOut]
    count: int


class StatusUpdateRequest(CamelModel):
    """Body for POST /admin/users/{id}/status. Validated by the service for localized errors."""

    status: str | None = None


class StatusUpdateResponse(CamelModel):
    message: str
    user: UserOut


class SuspendRequest(CamelModel):
    """Body for POST /admin/users/{id}/suspend."""

    reason: str | None = None
    duration_type: str | None = Field(default=None, description="temporary or permanent")
    duration_days: int | None = Field(default=None, ge=0, le=3650)
    can_appeal: bool | None = None


class SuspensionInfo(CamelModel):
    """Suspension facts as stored under profile["suspension"]."""

    reason: str
    duration_type: str = "temporary"
    duration_days: int = 0
    can_appeal: bool = False
    suspended_at: str
    suspended_until: str | None = None


class SuspendData(CamelModel):
    user: UserOut
    suspension: SuspensionInfo


class SuspendResponse(CamelModel):
    success: bool = True
    message: str
    data: SuspendData


class RejectRequest(CamelModel):
    reason: str | None = None


class RejectResponse(CamelModel):
    """The reason is echoed back; it is not persisted."""

    message: str
    user: UserOut
    reason: str | None = None


class DeleteResponse(CamelModel):
    message: str
    deleted_user_id: str
    user_role: str


class BulkDeleteRequest(CamelModel):
    user_ids: list[str] | None = None


class BulkDeleteResponse(CamelModel):
    message: str
    deleted_count: int


class ApproveResponse(CamelModel):
    message: str
    user: UserOut
    trial_days_left: int


class TrialDaysRequest(CamelModel):
    """Body for POST /admin/users/{id}/trial-days."""

    days: int | None = Field(default=None, ge=0, le=3650)
    action: str | None = None


class TrialDaysResponse(CamelModel):
    message: str
    user: UserOut
    new_trial_end_date: datetime
    total_trial_days: int


class SubscriptionStatusResponse(CamelModel):
    has_subscription: bool
    user_status: str | None = None
    subscription_details: dict[str, Any] | None = None


class ActivityItem(CamelModel):
    id: str
    type: str = "user_registration"
    description: str
    timestamp: datetime | None = None


class DashboardStatsResponse(CamelModel):
    total_users: int
    total_tenants: int
    pending_users: int
    active_users: int
    recent_activity: list[ActivityItem]


class CurrentUserStatusResponse(UserOut):
    """GET /user/status: adds trial-expiry hints for demo users."""

    trial_expired: bool = False
    redirect_to: str | None = None


class UserSuspensionResponse(CamelModel):
    success: bool = True
    user: UserOut
    suspension: dict[str, Any]
