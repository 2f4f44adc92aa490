"""Schemas for the debug endpoints."""

from datetime import datetime
from typing import Any

from app.schemas.common import CamelModel
from app.schemas.trial import TrialDecision, TrialInfo
from app.schemas.users import UserOut


class DebugUserRoleResponse(CamelModel):
    success: bool = True
    token_data: dict[str, Any]
    database_data: UserOut
    roles_match: bool
    can_access_tenant_admin: bool


class DebugUserProfileResponse(CamelModel):
    user_id: str
    email: str
    status: str
    role: str
    trial_end_date: datetime | None = None
    raw_profile: str | None = None
    parsed_profile: dict[str, Any]


class DebugUserTrialResponse(CamelModel):
    user: UserOut
    trial_info: TrialInfo
    decision: TrialDecision


class DebugUserSubscriptionResponse(CamelModel):
    user: UserOut
    tenant_name: str | None = None
    raw_profile: str | None = None
    parsed_profile: dict[str, Any]
    subscription_data: dict[str, Any] | None = None
    has_subscription: bool
