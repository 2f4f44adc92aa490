"""Schemas for the admin tenant listing."""

from datetime import datetime
from typing import Any, Literal

from app.schemas.common import CamelModel

SubscriptionStatus = Literal["subscribed", "expired", "pending", "demo"]


class TenantUserItem(CamelModel):
    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    approval_status: str
    created_at: datetime | None = None
    trial_start_date: datetime | None = None
    trial_end_date: datetime | None = None
    extra_trial_days: int = 0
    subscription_status: SubscriptionStatus
    subscription_details: dict[str, Any] | None = None


class TenantSummary(CamelModel):
    tenant_id: str
    tenant_name: str
    tenant_slug: str
    status: str
    plan: str
    user_count: int = 0
    active_users: int = 0
    pending_users: int = 0
    suspended_users: int = 0
    demo_users: int = 0
    expired_trial_users: int = 0
    subscribed_users: int = 0
    first_created: datetime | None = None
    last_activity: datetime | None = None
    users: list[TenantUserItem]


class TenantListResponse(CamelModel):
    tenants: list[TenantSummary]
    total_tenants: int
    total_users: int
