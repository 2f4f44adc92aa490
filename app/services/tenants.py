"""Admin tenant listing: users grouped by tenant with status counts and plan labels.

Read-only. Expiring users and suspending tenants is the trial sweep's job.
"""

from datetime import datetime

from sqlalchemy.orm import Session, joinedload

from app.core.clock import as_utc
from app.models import User
from app.schemas.tenants import (
    SubscriptionStatus,
    TenantListResponse,
    TenantSummary,
    TenantUserItem,
)
from app.schemas.users import PRIVILEGED_ROLE
from app.services.profile import (
    INDIVIDUAL_TENANT_NAME,
    build_subscription_details,
    extract_plan_label,
    parse_profile,
    slugify,
    tenant_name_from_profile,
)
from app.services.trial import TRIAL_EXPIRED_STATUS, is_trial_expired

PENDING_STATUSES = frozenset({"PENDING_APPROVAL", "PENDING_VERIFICATION"})


def derive_subscription_status(
    user: User,
    subscription_details: dict | None,
    now: datetime,
) -> SubscriptionStatus:
    """pending / expired / subscribed / demo, in that precedence."""
    if user.status in PENDING_STATUSES:
        return "pending"
    if user.status == TRIAL_EXPIRED_STATUS or is_trial_expired(user.trial_end_date, now):
        return "expired"
    if subscription_details or user.status == "ACTIVE":
        return "subscribed"
    return "demo"


def _latest(current: datetime | None, candidate: datetime | None) -> datetime | None:
    if candidate is None:
        return current
    if current is None or as_utc(candidate) > as_utc(current):
        return candidate
    return current


def _earliest(current: datetime | None, candidate: datetime | None) -> datetime | None:
    if candidate is None:
        return current
    if current is None or as_utc(candidate) < as_utc(current):
        return candidate
    return current


def list_tenants(session: Session, now: datetime) -> TenantListResponse:
    """
    Group every non-privileged user under its tenant. Users without a tenant each
    get an individual entry keyed "individual-<user id>", named from the profile
    when it records an organization.
    """
    users = (
        session.query(User)
        .options(joinedload(User.tenant))
        .filter(User.role != PRIVILEGED_ROLE)
        .order_by(User.created_at.desc())
        .all()
    )

    tenants: dict[str, TenantSummary] = {}
    for user in users:
        profile = parse_profile(user.profile)
        details = build_subscription_details(user, profile)
        subscription_status = derive_subscription_status(user, details, now)

        if user.tenant is not None:
            key = user.tenant.id
            name = user.tenant.name
            slug = user.tenant.slug
            status = user.tenant.status
        else:
            key = f"individual-{user.id}"
            name = tenant_name_from_profile(profile) or INDIVIDUAL_TENANT_NAME
            slug = slugify(name)
            status = "ACTIVE"

        summary = tenants.get(key)
        if summary is None:
            summary = TenantSummary(
                tenant_id=key,
                tenant_name=name,
                tenant_slug=slug,
                status=status,
                plan=extract_plan_label(details),
                users=[],
            )
            tenants[key] = summary
        elif summary.plan == extract_plan_label(None):
            summary.plan = extract_plan_label(details)

        summary.first_created = _earliest(summary.first_created, user.created_at)
        summary.last_activity = _latest(summary.last_activity, user.updated_at or user.created_at)
        summary.users.append(
            TenantUserItem(
                id=user.id,
                email=user.email,
                first_name=user.first_name,
                last_name=user.last_name,
                phone=user.phone,
                approval_status=user.status,
                created_at=user.created_at,
                trial_start_date=user.trial_start_date,
                trial_end_date=user.trial_end_date,
                extra_trial_days=user.extra_trial_days or 0,
                subscription_status=subscription_status,
                subscription_details=details,
            )
        )

    for summary in tenants.values():
        members = summary.users
        summary.user_count = len(members)
        summary.active_users = sum(1 for u in members if u.approval_status == "ACTIVE")
        summary.pending_users = sum(1 for u in members if u.approval_status in PENDING_STATUSES)
        summary.suspended_users = sum(1 for u in members if u.approval_status == "SUSPENDED")
        summary.expired_trial_users = sum(
            1 for u in members if u.subscription_status == "expired"
        )
        summary.demo_users = sum(1 for u in members if u.subscription_status == "demo")
        summary.subscribed_users = sum(
            1 for u in members if u.subscription_status == "subscribed"
        )

    return TenantListResponse(
        tenants=list(tenants.values()),
        total_tenants=len(tenants),
        total_users=len(users),
    )
