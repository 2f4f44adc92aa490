"""Trial policy: expiry checks, the login-block decision, the expiry report and sweep."""

import logging
import math
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.clock import as_utc
from app.models import Tenant, User
from app.schemas.trial import (
    BlockedUserItem,
    TrialReportResponse,
    TrialSweepResponse,
    TrialSweepResult,
    TrialUserItem,
)
from app.schemas.users import TENANT_ADMIN_ROLE
from app.services.profile import has_active_subscription, has_paid_subscription, parse_profile

logger = logging.getLogger(__name__)

TRIAL_EXPIRED_STATUS = "TRIAL_EXPIRED"
TENANT_SUSPENDED_STATUS = "SUSPENDED"


def is_trial_expired(trial_end_date: datetime | None, now: datetime) -> bool:
    """True when the trial ended strictly before now. No trial end means not expired."""
    if trial_end_date is None:
        return False
    return as_utc(trial_end_date) < as_utc(now)


def should_block_login(user: User, now: datetime) -> bool:
    """
    Login is blocked exactly when the user is a tenant admin, the trial ended
    strictly before now, and the profile holds no activated subscription.
    """
    if user.role != TENANT_ADMIN_ROLE:
        return False
    if not is_trial_expired(user.trial_end_date, now):
        return False
    return not has_active_subscription(parse_profile(user.profile))


def days_left(trial_end_date: datetime | None, now: datetime) -> int:
    """Whole days remaining (ceiling); 0 when there is no trial or it has ended."""
    if trial_end_date is None:
        return 0
    remaining = (as_utc(trial_end_date) - as_utc(now)).total_seconds() / 86400
    return max(0, math.ceil(remaining))


def _keeps_access(user: User) -> bool:
    """Paying users stay ACTIVE past their trial end; the demo marker does not count."""
    return has_paid_subscription(parse_profile(user.profile))


def _tenant_name(user: User) -> str | None:
    return user.tenant.name if user.tenant is not None else None


def _report_item(user: User) -> TrialUserItem:
    return TrialUserItem(
        id=user.id,
        email=user.email,
        tenant_name=_tenant_name(user),
        trial_end_date=user.trial_end_date,
        extra_trial_days=user.extra_trial_days or 0,
    )


def trial_report(session: Session, now: datetime, expiring_soon_days: int) -> TrialReportResponse:
    """
    Active users the sweep would expire now (trial ended, no paid subscription), and
    those whose trial ends within the window.
    """
    horizon = now + timedelta(days=expiring_soon_days)
    ended = (
        session.query(User)
        .filter(User.status == "ACTIVE", User.trial_end_date < now)
        .order_by(User.trial_end_date)
        .all()
    )
    expired = [u for u in ended if not _keeps_access(u)]
    expiring_soon = (
        session.query(User)
        .filter(
            User.status == "ACTIVE",
            User.trial_end_date >= now,
            User.trial_end_date < horizon,
        )
        .order_by(User.trial_end_date)
        .all()
    )
    return TrialReportResponse(
        current_time=now,
        expired_users=len(expired),
        expiring_soon_users=len(expiring_soon),
        expired_users_list=[_report_item(u) for u in expired],
        expiring_soon_list=[_report_item(u) for u in expiring_soon],
    )


def _expire_user(session: Session, user: User, now: datetime) -> TrialSweepResult:
    """Expire one user; suspend their tenant and expire the tenant's other active users."""
    user.status = TRIAL_EXPIRED_STATUS
    user.updated_at = now
    sub_users_affected = 0
    if user.tenant_id:
        session.query(Tenant).filter(Tenant.id == user.tenant_id).update(
            {Tenant.status: TENANT_SUSPENDED_STATUS, Tenant.updated_at: now},
            synchronize_session=False,
        )
        sub_users_affected = (
            session.query(User)
            .filter(
                User.tenant_id == user.tenant_id,
                User.id != user.id,
                User.status == "ACTIVE",
            )
            .update(
                {User.status: TRIAL_EXPIRED_STATUS, User.updated_at: now},
                synchronize_session=False,
            )
        )
    session.flush()
    return TrialSweepResult(
        user_id=user.id,
        email=user.email,
        tenant_name=_tenant_name(user),
        trial_end_date=user.trial_end_date,
        sub_users_affected=sub_users_affected,
    )


def run_trial_expiry(session: Session, now: datetime) -> TrialSweepResponse:
    """
    Sweep: every ACTIVE user whose trial ended before now and who has no paid
    subscription becomes TRIAL_EXPIRED, and so does the rest of their tenant.

    Each user runs in a savepoint; a database failure for one user is logged, reported
    in its result entry, and does not stop the sweep. Idempotent.
    """
    candidates = (
        session.query(User)
        .filter(User.status == "ACTIVE", User.trial_end_date < now)
        .order_by(User.trial_end_date)
        .all()
    )

    results: list[TrialSweepResult] = []
    expired_users_count = 0
    suspended_tenants: set[str] = set()
    for user in candidates:
        # An earlier user of the same tenant may already have expired this one.
        if user.status != "ACTIVE":
            continue
        if _keeps_access(user):
            continue
        user_id, email = user.id, user.email
        try:
            with session.begin_nested():
                result = _expire_user(session, user, now)
        except SQLAlchemyError as e:
            logger.exception("Trial expiry failed for user %s", user_id)
            results.append(
                TrialSweepResult(user_id=user_id, email=email, error=type(e).__name__)
            )
            continue
        expired_users_count += 1
        if user.tenant_id:
            suspended_tenants.add(user.tenant_id)
        results.append(result)
        # Bulk updates bypass the identity map; reload the remaining candidates' status.
        session.expire_all()

    session.commit()
    logger.info(
        "Trial expiry sweep completed",
        extra={
            "expired_users": expired_users_count,
            "suspended_tenants": len(suspended_tenants),
            "failures": sum(1 for r in results if r.error),
        },
    )
    return TrialSweepResponse(
        message="Deneme süresi kontrolü tamamlandı",
        expired_users_count=expired_users_count,
        expired_tenants_count=len(suspended_tenants),
        check_date=now,
        results=results,
    )


def find_blocked_users(session: Session, now: datetime) -> list[BlockedUserItem]:
    """Tenant admins whose login is currently blocked by an expired, unpaid trial."""
    users = (
        session.query(User)
        .filter(User.role == TENANT_ADMIN_ROLE, User.trial_end_date < now)
        .order_by(User.trial_end_date)
        .all()
    )
    return [
        BlockedUserItem(id=u.id, email=u.email, trial_end_date=u.trial_end_date)
        for u in users
        if should_block_login(u, now)
    ]
