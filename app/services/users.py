"""Admin user lifecycle: status changes, suspension, rejection, approval, trial days, deletion.

Every operation works on one SQLAlchemy session and commits on success. Domain
failures raise UserServiceError subclasses carrying a localized message; the
routers map them to HTTP status codes.
"""

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy.orm import Session

from app.core.clock import as_utc
from app.models import Tenant, User
from app.schemas.users import (
    ADMIN_SETTABLE_STATUSES,
    PRIVILEGED_ROLE,
    TRIAL_ACTIONS,
)
from app.services.profile import (
    SUBSCRIPTION_KEY,
    SUSPENSION_KEY,
    demo_trial_subscription,
    dump_profile,
    parse_profile,
    standard_subscription,
)
from app.services.trial import TRIAL_EXPIRED_STATUS, days_left

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    "ACTIVE": "aktif",
    "INACTIVE": "pasif",
    "SUSPENDED": "askıya alındı",
}


class UserServiceError(Exception):
    """Base for user lifecycle failures; message is safe to show to the caller."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationFailedError(UserServiceError):
    """Missing or malformed input."""


class InvalidStatusError(ValidationFailedError):
    """Status value outside the allowed set."""


class UserNotFoundError(UserServiceError):
    """No user matches the identifier."""


class ProtectedUserError(UserServiceError):
    """Operation not allowed on a privileged account."""


class UserAlreadySuspendedError(UserServiceError):
    """Suspend requested for a user who is already suspended."""


class TrialNotStartedError(ValidationFailedError):
    """Trial-day adjustment requested for a user without a trial."""


def extract_email_from_composite_id(identifier: str) -> str:
    """
    Admin views address users as "<tenantId>_<email>". Return the email part:
    everything after the first underscore, so underscores inside the email survive.
    Identifiers without an underscore are returned unchanged.
    """
    if "_" not in identifier:
        return identifier
    return identifier.split("_", 1)[1]


def _require_id(user_id: str | None) -> str:
    if not user_id or not user_id.strip():
        raise ValidationFailedError("Kullanıcı ID'si gerekli")
    return user_id.strip()


def get_user(session: Session, user_id: str) -> User:
    user = session.query(User).filter(User.id == user_id).first()
    if user is None:
        raise UserNotFoundError("Kullanıcı bulunamadı")
    return user


def get_user_by_email(session: Session, email: str) -> User:
    user = session.query(User).filter(User.email == email.strip().lower()).first()
    if user is None:
        raise UserNotFoundError("Kullanıcı bulunamadı")
    return user


def update_status(
    session: Session,
    user_id: str | None,
    status: str | None,
    now: datetime,
) -> tuple[User, str]:
    """
    Set status to one of ACTIVE, INACTIVE, SUSPENDED. All validation runs before
    any write, so a rejected request leaves storage untouched.
    Returns (user, localized success message).
    """
    user_id = _require_id(user_id)
    if not status:
        raise ValidationFailedError("Durum bilgisi gerekli")
    if status not in ADMIN_SETTABLE_STATUSES:
        raise InvalidStatusError("Geçersiz durum bilgisi")

    user = get_user(session, user_id)
    previous = user.status
    user.status = status
    user.updated_at = now
    session.commit()
    session.refresh(user)
    logger.info(
        "User status updated",
        extra={"user_id": user.id, "from_status": previous, "to_status": status},
    )
    return user, f"Kullanıcı durumu başarıyla {STATUS_LABELS[status]} olarak güncellendi"


def suspend_user(
    session: Session,
    identifier: str,
    reason: str | None,
    now: datetime,
    duration_type: str | None = None,
    duration_days: int | None = None,
    can_appeal: bool | None = None,
) -> tuple[User, dict[str, Any]]:
    """
    Suspend the user addressed by a composite "<tenantId>_<email>" identifier.

    The e-mail is whatever follows the first underscore, so a bare e-mail that itself
    contains an underscore does not resolve; only underscore-free ids pass through whole.

    Persists status SUSPENDED and records the suspension facts under
    profile["suspension"]. Returns (user, suspension facts).
    """
    if not reason or not reason.strip():
        raise ValidationFailedError("Askıya alma nedeni gerekli")
    email = extract_email_from_composite_id(identifier.strip()).lower()
    user = get_user_by_email(session, email)
    if user.status == "SUSPENDED":
        raise UserAlreadySuspendedError("Kullanıcı zaten askıya alınmış")
    if user.role == PRIVILEGED_ROLE:
        raise ProtectedUserError("Super admin kullanıcısı askıya alınamaz")

    duration_type = duration_type or "temporary"
    duration_days = duration_days or 0
    suspended_until = None
    if duration_type == "temporary" and duration_days > 0:
        suspended_until = (now + timedelta(days=duration_days)).isoformat()
    suspension = {
        "reason": reason.strip(),
        "durationType": duration_type,
        "durationDays": duration_days,
        "canAppeal": bool(can_appeal),
        "suspendedAt": now.isoformat(),
        "suspendedUntil": suspended_until,
    }
    profile = parse_profile(user.profile)
    profile[SUSPENSION_KEY] = suspension
    user.profile = dump_profile(profile)
    user.status = "SUSPENDED"
    user.updated_at = now
    session.commit()
    session.refresh(user)
    logger.info(
        "User suspended",
        extra={"user_id": user.id, "duration_type": duration_type, "duration_days": duration_days},
    )
    return user, suspension


def reject_user(session: Session, user_id: str | None, now: datetime) -> User:
    """Mark the user REJECTED. The caller's reason is echoed by the router, not stored."""
    user = get_user(session, _require_id(user_id))
    user.status = "REJECTED"
    user.updated_at = now
    session.commit()
    session.refresh(user)
    logger.info("User rejected", extra={"user_id": user.id})
    return user


def delete_user(session: Session, user_id: str | None) -> tuple[str, str]:
    """Delete a non-privileged user. Returns (deleted id, role)."""
    user = get_user(session, _require_id(user_id))
    if user.role == PRIVILEGED_ROLE:
        raise ProtectedUserError("Super admin kullanıcısı silinemez")
    deleted_id, role = user.id, user.role
    session.delete(user)
    session.commit()
    logger.info("User deleted", extra={"user_id": deleted_id, "role": role})
    return deleted_id, role


def bulk_delete_users(
    session: Session,
    user_ids: list[str] | None,
    acting_user_id: str | None,
) -> int:
    """Delete the listed users except privileged ones. Returns the number deleted."""
    if not user_ids:
        raise ValidationFailedError("Kullanıcı ID'leri gerekli")
    if acting_user_id and acting_user_id in user_ids:
        raise ValidationFailedError("Kendi hesabınızı silemezsiniz")
    deleted = (
        session.query(User)
        .filter(User.id.in_(user_ids), User.role != PRIVILEGED_ROLE)
        .delete(synchronize_session=False)
    )
    session.commit()
    logger.info("Bulk delete completed", extra={"requested": len(user_ids), "deleted": deleted})
    return deleted


def approve_user(
    session: Session,
    user_id: str | None,
    settings: "Settings",
    now: datetime,
) -> tuple[User, int]:
    """
    Activate the user and start the demo trial. Existing trial dates are kept;
    a demo-trial subscription marker is added unless a subscription exists.
    Returns (user, trial days left).
    """
    user = get_user(session, _require_id(user_id))
    trial_start = user.trial_start_date or now
    trial_end = user.trial_end_date or now + timedelta(days=settings.DEMO_TRIAL_DAYS)

    profile = parse_profile(user.profile)
    if not profile.get(SUBSCRIPTION_KEY):
        profile[SUBSCRIPTION_KEY] = demo_trial_subscription(now, settings.DEMO_TRIAL_DAYS)

    user.status = "ACTIVE"
    user.trial_start_date = trial_start
    user.trial_end_date = trial_end
    user.profile = dump_profile(profile)
    user.updated_at = now
    session.commit()
    session.refresh(user)
    logger.info("User approved", extra={"user_id": user.id})
    return user, days_left(trial_end, now)


def adjust_trial_days(
    session: Session,
    user_id: str | None,
    days: int | None,
    action: str | None,
    settings: "Settings",
    now: datetime,
) -> tuple[User, datetime, int]:
    """
    add / subtract shift the trial end and the extra-days counter; set recomputes the
    end from trial start + TRIAL_DAYS + days. An add that moves a TRIAL_EXPIRED
    user's end into the future reactivates them.
    Returns (user, new trial end, total trial days).
    """
    user_id = _require_id(user_id)
    if not days or not action:
        raise ValidationFailedError("Gün sayısı ve işlem tipi gerekli")
    user = get_user(session, user_id)
    if user.trial_end_date is None:
        raise TrialNotStartedError("Kullanıcının aktif bir deneme süresi yok")
    if action not in TRIAL_ACTIONS:
        raise ValidationFailedError("Geçersiz işlem tipi")

    current_end = as_utc(user.trial_end_date)
    extra = user.extra_trial_days or 0
    if action == "add":
        new_end = current_end + timedelta(days=days)
        extra += days
    elif action == "subtract":
        new_end = current_end - timedelta(days=days)
        extra -= days
    else:
        start = as_utc(user.trial_start_date) or current_end - timedelta(days=settings.TRIAL_DAYS)
        new_end = start + timedelta(days=settings.TRIAL_DAYS + days)
        extra = days

    user.trial_end_date = new_end
    user.extra_trial_days = extra
    user.updated_at = now
    if action == "add" and user.status == TRIAL_EXPIRED_STATUS and new_end > as_utc(now):
        user.status = "ACTIVE"
    session.commit()
    session.refresh(user)
    logger.info(
        "Trial days adjusted",
        extra={"user_id": user.id, "action": action, "days": days, "extra_trial_days": extra},
    )
    return user, new_end, settings.TRIAL_DAYS + extra


def trial_days_message(action: str) -> str:
    verb = {"add": "uzatıldı", "subtract": "kısaltıldı"}.get(action, "güncellendi")
    return f"Deneme süresi başarıyla {verb}"


def attach_subscription(session: Session, email: str, now: datetime) -> tuple[User, bool]:
    """Attach the standard subscription unless one exists. Returns (user, attached)."""
    user = get_user_by_email(session, email)
    profile = parse_profile(user.profile)
    if profile.get(SUBSCRIPTION_KEY):
        return user, False
    profile[SUBSCRIPTION_KEY] = standard_subscription(now)
    user.profile = dump_profile(profile)
    user.updated_at = now
    session.commit()
    logger.info("Subscription attached", extra={"user_id": user.id})
    return user, True


def set_status_by_email(session: Session, email: str, status: str, now: datetime) -> User:
    """Used by maintenance scripts addressing users by email."""
    user = get_user_by_email(session, email)
    user.status = status
    user.updated_at = now
    session.commit()
    session.refresh(user)
    return user


def list_users(session: Session, status: str | None = None) -> list[User]:
    query = session.query(User)
    if status:
        query = query.filter(User.status == status)
    return query.order_by(User.created_at.desc()).all()


def dashboard_stats(session: Session, recent_limit: int = 10) -> dict[str, Any]:
    """Counts for the admin dashboard plus the most recent registrations."""
    recent = session.query(User).order_by(User.created_at.desc()).limit(recent_limit).all()
    return {
        "total_users": session.query(User).count(),
        "total_tenants": session.query(Tenant).count(),
        "pending_users": session.query(User).filter(User.status == "PENDING_APPROVAL").count(),
        "active_users": session.query(User).filter(User.status == "ACTIVE").count(),
        "recent_activity": [
            {
                "id": u.id,
                "description": f"{u.email} kaydı oluşturuldu",
                "timestamp": u.created_at,
            }
            for u in recent
        ],
    }
