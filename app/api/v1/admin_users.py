"""Admin user-lifecycle endpoints: status, suspend, reject, approve, trial days, delete."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.v1.auth import require_super_admin
from app.core.clock import utcnow
from app.core.config import get_settings
from app.core.database import get_db
from app.schemas.auth import CurrentUser
from app.schemas.users import (
    ApproveResponse,
    BulkDeleteRequest,
    BulkDeleteResponse,
    DeleteResponse,
    RejectRequest,
    RejectResponse,
    StatusUpdateRequest,
    StatusUpdateResponse,
    SubscriptionStatusResponse,
    SuspendData,
    SuspendRequest,
    SuspendResponse,
    SuspensionInfo,
    TrialDaysRequest,
    TrialDaysResponse,
    UserOut,
)
from app.services import users as user_service
from app.services.profile import build_subscription_details, parse_profile
from app.services.users import (
    ProtectedUserError,
    UserAlreadySuspendedError,
    UserNotFoundError,
    UserServiceError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)

router = APIRouter()

AdminUser = Annotated[CurrentUser, Depends(require_super_admin)]
DbSession = Annotated[Session, Depends(get_db)]


def to_http_exception(e: UserServiceError) -> HTTPException:
    """Map a user-service failure to its HTTP status; the message is already localized."""
    if isinstance(e, UserNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(
        e, (ValidationFailedError, ProtectedUserError, UserAlreadySuspendedError)
    ):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=e.message)


def server_error(db: Session, action: str, user_id: str, message: str) -> HTTPException:
    """Roll back, log the real cause, and hide it from the caller."""
    db.rollback()
    logger.exception("Admin action failed", extra={"action": action, "user_id": user_id})
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


@router.delete("/bulk-delete", response_model=BulkDeleteResponse)
def bulk_delete(body: BulkDeleteRequest, admin: AdminUser, db: DbSession) -> BulkDeleteResponse:
    """Delete several users at once. Super admins are skipped; the caller cannot delete themself."""
    try:
        deleted = user_service.bulk_delete_users(db, body.user_ids, admin.id)
    except UserServiceError as e:
        raise to_http_exception(e) from e
    except SQLAlchemyError as e:
        raise server_error(db, "bulk_delete", "", "Kullanıcılar silinirken bir hata oluştu") from e
    return BulkDeleteResponse(
        message=f"{deleted} kullanıcı başarıyla silindi",
        deleted_count=deleted,
    )


@router.post("/{user_id}/status", response_model=StatusUpdateResponse)
def update_user_status(
    user_id: str,
    body: StatusUpdateRequest,
    _admin: AdminUser,
    db: DbSession,
) -> StatusUpdateResponse:
    """Set status to ACTIVE, INACTIVE or SUSPENDED. Unknown users get 404, other values 400."""
    try:
        user, message = user_service.update_status(db, user_id, body.status, utcnow())
    except UserServiceError as e:
        raise to_http_exception(e) from e
    except SQLAlchemyError as e:
        raise server_error(
            db, "status", user_id, "Kullanıcı durumu güncellenirken bir hata oluştu"
        ) from e
    return StatusUpdateResponse(message=message, user=UserOut.model_validate(user))


@router.post("/{user_id}/suspend", response_model=SuspendResponse)
def suspend_user(
    user_id: str,
    body: SuspendRequest,
    _admin: AdminUser,
    db: DbSession,
) -> SuspendResponse:
    """
    Suspend a user addressed as "<tenantId>_<email>". Everything after the first
    underscore is the e-mail; an id with no underscore is used as the e-mail as is.
    Persists SUSPENDED and stores the suspension details in the profile.
    """
    try:
        user, suspension = user_service.suspend_user(
            db,
            user_id,
            body.reason,
            utcnow(),
            duration_type=body.duration_type,
            duration_days=body.duration_days,
            can_appeal=body.can_appeal,
        )
    except UserServiceError as e:
        raise to_http_exception(e) from e
    except SQLAlchemyError as e:
        raise server_error(db, "suspend", user_id, "Askıya alma işlemi başarısız") from e
    return SuspendResponse(
        message=f"Kullanıcı {user.email} başarıyla askıya alındı",
        data=SuspendData(
            user=UserOut.model_validate(user),
            suspension=SuspensionInfo.model_validate(suspension),
        ),
    )


@router.post("/{user_id}/reject", response_model=RejectResponse)
def reject_user(
    user_id: str,
    body: RejectRequest,
    _admin: AdminUser,
    db: DbSession,
) -> RejectResponse:
    """Reject an application. The reason is returned but not stored."""
    try:
        user = user_service.reject_user(db, user_id, utcnow())
    except UserServiceError as e:
        raise to_http_exception(e) from e
    except SQLAlchemyError as e:
        raise server_error(db, "reject", user_id, "Kullanıcı reddedilirken bir hata oluştu") from e
    return RejectResponse(
        message="Kullanıcı başvurusu başarıyla reddedildi",
        user=UserOut.model_validate(user),
        reason=body.reason,
    )


@router.post("/{user_id}/approve", response_model=ApproveResponse)
def approve_user(user_id: str, _admin: AdminUser, db: DbSession) -> ApproveResponse:
    """Approve a pending user and start their demo trial."""
    try:
        user, trial_days_left = user_service.approve_user(db, user_id, get_settings(), utcnow())
    except UserServiceError as e:
        raise to_http_exception(e) from e
    except SQLAlchemyError as e:
        raise server_error(db, "approve", user_id, "Kullanıcı onaylanırken bir hata oluştu") from e
    return ApproveResponse(
        message="Kullanıcı başarıyla onaylandı ve demo süresi aktifleştirildi",
        user=UserOut.model_validate(user),
        trial_days_left=trial_days_left,
    )


@router.post("/{user_id}/trial-days", response_model=TrialDaysResponse)
def adjust_trial_days(
    user_id: str,
    body: TrialDaysRequest,
    _admin: AdminUser,
    db: DbSession,
) -> TrialDaysResponse:
    """Extend (add), shorten (subtract) or reset (set) a user's trial."""
    try:
        user, new_end, total_days = user_service.adjust_trial_days(
            db, user_id, body.days, body.action, get_settings(), utcnow()
        )
    except UserServiceError as e:
        raise to_http_exception(e) from e
    except SQLAlchemyError as e:
        raise server_error(
            db, "trial_days", user_id, "Deneme süresi güncellenirken bir hata oluştu"
        ) from e
    return TrialDaysResponse(
        message=user_service.trial_days_message(body.action or ""),
        user=UserOut.model_validate(user),
        new_trial_end_date=new_end,
        total_trial_days=total_days,
    )


@router.get("/{user_id}/subscription-status", response_model=SubscriptionStatusResponse)
def subscription_status(
    user_id: str,
    _admin: AdminUser,
    db: DbSession,
) -> SubscriptionStatusResponse:
    """Subscription details for an ACTIVE user with a trial; otherwise just the status."""
    try:
        user = user_service.get_user(db, user_id)
    except UserServiceError as e:
        raise to_http_exception(e) from e
    if user.status != "ACTIVE" or user.trial_end_date is None:
        return SubscriptionStatusResponse(has_subscription=False, user_status=user.status)
    details = build_subscription_details(user, parse_profile(user.profile))
    return SubscriptionStatusResponse(
        has_subscription=True,
        user_status=user.status,
        subscription_details=details,
    )


@router.delete("/{user_id}", response_model=DeleteResponse)
def delete_user(user_id: str, _admin: AdminUser, db: DbSession) -> DeleteResponse:
    """Delete a user and their dependent data. Super admins cannot be deleted."""
    try:
        deleted_id, role = user_service.delete_user(db, user_id)
    except UserServiceError as e:
        raise to_http_exception(e) from e
    except SQLAlchemyError as e:
        raise server_error(db, "delete", user_id, "Kullanıcı silinirken bir hata oluştu") from e
    return DeleteResponse(
        message="Kullanıcı ve ilgili tüm veriler başarıyla silindi",
        deleted_user_id=deleted_id,
        user_role=role,
    )
