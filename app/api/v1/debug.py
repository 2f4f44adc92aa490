"""Debug endpoints: token claims, raw/parsed profile blobs, trial and subscription decisions."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user_record, get_token_claims, require_super_admin
from app.core.clock import utcnow
from app.core.database import get_db
from app.models import User
from app.schemas.auth import CurrentUser
from app.schemas.debug import (
    DebugUserProfileResponse,
    DebugUserRoleResponse,
    DebugUserSubscriptionResponse,
    DebugUserTrialResponse,
)
from app.schemas.trial import TrialDecision, TrialInfo
from app.schemas.users import PRIVILEGED_ROLE, TENANT_ADMIN_ROLE, UserOut
from app.services.profile import (
    get_subscription,
    has_active_subscription,
    parse_profile,
    parse_profile_for_debug,
)
from app.services.trial import is_trial_expired, should_block_login

router = APIRouter()


def _user_by_email(db: Session, email: str) -> User:
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/user-role", response_model=DebugUserRoleResponse)
def user_role(
    claims: Annotated[dict[str, Any], Depends(get_token_claims)],
    user: Annotated[User, Depends(get_current_user_record)],
) -> DebugUserRoleResponse:
    """Decoded token claims next to the stored record, to spot stale role claims."""
    return DebugUserRoleResponse(
        token_data=claims,
        database_data=UserOut.model_validate(user),
        roles_match=claims.get("role") == user.role,
        can_access_tenant_admin=user.role in (TENANT_ADMIN_ROLE, PRIVILEGED_ROLE),
    )


@router.get("/user-profile", response_model=DebugUserProfileResponse)
def user_profile(
    user: Annotated[User, Depends(get_current_user_record)],
) -> DebugUserProfileResponse:
    """The caller's profile blob, raw and parsed. A broken blob shows an error marker."""
    return DebugUserProfileResponse(
        user_id=user.id,
        email=user.email,
        status=user.status,
        role=user.role,
        trial_end_date=user.trial_end_date,
        raw_profile=user.profile,
        parsed_profile=parse_profile_for_debug(user.profile),
    )


@router.get("/user-trial", response_model=DebugUserTrialResponse)
def user_trial(
    _admin: Annotated[CurrentUser, Depends(require_super_admin)],
    db: Annotated[Session, Depends(get_db)],
    email: Annotated[str, Query(min_length=3, max_length=255)],
) -> DebugUserTrialResponse:
    """Explain the login-block decision for one user."""
    user = _user_by_email(db, email)
    now = utcnow()
    profile = parse_profile(user.profile)
    blocked = should_block_login(user, now)
    return DebugUserTrialResponse(
        user=UserOut.model_validate(user),
        trial_info=TrialInfo(
            trial_end_date=user.trial_end_date,
            current_date=now,
            is_trial_expired=is_trial_expired(user.trial_end_date, now),
            has_active_subscription=has_active_subscription(profile),
            profile_data=profile,
        ),
        decision=TrialDecision(
            should_block_login=blocked,
            message="TRIAL_EXPIRED - Login should be blocked" if blocked else "Login should be allowed",
        ),
    )


@router.get("/user-subscription", response_model=DebugUserSubscriptionResponse)
def user_subscription(
    _admin: Annotated[CurrentUser, Depends(require_super_admin)],
    db: Annotated[Session, Depends(get_db)],
    email: Annotated[str, Query(min_length=3, max_length=255)],
) -> DebugUserSubscriptionResponse:
    """Subscription marker as stored in one user's profile."""
    user = _user_by_email(db, email)
    parsed = parse_profile_for_debug(user.profile)
    subscription = get_subscription(parsed)
    return DebugUserSubscriptionResponse(
        user=UserOut.model_validate(user),
        tenant_name=user.tenant.name if user.tenant is not None else None,
        raw_profile=user.profile,
        parsed_profile=parsed,
        subscription_data=subscription,
        has_subscription=has_active_subscription(parsed),
    )
