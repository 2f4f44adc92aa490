"""Endpoints about the signed-in user's own account state."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.v1.auth import get_current_user_record
from app.core.clock import utcnow
from app.models import User
from app.schemas.users import CurrentUserStatusResponse, UserOut, UserSuspensionResponse
from app.services.profile import SUSPENSION_KEY, is_demo_subscription, parse_profile
from app.services.trial import is_trial_expired

router = APIRouter()


@router.get("/status", response_model=CurrentUserStatusResponse)
def account_status(
    user: Annotated[User, Depends(get_current_user_record)],
) -> CurrentUserStatusResponse:
    """
    The caller's status. An ACTIVE demo user whose trial has ended is flagged with
    trialExpired and sent to the subscription page.
    """
    out = CurrentUserStatusResponse.model_validate(user)
    if user.status == "ACTIVE" and is_demo_subscription(parse_profile(user.profile)):
        if is_trial_expired(user.trial_end_date, utcnow()):
            out.trial_expired = True
            out.redirect_to = "/subscription"
    return out


@router.get("/suspension", response_model=UserSuspensionResponse)
def account_suspension(
    user: Annotated[User, Depends(get_current_user_record)],
) -> UserSuspensionResponse:
    """Details of the caller's suspension, as recorded by the admin suspend action."""
    if user.status != "SUSPENDED":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Kullanıcı askıya alınmamış",
        )
    suspension = parse_profile(user.profile).get(SUSPENSION_KEY)
    if not isinstance(suspension, dict):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Aktif askıya alma kaydı bulunamadı",
        )
    return UserSuspensionResponse(user=UserOut.model_validate(user), suspension=suspension)
