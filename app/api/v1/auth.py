"""Cookie JWT login/logout and auth dependencies (get_current_user, require_super_admin)."""

import logging
import secrets
from typing import Annotated, Any

import jwt
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.config import get_settings
from app.core.database import get_db
from app.core.security import (
    create_access_token,
    decode_access_token,
    token_lifetime,
    verify_password,
)
from app.models import User
from app.schemas.auth import CurrentUser, LoginRequest, LoginResponse
from app.schemas.common import MessageResponse
from app.schemas.users import PRIVILEGED_ROLE, UserOut
from app.services.trial import should_block_login

logger = logging.getLogger(__name__)

router = APIRouter()

CRON_SECRET_HEADER = "X-Cron-Secret"

# Statuses that may not log in, with the page the client should send them to.
BLOCKED_LOGIN_STATUSES = {
    "SUSPENDED": ("Hesabınız askıya alınmıştır. Lütfen yöneticiye başvurun.", "/suspended"),
    "REJECTED": ("Hesap başvurunuz reddedilmiştir.", "/auth/rejected"),
    "TRIAL_EXPIRED": (
        "Demo süreniz sona ermiştir. Lütfen bir abonelik planı seçin.",
        "/subscription",
    ),
}


def _set_token_cookie(response: Response, value: str, max_age: int) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.ACCESS_TOKEN_COOKIE,
        value=value,
        max_age=max_age,
        path="/",
        httponly=True,
        secure=settings.APP_ENV == "prod",
        samesite="strict",
    )


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> LoginResponse:
    """
    Authenticate with e-mail and password. On success the JWT is set in the
    httpOnly access_token cookie; the body carries the user.
    """
    user = db.query(User).filter(User.email == body.email.strip().lower()).first()
    if user is None or not verify_password(body.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="E-posta veya şifre hatalı",
        )

    now = utcnow()
    blocked = BLOCKED_LOGIN_STATUSES.get(user.status)
    if blocked is None and should_block_login(user, now):
        blocked = BLOCKED_LOGIN_STATUSES["TRIAL_EXPIRED"]
    if blocked is not None:
        message, redirect_to = blocked
        logger.info("Login refused", extra={"user_id": user.id, "status": user.status})
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": message, "redirectTo": redirect_to},
        )

    user.last_login_at = now
    db.commit()
    db.refresh(user)

    token = create_access_token(
        user_id=user.id,
        email=user.email,
        role=user.role,
        status=user.status,
        tenant_id=user.tenant_id,
        trial_end_date=user.trial_end_date,
        remember_me=body.remember_me,
    )
    _set_token_cookie(
        response,
        token,
        int(token_lifetime(body.remember_me).total_seconds()),
    )
    return LoginResponse(message="Giriş başarılı", user=UserOut.model_validate(user))


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response) -> MessageResponse:
    """Clear the access_token cookie. Succeeds whether or not a session existed."""
    _set_token_cookie(response, "", 0)
    return MessageResponse(message="Çıkış başarılı")


def get_token_claims(request: Request) -> dict[str, Any]:
    """Dependency: decoded claims of the access_token cookie. Raises 401 if missing or invalid."""
    token = request.cookies.get(get_settings().ACCESS_TOKEN_COOKIE)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token bulunamadı",
        )
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Geçersiz veya süresi dolmuş token",
        )
    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Geçersiz token içeriği",
        )
    return payload


def get_current_user_record(
    claims: Annotated[dict[str, Any], Depends(get_token_claims)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Dependency: the ORM user behind the token. Raises 401 if it no longer exists."""
    user = db.query(User).filter(User.id == str(claims["sub"])).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Kullanıcı bulunamadı",
        )
    return user


def get_current_user(
    user: Annotated[User, Depends(get_current_user_record)],
) -> CurrentUser:
    """Dependency: require a valid access_token cookie and return the current user."""
    return CurrentUser(
        id=user.id,
        email=user.email,
        role=user.role,
        status=user.status,
        tenant_id=user.tenant_id,
    )


def require_super_admin(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Dependency: require an authenticated SUPER_ADMIN. Raises 403 otherwise."""
    if current_user.role != PRIVILEGED_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Yetkisiz erişim",
        )
    return current_user


def require_cron_or_super_admin(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> str:
    """
    Dependency for the trial-expiry endpoints: accept the X-Cron-Secret header when
    CRON_SECRET is configured, otherwise fall back to a super-admin cookie.
    Returns who is calling ("cron" or the admin's e-mail).
    """
    expected = get_settings().CRON_SECRET
    provided = request.headers.get(CRON_SECRET_HEADER)
    if expected is not None and provided:
        if secrets.compare_digest(provided, expected.get_secret_value()):
            return "cron"
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Yetkisiz erişim",
        )
    user = get_current_user_record(get_token_claims(request), db)
    admin = require_super_admin(get_current_user(user))
    return admin.email


@router.get("/me", response_model=UserOut)
def me(user: Annotated[User, Depends(get_current_user_record)]) -> UserOut:
    """The authenticated user's record."""
    return UserOut.model_validate(user)
