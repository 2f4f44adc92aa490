"""Password hashing and JWT creation/verification for the access_token cookie."""

from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from app.core.config import settings

# Bcrypt cost (rounds); matches the cost used when accounts are registered.
BCRYPT_ROUNDS = 12

EMAIL_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def token_lifetime(remember_me: bool = False) -> timedelta:
    """Lifetime shared by the JWT exp claim and the cookie max-age."""
    if remember_me:
        return timedelta(days=settings.JWT_REMEMBER_ME_DAYS)
    return timedelta(minutes=settings.JWT_EXPIRE_MINUTES)


def create_access_token(
    user_id: str,
    email: str,
    role: str,
    status: str,
    tenant_id: str | None = None,
    trial_end_date: datetime | None = None,
    remember_me: bool = False,
) -> str:
    """Create a JWT carrying the user's id (sub), email, role, status, tenant and trial end."""
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "status": status,
        "tenantId": tenant_id,
        "trialEndDate": trial_end_date.isoformat() if trial_end_date else None,
        "exp": now + token_lifetime(remember_me),
        "iat": now,
    }
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.encode(
        payload,
        secret,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate JWT; return the claims.
    Raises jwt.PyJWTError on invalid or expired token.
    """
    secret = settings.JWT_SECRET.get_secret_value()
    return jwt.decode(
        token,
        secret,
        algorithms=[settings.JWT_ALGORITHM],
    )
