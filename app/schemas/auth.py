"""Request/response schemas for auth endpoints."""

from pydantic import Field

from app.schemas.common import CamelModel
from app.schemas.users import UserOut


class LoginRequest(CamelModel):
    """Credentials for login."""

    email: str = Field(..., min_length=3, max_length=255, description="E-mail address")
    password: str = Field(..., min_length=8, max_length=128, description="Password")
    remember_me: bool = Field(default=False, description="Extend token and cookie lifetime")


class LoginResponse(CamelModel):
    """Login payload; the token itself travels in the access_token cookie."""

    message: str
    user: UserOut


class CurrentUser(CamelModel):
    """Authenticated user (id, email, role, tenant) for dependency injection."""

    id: str
    email: str
    role: str
    status: str
    tenant_id: str | None = None
