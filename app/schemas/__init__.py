"""Pydantic request/response schemas."""

from app.schemas.common import CamelModel, MessageResponse
from app.schemas.health import HealthResponse
from app.schemas.users import (
    USER_ROLE_VALUES,
    USER_STATUS_VALUES,
    UserOut,
    UserRole,
    UserStatus,
)

__all__ = [
    "CamelModel",
    "HealthResponse",
    "MessageResponse",
    "USER_ROLE_VALUES",
    "USER_STATUS_VALUES",
    "UserOut",
    "UserRole",
    "UserStatus",
]
