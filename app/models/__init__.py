"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.tenant import Tenant
from app.models.user import User

__all__ = ["Base", "Tenant", "User"]
