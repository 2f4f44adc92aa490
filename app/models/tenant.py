"""ORM model for tenants (customer organizations)."""

import uuid

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin


class Tenant(Base, TimestampMixin):
    """
    An isolated customer organization. Users belong to at most one tenant.

    status: ACTIVE, SUSPENDED, TRIAL or CANCELLED
    """

    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    status = Column(String(32), nullable=False, default="TRIAL")

    users = relationship(
        "User",
        back_populates="tenant",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
