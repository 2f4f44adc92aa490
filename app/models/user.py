"""ORM model for application users (auth, RBAC, trial and lifecycle state)."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """
    User account for cookie JWT authentication, role-based access and trial tracking.

    role: SUPER_ADMIN, TENANT_ADMIN or TENANT_USER
    status: ACTIVE, INACTIVE, SUSPENDED, REJECTED, PENDING_APPROVAL or TRIAL_EXPIRED
    profile: serialized JSON blob; holds ad-hoc keys such as "subscription" and "suspension"
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    phone = Column(String(32), nullable=True)
    role = Column(String(32), nullable=False, default="TENANT_USER")
    status = Column(String(32), nullable=False, default="PENDING_APPROVAL", index=True)
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    trial_start_date = Column(DateTime(timezone=True), nullable=True)
    trial_end_date = Column(DateTime(timezone=True), nullable=True, index=True)
    extra_trial_days = Column(Integer, nullable=False, default=0)
    profile = Column(Text, nullable=False, default="{}")
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    tenant = relationship("Tenant", back_populates="users")
