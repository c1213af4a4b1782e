"""ORM model for application users (auth and RBAC)."""

from sqlalchemy import Boolean, Column, DateTime, String, func

from devnexus.models.base import Base


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    role: 'Admin', 'Developer' or 'User' (see devnexus.core.roles.Role).
    password_hash is NULL for accounts that only sign in through an external identity.
    """

    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    username = Column(String(100), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, default="")
    display_name = Column(String(255), nullable=False, default="")
    role = Column(String(32), nullable=False, default="User")
    external_id = Column(String(255), nullable=False, default="")
    password_hash = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    last_login_at = Column(DateTime(timezone=True), nullable=True)
