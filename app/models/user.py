"""
Profile and role models mirrored from the hosted auth schema
"""
from sqlalchemy import Column, String, DateTime, Uuid
from app.database import Base
from app.utils.timeutils import utc_now
import uuid


class Profile(Base):
    """
    Profiles table - id matches the auth provider's user id
    """
    __tablename__ = "profiles"

    id = Column(Uuid, primary_key=True)
    full_name = Column(String(255))
    email = Column(String(255))
    created_at = Column(DateTime(timezone=True), default=utc_now)

    def __repr__(self):
        return f"<Profile(id={self.id}, full_name={self.full_name})>"


class UserRole(Base):
    """
    User roles table - super_admin, client_admin, manager, author, user
    """
    __tablename__ = "user_roles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    role = Column(String(32), nullable=False, default="user")
    created_at = Column(DateTime(timezone=True), default=utc_now)

    def __repr__(self):
        return f"<UserRole(user_id={self.user_id}, role={self.role})>"
