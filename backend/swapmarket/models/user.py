"""User, role and swap credit models"""

import enum
import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import relationship

from swapmarket.core.database import Base, utc_now


class RoleName(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"


class Role(Base):
    """Role table"""
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), unique=True, nullable=False)


class UserProfile(Base):
    """User profile table"""
    __tablename__ = "user_profile"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)

    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False)
    role = relationship(Role, lazy="joined")

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utc_now, nullable=False, index=True)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)
    last_login_at = Column(DateTime, nullable=True)

    @property
    def role_name(self) -> str:
        return self.role.name if self.role is not None else RoleName.USER.value

    @property
    def is_admin(self) -> bool:
        return self.role_name == RoleName.ADMIN.value

    @property
    def full_name(self) -> str:
        parts = [p.strip() for p in (self.first_name, self.last_name) if p and p.strip()]
        return " ".join(parts)


class SwapLimit(Base):
    """Swap credit account, one row per user"""
    __tablename__ = "swap_limits"

    user_id = Column(Uuid, ForeignKey("user_profile.id", ondelete="CASCADE"), primary_key=True)
    total_swaps = Column(Integer, default=0, nullable=False)
    used_swaps = Column(Integer, default=0, nullable=False)
    earned_swaps = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    @property
    def available(self) -> int:
        return max(self.total_swaps + self.earned_swaps - self.used_swaps, 0)
