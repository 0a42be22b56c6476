"""Notification models"""

import enum
import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, Uuid

from swapmarket.core.database import Base, utc_now


class NotificationCategory(str, enum.Enum):
    PRODUCT_UPDATES = "product_updates"
    SWAP_EVENTS = "swap_events"
    SHOUTOUTS = "shoutouts"
    GENERAL = "general"


class DigestFrequency(str, enum.Enum):
    OFF = "off"
    DAILY = "daily"
    WEEKLY = "weekly"


class Notification(Base):
    """In-app notifications"""
    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("user_profile.id"), nullable=False, index=True)
    message = Column(Text, nullable=False)
    category = Column(String(30), default=NotificationCategory.GENERAL.value, nullable=False)
    read_status = Column(Boolean, default=False, nullable=False, index=True)

    created_at = Column(DateTime, default=utc_now, nullable=False, index=True)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)


class NotificationPreference(Base):
    """Per-user notification settings; a missing row means the defaults"""
    __tablename__ = "notification_preferences"

    user_id = Column(Uuid, ForeignKey("user_profile.id", ondelete="CASCADE"), primary_key=True)
    email_enabled = Column(Boolean, default=True, nullable=False)
    push_enabled = Column(Boolean, default=False, nullable=False)
    product_updates = Column(Boolean, default=True, nullable=False)
    swap_events = Column(Boolean, default=True, nullable=False)
    shoutouts = Column(Boolean, default=True, nullable=False)
    digest = Column(String(10), default=DigestFrequency.DAILY.value, nullable=False)
    last_digest_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    def allows(self, category: str) -> bool:
        """Whether new notifications of ``category`` should be stored"""
        if category == NotificationCategory.PRODUCT_UPDATES.value:
            return bool(self.product_updates)
        if category == NotificationCategory.SWAP_EVENTS.value:
            return bool(self.swap_events)
        if category == NotificationCategory.SHOUTOUTS.value:
            return bool(self.shoutouts)
        return True
