"""Notification service

Notifications are inserted as side effects of other operations, so ``notify``
only adds rows to the caller's session; the caller owns the transaction.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from swapmarket.core.database import utc_now
from swapmarket.core.exceptions import NotFoundError
from swapmarket.models.notification import (
    DigestFrequency,
    Notification,
    NotificationCategory,
    NotificationPreference,
)

logger = logging.getLogger(__name__)

PREFERENCE_FIELDS = ("email_enabled", "push_enabled", "product_updates", "swap_events", "shoutouts", "digest")


def default_preferences(user_id: UUID) -> NotificationPreference:
    """Unsaved preference row holding the defaults"""
    return NotificationPreference(
        user_id=user_id,
        email_enabled=True,
        push_enabled=False,
        product_updates=True,
        swap_events=True,
        shoutouts=True,
        digest=DigestFrequency.DAILY.value,
    )


class NotificationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load_preferences(self, user_id: UUID) -> Optional[NotificationPreference]:
        result = await self.db.execute(
            select(NotificationPreference).where(NotificationPreference.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_preferences(self, user_id: UUID) -> NotificationPreference:
        prefs = await self._load_preferences(user_id)
        return prefs if prefs is not None else default_preferences(user_id)

    async def update_preferences(self, user_id: UUID, **changes) -> NotificationPreference:
        prefs = await self._load_preferences(user_id)
        if prefs is None:
            prefs = default_preferences(user_id)
            self.db.add(prefs)

        for field, value in changes.items():
            if field not in PREFERENCE_FIELDS or value is None:
                continue
            if isinstance(value, DigestFrequency):
                value = value.value
            setattr(prefs, field, value)

        await self.db.commit()
        logger.info(f"Notification preferences updated for {user_id}")
        return prefs

    async def notify(
        self,
        user_id: UUID,
        message: str,
        category: NotificationCategory = NotificationCategory.GENERAL,
    ) -> Optional[Notification]:
        """Queue a notification unless the recipient disabled the category

        Returns:
            the pending Notification, or None when suppressed
        """
        prefs = await self._load_preferences(user_id)
        if prefs is not None and not prefs.allows(category.value):
            logger.debug(f"Notification suppressed for {user_id} ({category.value})")
            return None

        notification = Notification(
            user_id=user_id,
            message=message,
            category=category.value,
            read_status=False,
        )
        self.db.add(notification)
        return notification

    async def list_for_user(self, user_id: UUID, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.read_status.is_(False))
        stmt = stmt.order_by(Notification.created_at.desc()).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def unread_count(self, user_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.read_status.is_(False),
            )
        )
        return result.scalar() or 0

    async def mark_read(self, user_id: UUID, notification_id: UUID) -> None:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.id == notification_id, Notification.user_id == user_id)
            .values(read_status=True, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError("Notification not found")
        await self.db.commit()

    async def mark_all_read(self, user_id: UUID) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read_status.is_(False))
            .values(read_status=True, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount
