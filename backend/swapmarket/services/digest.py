"""Notification digest emails"""

import logging
from datetime import datetime, timedelta
from html import escape
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from swapmarket.core.config import get_settings
from swapmarket.core.database import utc_now
from swapmarket.models.notification import DigestFrequency, Notification, NotificationPreference
from swapmarket.models.user import UserProfile
from swapmarket.services.email_service import EmailService

logger = logging.getLogger(__name__)
settings = get_settings()

PERIODS = {
    DigestFrequency.DAILY: timedelta(days=1),
    DigestFrequency.WEEKLY: timedelta(days=7),
}


def render_digest(user: UserProfile, notifications: Sequence[Notification], frequency: DigestFrequency) -> Tuple[str, str, str]:
    """Build (subject, text, html) for a digest email"""
    count = len(notifications)
    noun = "notification" if count == 1 else "notifications"
    subject = f"Your {frequency.value} {settings.app_name} digest: {count} unread {noun}"
    greeting = f"Hi {user.first_name}," if user.first_name else "Hi,"

    text_lines = [greeting, "", f"You have {count} unread {noun}:", ""]
    text_lines += [f"- {n.message} ({n.created_at:%Y-%m-%d %H:%M} UTC)" for n in notifications]
    text_lines += ["", f"See everything at {settings.frontend_url.rstrip('/')}/user/notifications"]

    items = "".join(
        f"<li>{escape(n.message)} <span style=\"color:#9ca3af;\">{n.created_at:%Y-%m-%d %H:%M} UTC</span></li>"
        for n in notifications
    )
    html = (
        "<html><body style=\"font-family: Arial, sans-serif; color: #1f2937;\">"
        f"<p>{escape(greeting)}</p>"
        f"<p>You have {count} unread {noun}:</p>"
        f"<ul>{items}</ul>"
        f"<p><a href=\"{escape(settings.frontend_url.rstrip('/'))}/user/notifications\">Open notifications</a></p>"
        "</body></html>"
    )
    return subject, "\n".join(text_lines), html


class DigestService:
    def __init__(self, db: AsyncSession, email_service: Optional[EmailService] = None):
        self.db = db
        self.email_service = email_service or EmailService()

    async def _recipients(self, frequency: DigestFrequency) -> List[Tuple[NotificationPreference, UserProfile]]:
        result = await self.db.execute(
            select(NotificationPreference, UserProfile)
            .join(UserProfile, UserProfile.id == NotificationPreference.user_id)
            .where(
                NotificationPreference.digest == frequency.value,
                NotificationPreference.email_enabled.is_(True),
                UserProfile.is_active.is_(True),
            )
        )
        return [(row[0], row[1]) for row in result.all()]

    async def send(self, frequency: DigestFrequency, now: Optional[datetime] = None) -> int:
        """
        Email each subscribed user their unread notifications for the period

        Only users with an explicit preference row are considered. Users with
        nothing new are skipped and keep their previous ``last_digest_at``.

        Returns:
            number of digests sent
        """
        frequency = DigestFrequency(frequency)
        if frequency == DigestFrequency.OFF:
            return 0

        now = now or utc_now()
        period_start = now - PERIODS[frequency]
        sent = 0

        for prefs, user in await self._recipients(frequency):
            since = max(period_start, prefs.last_digest_at) if prefs.last_digest_at else period_start
            result = await self.db.execute(
                select(Notification)
                .where(
                    Notification.user_id == user.id,
                    Notification.read_status.is_(False),
                    Notification.created_at >= since,
                    Notification.created_at < now,
                )
                .order_by(Notification.created_at.desc())
            )
            notifications = list(result.scalars().all())
            if not notifications:
                continue

            subject, text, html = render_digest(user, notifications, frequency)
            if await self.email_service.send_email(user.email, subject, html, text):
                prefs.last_digest_at = now
                sent += 1
            else:
                logger.warning(f"Digest email to {user.email} was not sent")

        await self.db.commit()
        logger.info(f"{frequency.value} digest: {sent} email(s) sent")
        return sent
