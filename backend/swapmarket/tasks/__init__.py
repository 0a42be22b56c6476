"""Celery tasks"""

from swapmarket.tasks.digest import send_notification_digests

__all__ = [
    "send_notification_digests",
]
