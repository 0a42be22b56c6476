"""Celery configuration"""

from celery import Celery
from celery.schedules import crontab

from swapmarket.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "swapmarket_tasks",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["swapmarket.tasks.digest"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,
    task_soft_time_limit=240,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)

celery_app.conf.beat_schedule = {
    "daily-notification-digest": {
        "task": "swapmarket.tasks.send_notification_digests",
        "schedule": crontab(hour=8, minute=0),
        "args": ("daily",),
    },
    "weekly-notification-digest": {
        "task": "swapmarket.tasks.send_notification_digests",
        "schedule": crontab(hour=8, minute=0, day_of_week="mon"),
        "args": ("weekly",),
    },
}
