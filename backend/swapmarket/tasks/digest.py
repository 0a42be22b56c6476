"""Notification digest task"""

import asyncio
import logging

from swapmarket.core.celery_app import celery_app
from swapmarket.core.database import async_session_maker, engine
from swapmarket.models.notification import DigestFrequency
from swapmarket.services.digest import DigestService

logger = logging.getLogger(__name__)


async def _send_digests(frequency: DigestFrequency) -> int:
    try:
        async with async_session_maker() as session:
            return await DigestService(session).send(frequency)
    finally:
        # each task run gets a fresh event loop, pooled connections must not outlive it
        await engine.dispose()


@celery_app.task(name="swapmarket.tasks.send_notification_digests")
def send_notification_digests(frequency: str = DigestFrequency.DAILY.value) -> dict:
    """Send daily or weekly notification digests"""
    logger.info(f"Sending {frequency} notification digests")
    sent = asyncio.run(_send_digests(DigestFrequency(frequency)))
    return {"frequency": frequency, "sent": sent}
