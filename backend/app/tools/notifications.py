"""
Fire-and-forget owner notifications
───────────────────────────────────
Booking handlers call ``dispatch_appointment_booked`` after a booking is
committed. Delivery runs as a background task; its outcome is only logged
and never reaches the caller's response.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional, Set
from uuid import UUID

import httpx
from pydantic import BaseModel

from app.config.settings import settings

logger = logging.getLogger(__name__)

# Strong references so pending tasks are not garbage collected mid-flight
_pending_tasks: Set[asyncio.Task] = set()


class AppointmentBookedNotification(BaseModel):
    organization_id: UUID
    appointment_id: Optional[str] = None
    caller_name: str
    caller_phone: str
    start_time: datetime
    appointment_date: str  # spoken form, org-local
    appointment_time: str
    provider: str


async def send_appointment_booked(notification: AppointmentBookedNotification) -> None:
    url = settings.notification_webhook_url
    if not url:
        logger.info(
            f"Notification: appointment_booked for organization {notification.organization_id} "
            f"on {notification.appointment_date} at {notification.appointment_time} (no webhook configured)"
        )
        return

    payload = {
        "event": "appointment_booked",
        "data": notification.model_dump(mode="json"),
    }
    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
        response = await client.post(url, json=payload)
        response.raise_for_status()
    logger.info(
        f"Notification: appointment_booked delivered for organization {notification.organization_id}"
    )


async def _deliver(notification: AppointmentBookedNotification) -> None:
    try:
        await send_appointment_booked(notification)
    except Exception as e:
        logger.error(
            f"Failed to send appointment notification for organization "
            f"{notification.organization_id}: {type(e).__name__} - {e}",
            exc_info=True,
        )


def dispatch_appointment_booked(notification: AppointmentBookedNotification) -> asyncio.Task:
    """Schedule delivery and return immediately."""
    task = asyncio.create_task(_deliver(notification))
    _pending_tasks.add(task)
    task.add_done_callback(_pending_tasks.discard)
    return task
