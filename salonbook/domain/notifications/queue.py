"""
Hand-off of committed appointment events to the notification pipeline

Runs after the booking response is ready (FastAPI background task). Failures
here are logged only; unprocessed outbox rows are retried by the worker sweep.
"""

import asyncio
import logging

from arq import create_pool
from fastapi import BackgroundTasks

from ...config import NOTIFICATION_QUEUE_ENABLED
from ...database import SessionLocal
from ...worker import get_redis_settings
from .service import NotificationService

logger = logging.getLogger(__name__)


async def enqueue_appointment_event(event_id: int) -> bool:
    """Queue an outbox event for the ARQ worker"""
    try:
        pool = await asyncio.wait_for(create_pool(get_redis_settings()), timeout=20.0)
        try:
            job = await pool.enqueue_job(
                "process_appointment_event_task",
                event_id,
                _job_id=f"appointment-event-{event_id}",
            )
        finally:
            await pool.close()
        logger.info(f"📋 Appointment event {event_id} queued: {job.job_id if job else 'duplicate'}")
        return True
    except Exception as e:
        logger.warning(f"⚠️ Failed to queue appointment event {event_id}, sweep will retry: {e}")
        return False


async def process_appointment_event_inline(event_id: int) -> None:
    """Process an outbox event in this process with its own session"""
    db = SessionLocal()
    try:
        await NotificationService(db).process_appointment_event(event_id)
    except Exception as e:
        logger.error(f"❌ Inline processing of appointment event {event_id} failed: {e}")
    finally:
        db.close()


async def hand_off_appointment_event(event_id: int) -> None:
    if NOTIFICATION_QUEUE_ENABLED:
        await enqueue_appointment_event(event_id)
    else:
        await process_appointment_event_inline(event_id)


def schedule_event_hand_off(background_tasks: BackgroundTasks, event_id) -> None:
    """Register the hand-off to run after the response is sent (no-op without an event)"""
    if event_id is not None:
        background_tasks.add_task(hand_off_appointment_event, event_id)
