"""Core background tasks."""

import structlog
from celery import shared_task
from django.conf import settings

from modules.core.outbox import redeliver_failed

logger = structlog.get_logger(__name__)


@shared_task(name="core.debug_task")
def debug_task():
    """Smoke task proving the worker is wired to the broker."""
    logger.info("debug_task.executed", status="ok")
    return {"status": "ok", "message": "Celery is working"}


@shared_task(name="core.redeliver_outbox")
def redeliver_outbox():
    return {"delivered": redeliver_failed(settings.OUTBOX_MAX_RETRIES)}
