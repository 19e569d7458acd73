"""Celery task delivering notification emails through the mailer service."""
import logging

import httpx

from premium_freight.services import email as email_svc
from premium_freight.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="premium_freight.workers.notification_tasks.send_notification")
def send_notification(to: str, subject: str, body: str) -> dict:
    """Deliver one notification. Failures are logged, never raised."""
    try:
        email_svc.send_email(to=to, subject=subject, body=body)
    except httpx.HTTPError as exc:
        logger.error("send_notification: delivery to %s failed: %s", to, exc)
        return {"status": "failed", "to": to, "error": str(exc)}
    return {"status": "sent", "to": to}
