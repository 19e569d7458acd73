"""Outbound email through the mailer service (console log when MAIL_ENABLED=False).

The mailer is a separate HTTP service; this module only POSTs a JSON
message to it. Callers run inside the Celery notification task, never in
the request transaction.
"""
import logging

import httpx

from premium_freight.core.config import settings

logger = logging.getLogger(__name__)


def send_email(to: str, subject: str, body: str, html: str | None = None) -> None:
    """Send (or mock-log) one email.

    Raises httpx.HTTPError when the mailer is unreachable or answers non-2xx.
    """
    if not settings.MAIL_ENABLED:
        logger.info(
            "\n"
            "=== EMAIL ===\n"
            "To: %s\n"
            "Subject: %s\n"
            "%s\n"
            "=============",
            to,
            subject,
            body,
        )
        return

    payload = {
        "from": {"email": settings.MAIL_FROM, "name": settings.MAIL_FROM_NAME},
        "to": to,
        "subject": subject,
        "text": body,
    }
    if html:
        payload["html"] = html

    response = httpx.post(
        settings.MAILER_URL,
        json=payload,
        timeout=settings.MAILER_TIMEOUT_SECONDS,
    )
    response.raise_for_status()
    logger.info("Email sent to %s: %s", to, subject)
