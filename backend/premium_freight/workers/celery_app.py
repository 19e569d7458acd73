from celery import Celery
from celery.schedules import crontab

from premium_freight.core.config import settings

celery_app = Celery(
    "pf_worker",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "premium_freight.workers.notification_tasks",
        "premium_freight.workers.reminder_tasks",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    broker_connection_retry_on_startup=True,
    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
)

celery_app.conf.beat_schedule = {
    "remind-pending-approvers-daily": {
        "task": "premium_freight.workers.reminder_tasks.remind_pending_approvers",
        "schedule": crontab(hour=7, minute=0),
    },
}
