"""Celery beat task re-notifying the next approver of every pending order."""
import logging

from premium_freight.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="premium_freight.workers.reminder_tasks.remind_pending_approvers")
def remind_pending_approvers() -> dict:
    """Runs daily. Sends one reminder per order still awaiting an approval."""
    logger.info("remind_pending_approvers: starting daily reminder run")
    try:
        from sqlalchemy import select

        from premium_freight.db.session import SessionLocal
        from premium_freight.models.approval import REJECTED_LEVEL, ApprovalLedgerEntry
        from premium_freight.models.order import Order, OrderStatus
        from premium_freight.services import notifications

        stats = {"reminded": 0, "skipped": 0}

        with SessionLocal() as db:
            order_ids = db.execute(
                select(Order.id)
                .join(ApprovalLedgerEntry, ApprovalLedgerEntry.order_id == Order.id)
                .where(
                    Order.status == OrderStatus.pending.value,
                    ApprovalLedgerEntry.act_approv != REJECTED_LEVEL,
                    ApprovalLedgerEntry.act_approv < Order.required_auth_level,
                )
                .order_by(Order.id)
            ).scalars().all()

            for order_id in order_ids:
                if notifications.notify_next_approver(db, order_id, reminder=True):
                    stats["reminded"] += 1
                else:
                    stats["skipped"] += 1

        logger.info(
            "remind_pending_approvers: complete, reminded=%d, skipped=%d",
            stats["reminded"], stats["skipped"],
        )
        return stats

    except Exception as exc:
        logger.exception("remind_pending_approvers failed: %s", exc)
        return {"status": "error", "error": str(exc)}
