"""Audit log helper: append-only writes to audit_logs table."""
import json
import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from premium_freight.models.audit import AuditLog

logger = logging.getLogger(__name__)


def log(
    db: Session,
    action: str,
    entity_type: str,
    entity_id: int | None = None,
    order_id: int | None = None,
    actor_id: int | None = None,
    actor_email: str | None = None,
    before: Any | None = None,
    after: Any | None = None,
    notes: str | None = None,
    ip_address: str | None = None,
) -> AuditLog:
    """Write a single audit log entry.

    Args:
        db: Sync SQLAlchemy session. The caller controls the transaction.
        action: Short verb, e.g. 'order_created', 'approval_advanced'.
        entity_type: Table/domain name, e.g. 'order', 'edit_token'.
        entity_id: PK of the affected record.
        order_id: Order the action belongs to (for per-order audit trails).
        actor_id: User who performed the action (None for system actions).
        actor_email: Denormalised email (preserved if user is later deleted).
        before: Dict snapshot of state before the action (JSON-serialisable).
        after: Dict snapshot of state after the action.
        notes: Free-text annotation.
    """
    entry = AuditLog(
        actor_id=actor_id,
        actor_email=actor_email,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        order_id=order_id,
        before_state=json.dumps(before, default=str) if before is not None else None,
        after_state=json.dumps(after, default=str) if after is not None else None,
        ip_address=ip_address,
        notes=notes,
    )
    db.add(entry)
    db.flush()  # get id without committing; caller controls the transaction
    logger.debug("Audit: %s %s/%s", action, entity_type, entity_id)
    return entry


def entries_for_order(db: Session, order_id: int, entity_type: str | None = None) -> list[AuditLog]:
    """Audit entries of one order, newest first."""
    stmt = select(AuditLog).where(AuditLog.order_id == order_id)
    if entity_type:
        stmt = stmt.where(AuditLog.entity_type == entity_type)
    stmt = stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    return list(db.execute(stmt).scalars().all())
