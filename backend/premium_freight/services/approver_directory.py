"""Approver directory: resolve which user holds an approval rung for a plant.

Read-only. A plant-specific approver is preferred over a regional
(plant = NULL) approver of the same level when both exist.
"""
import logging

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from premium_freight.core.exceptions import IncompleteApproverChain, NotFound
from premium_freight.models.approver import Approver

logger = logging.getLogger(__name__)


def find_approver(db: Session, level: int, plant: str | None) -> Approver | None:
    """Return the approver for (level, plant) or None."""
    plant_match = Approver.plant.is_(None)
    if plant:
        plant_match = or_(Approver.plant == plant, Approver.plant.is_(None))

    stmt = (
        select(Approver)
        .where(Approver.approval_level == level, plant_match)
        .order_by(Approver.plant.asc().nulls_last(), Approver.id.asc())
        .limit(1)
    )
    return db.execute(stmt).scalars().first()


def resolve_approver(db: Session, level: int, plant: str | None) -> Approver:
    """Return the approver for (level, plant). Raises NotFound."""
    approver = find_approver(db, level, plant)
    if approver is None:
        raise NotFound(f"No approver found for level {level} (plant {plant or 'regional'}).")
    return approver


def resolve_chain(db: Session, plant: str | None, required_level: int) -> list[Approver]:
    """Resolve approvers for every level 1..required_level.

    Raises IncompleteApproverChain listing every level without an approver.
    """
    chain: list[Approver] = []
    missing: list[int] = []
    for level in range(1, required_level + 1):
        approver = find_approver(db, level, plant)
        if approver is None:
            missing.append(level)
        else:
            chain.append(approver)

    if missing:
        logger.error(
            "resolve_chain: incomplete approver chain plant=%s required=%s missing=%s",
            plant, required_level, missing,
        )
        raise IncompleteApproverChain(plant, missing)
    return chain


def roles_for_user(db: Session, user_id: int) -> list[Approver]:
    """All approval roles held by a user, lowest level first."""
    stmt = (
        select(Approver)
        .where(Approver.user_id == user_id)
        .order_by(Approver.approval_level.asc(), Approver.plant.asc())
    )
    return list(db.execute(stmt).scalars().all())
