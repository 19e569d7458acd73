import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from premium_freight.core.deps import get_current_user, require_role
from premium_freight.core.exceptions import InvalidArgument, NotFound
from premium_freight.db.session import get_db
from premium_freight.models.approver import Approver
from premium_freight.models.user import User
from premium_freight.schemas.approvers import ApproverCreate, ApproverOut
from premium_freight.services import approver_directory
from premium_freight.services import audit as audit_svc

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/me", response_model=list[ApproverOut])
def my_roles(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return approver_directory.roles_for_user(db, current_user.id)


@router.get("", response_model=list[ApproverOut])
def list_approvers(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role("ADMIN")),
):
    return db.execute(
        select(Approver).order_by(Approver.approval_level, Approver.plant)
    ).scalars().all()


@router.post("", response_model=ApproverOut, status_code=status.HTTP_201_CREATED)
def create_approver(
    body: ApproverCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role("ADMIN")),
):
    if db.get(User, body.user_id) is None:
        raise NotFound(f"User {body.user_id} not found.")

    approver = Approver(user_id=body.user_id, approval_level=body.approval_level, plant=body.plant)
    db.add(approver)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise InvalidArgument("This approver role already exists.")

    audit_svc.log(
        db,
        action="approver_created",
        entity_type="approver",
        entity_id=approver.id,
        actor_id=current_user.id,
        actor_email=current_user.email,
        after=body.model_dump(),
    )
    db.commit()
    db.refresh(approver)
    logger.info("Approver role created: %s for user %s", approver.display_name, body.user_id)
    return approver


@router.delete("/{approver_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_approver(
    approver_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role("ADMIN")),
):
    approver = db.get(Approver, approver_id)
    if approver is None:
        raise NotFound(f"Approver {approver_id} not found.")

    audit_svc.log(
        db,
        action="approver_deleted",
        entity_type="approver",
        entity_id=approver.id,
        actor_id=current_user.id,
        actor_email=current_user.email,
        before={"user_id": approver.user_id, "approval_level": approver.approval_level, "plant": approver.plant},
    )
    db.delete(approver)
    db.commit()
