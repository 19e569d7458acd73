"""Edit-request workflow endpoints."""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from premium_freight.core.actor import ActorContext
from premium_freight.core.deps import get_actor
from premium_freight.db.session import get_db
from premium_freight.schemas.edits import (
    AuditLogOut,
    EditRequestCreate,
    EditSubmitRequest,
    EditSubmitResponse,
    EditTokenOut,
    ResumePointOut,
    TokenValidationOut,
)
from premium_freight.services import edit_workflow
from premium_freight.services import orders as order_svc

router = APIRouter()


@router.post("/requests", response_model=EditTokenOut, status_code=status.HTTP_201_CREATED)
def request_edit(
    body: EditRequestCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    return edit_workflow.request_edit(db, body.order_id, actor, body.reason)


@router.post("/requests/{token_id}/release", response_model=EditTokenOut)
def release_edit(
    token_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    """Release an issued request; the edit link goes to the requester by email only."""
    token, _ = edit_workflow.release_for_edit(db, token_id, actor)
    return token


@router.get("/validate", response_model=TokenValidationOut)
def validate_token(
    token: str = Query(...),
    order_id: int = Query(..., alias="orderId"),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    edit_token = edit_workflow.validate_token(db, order_id, token)
    return TokenValidationOut(
        token_id=edit_token.id,
        order_id=edit_token.order_id,
        expires_at=edit_token.expires_at,
    )


@router.post("/submit", response_model=EditSubmitResponse)
def submit_edit(
    body: EditSubmitRequest,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    submission = edit_workflow.submit_edited_order(
        db,
        body.order_id,
        body.token,
        body.changes.model_dump(exclude_unset=True),
        actor,
    )
    return EditSubmitResponse(
        order=submission.order,
        resume_point=ResumePointOut(
            scenario=submission.resume_point.scenario.value,
            act_approv=submission.resume_point.act_approv,
            required_level=submission.resume_point.required_level,
            next_level=submission.resume_point.next_level,
            notify=submission.resume_point.notify,
        ),
        changed_fields=submission.changed_fields,
        previous_required_level=submission.previous_required_level,
    )


@router.get("/resume-point/{order_id}", response_model=ResumePointOut)
def resume_point(
    order_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    order_svc.get_order(db, order_id, actor)
    point = edit_workflow.resolve_resume_point(db, order_id)
    return ResumePointOut(
        scenario=point.scenario.value,
        act_approv=point.act_approv,
        required_level=point.required_level,
        next_level=point.next_level,
        notify=point.notify,
    )


@router.get("/audit-log/{order_id}", response_model=list[AuditLogOut])
def audit_log(
    order_id: int,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(get_actor),
):
    order_svc.get_order(db, order_id, actor)
    return edit_workflow.audit_trail(db, order_id)
