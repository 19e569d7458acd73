from fastapi import APIRouter, Depends, Request
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import select
from sqlalchemy.orm import Session

from premium_freight.core.config import settings
from premium_freight.core.deps import get_current_user
from premium_freight.core.exceptions import Forbidden, Unauthenticated
from premium_freight.core.limiter import limiter
from premium_freight.core.security import create_access_token, verify_password
from premium_freight.db.session import get_db
from premium_freight.models.user import User
from premium_freight.schemas.auth import Token, UserOut
from premium_freight.services import audit as audit_svc

router = APIRouter()


@router.post("/login", response_model=Token)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
def login(
    request: Request,
    form: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    user = db.execute(
        select(User).where(User.email == form.username, User.deleted_at.is_(None))
    ).scalar_one_or_none()
    if not user or not verify_password(form.password, user.password_hash):
        raise Unauthenticated("Invalid credentials.")
    if not user.is_active:
        raise Forbidden("Account disabled.")

    token = create_access_token(subject=str(user.id), role=user.role)

    audit_svc.log(
        db,
        action="user_login",
        entity_type="user",
        entity_id=user.id,
        actor_id=user.id,
        actor_email=user.email,
        notes=f"Login from IP {request.client.host if request.client else 'unknown'}",
    )
    db.commit()

    return {"access_token": token, "token_type": "bearer"}


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user
