from typing import Annotated

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from premium_freight.core.actor import ActorContext
from premium_freight.core.exceptions import Forbidden, Unauthenticated
from premium_freight.core.security import decode_token
from premium_freight.db.session import get_db

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


def get_current_user(
    token: Annotated[str | None, Depends(oauth2_scheme)],
    db: Annotated[Session, Depends(get_db)],
):
    """Validate JWT and return the User ORM object."""
    if not token:
        raise Unauthenticated("Not authenticated.")
    try:
        payload = decode_token(token)
        if payload.get("type") != "access":
            raise Unauthenticated("Could not validate credentials.")
        user_id = int(payload.get("sub") or 0)
    except (JWTError, ValueError):
        raise Unauthenticated("Could not validate credentials.")

    from premium_freight.models.user import User

    user = db.get(User, user_id)
    if user is None or not user.is_active or user.deleted_at is not None:
        raise Unauthenticated("Could not validate credentials.")
    return user


def get_actor(user=Depends(get_current_user)) -> ActorContext:
    """Explicit actor context for service calls."""
    return ActorContext.from_user(user)


def require_role(*roles: str):
    """Dependency factory; raises Forbidden if user role not in allowed list."""
    def check(user=Depends(get_current_user)):
        if user.role not in roles:
            raise Forbidden(f"Role '{user.role}' is not permitted for this action.")
        return user
    return check
