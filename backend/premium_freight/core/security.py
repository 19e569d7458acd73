import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext

from premium_freight.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ─── Password ─────────────────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


# ─── JWT ──────────────────────────────────────────────────────────────────────

def create_access_token(subject: str, role: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
    )
    return jwt.encode(
        {"sub": subject, "role": role, "exp": expire, "type": "access"},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_token(token: str) -> dict:
    """Raises JWTError on invalid/expired token."""
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])


# ─── Email action / edit tokens ───────────────────────────────────────────────

def hash_token(raw_token: str) -> str:
    """HMAC-SHA256 of a raw token; only the hash is ever stored."""
    return hmac.new(
        settings.ACTION_TOKEN_SECRET.encode(),
        raw_token.encode(),
        hashlib.sha256,
    ).hexdigest()


def create_action_token(order_id: int, level: int, action: str) -> tuple[str, str]:
    """
    Returns (raw_token, token_hash).
    raw_token is sent in the email URL; token_hash is stored in DB.
    action: 'approve' | 'reject'
    """
    raw = f"{order_id}:{level}:{action}:{secrets.token_urlsafe(24)}"
    return raw, hash_token(raw)


def create_edit_token() -> tuple[str, str]:
    """Opaque edit-request token. Returns (raw_token, token_hash)."""
    raw = secrets.token_hex(32)
    return raw, hash_token(raw)