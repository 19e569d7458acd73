"""Seed a demo approver hierarchy into the database."""
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from premium_freight.core.security import hash_password
from premium_freight.db.session import SessionLocal
from premium_freight.models.approver import Approver, level_name
from premium_freight.models.user import User

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "changeme"

# Plant-scoped rungs for each demo plant: levels 1-5 (Traffic .. Plant Manager)
DEMO_PLANTS = ("3310", "3330")
PLANT_LEVELS = range(1, 6)
# Regional rungs shared by all plants: levels 6-8
REGIONAL_LEVELS = range(6, 9)

# (email, name, role, plant, authorization_level)
DEMO_USERS = [
    ("requester.3310@grammer.com", "Requester 3310", "USER", "3310", 0),
    ("requester.3330@grammer.com", "Requester 3330", "USER", "3330", 0),
    ("reviewer@grammer.com", "Edit Reviewer", "EDIT_REVIEWER", None, 0),
    ("admin@grammer.com", "Administrator", "ADMIN", None, 0),
]


def _get_or_create_user(db: Session, email: str, name: str, role: str, plant: str | None, level: int) -> User:
    user = db.execute(select(User).where(User.email == email)).scalars().first()
    if user is not None:
        logger.info("User already exists: %s, skipping", email)
        return user
    user = User(
        email=email,
        name=name,
        password_hash=hash_password(DEMO_PASSWORD),
        role=role,
        plant=plant,
        authorization_level=level,
    )
    db.add(user)
    db.flush()
    logger.info("Seeded user: %s (level %s, plant %s)", email, level, plant or "regional")
    return user


def _ensure_approver(db: Session, user: User, level: int, plant: str | None) -> None:
    existing = db.execute(
        select(Approver).where(
            Approver.user_id == user.id,
            Approver.approval_level == level,
            Approver.plant.is_(None) if plant is None else Approver.plant == plant,
        )
    ).scalars().first()
    if existing is None:
        db.add(Approver(user_id=user.id, approval_level=level, plant=plant))
        logger.info("Seeded approver: %s -> %s", user.email, level_name(level))


def seed_demo_hierarchy(db: Session) -> None:
    for email, name, role, plant, level in DEMO_USERS:
        _get_or_create_user(db, email, name, role, plant, level)

    for plant in DEMO_PLANTS:
        for level in PLANT_LEVELS:
            email = f"approver.l{level}.{plant}@grammer.com"
            user = _get_or_create_user(db, email, f"{level_name(level)} {plant}", "USER", plant, level)
            _ensure_approver(db, user, level, plant)

    for level in REGIONAL_LEVELS:
        email = f"approver.l{level}.regional@grammer.com"
        user = _get_or_create_user(db, email, f"{level_name(level)} Regional", "USER", None, level)
        _ensure_approver(db, user, level, None)

    db.commit()


def run_seed() -> None:
    with SessionLocal() as db:
        seed_demo_hierarchy(db)
    logger.info("Seeding complete.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run_seed()
