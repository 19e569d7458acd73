"""Shared fixtures: in-memory SQLite database, demo approver hierarchy, API client."""
import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")
os.environ.setdefault("MAIL_ENABLED", "false")

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from premium_freight.core.actor import ActorContext  # noqa: E402
from premium_freight.core.security import create_access_token, hash_password  # noqa: E402
from premium_freight.db.base import Base  # noqa: E402
from premium_freight.models import Approver, User  # noqa: E402
from premium_freight.services import orders as order_svc  # noqa: E402

PLANT = "3310"
OTHER_PLANT = "3330"


# ─── Database ─────────────────────────────────────────────────────────────────

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


# ─── Users and approvers ──────────────────────────────────────────────────────

def add_user(db, email, plant=None, level=0, role="USER", name=None) -> User:
    user = User(
        email=email,
        name=name or email.split("@")[0],
        password_hash=hash_password("changeme123"),
        role=role,
        plant=plant,
        authorization_level=level,
    )
    db.add(user)
    db.flush()
    return user


def actor(user: User) -> ActorContext:
    return ActorContext.from_user(user)


@pytest.fixture
def hierarchy(db) -> dict[int, User]:
    """Approver users keyed by level: plant 3310 for levels 1-5, regional for 6-8."""
    approvers = {}
    for level in range(1, 9):
        plant = PLANT if level <= 5 else None
        user = add_user(db, f"approver.l{level}@grammer.com", plant=plant, level=level)
        db.add(Approver(user_id=user.id, approval_level=level, plant=plant))
        approvers[level] = user
    db.commit()
    return approvers


@pytest.fixture
def creator(db) -> User:
    user = add_user(db, "requester@grammer.com", plant=PLANT)
    db.commit()
    return user


@pytest.fixture
def reviewer(db) -> User:
    user = add_user(db, "reviewer@grammer.com", role="EDIT_REVIEWER")
    db.commit()
    return user


@pytest.fixture
def make_order(db, hierarchy, creator):
    """Factory: create an order for ``creator`` quoting ``cost`` in ``currency``."""
    def _make(cost="2000", currency="EUR", **fields):
        return order_svc.create_order(
            db,
            actor(creator),
            quoted_cost=Decimal(str(cost)),
            currency=currency,
            **fields,
        )
    return _make


def approve_through(db, order_id, hierarchy, up_to: int) -> None:
    """Approve levels 1..up_to in order."""
    from premium_freight.services import state_machine

    for level in range(1, up_to + 1):
        state_machine.attempt_transition(db, order_id, actor(hierarchy[level]), level)


# ─── API ──────────────────────────────────────────────────────────────────────

def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(str(user.id), user.role)}"}


@pytest.fixture
def app(session_factory):
    from premium_freight.db.session import get_db
    from premium_freight.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()
