"""Shared builders for tests: settings, an in-memory SQLite credential store, seeded accounts."""

from collections.abc import Iterable

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from crm_auth.core.config import Settings
from crm_auth.core.database import create_session_factory
from crm_auth.models import Base, User
from crm_auth.scripts.seed_positions import seed_positions
from crm_auth.services.users import UserStore

TEST_SECRET = "unit-test-secret"
ADMIN_EMAIL = "admin@x.com"
AGENT_EMAIL = "agent@x.com"
PASSWORD = "correct-horse-battery"


def make_settings(**overrides: object) -> Settings:
    """Settings independent of the process environment, with fast bcrypt."""
    values: dict[str, object] = {
        "JWT_SECRET": TEST_SECRET,
        "BCRYPT_ROUNDS": 4,
        "JWT_EXPIRE_MINUTES": 60,
        "LOG_LEVEL": "WARNING",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_engine() -> Engine:
    """Single-connection in-memory SQLite shared across TestClient worker threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


def open_session(engine: Engine) -> Session:
    return create_session_factory(engine)()


def seed_accounts(
    engine: Engine,
    settings: Settings,
    extra_roles: Iterable[tuple[str, str]] = (),
) -> dict[str, int]:
    """
    Seed the default positions plus an admin and an agent account.

    Returns email -> user id. extra_roles adds (email, role) accounts with the same password.
    """
    session = open_session(engine)
    try:
        store = UserStore(session)
        seed_positions(store, settings.ADMIN_LEVEL_THRESHOLD)
        ids: dict[str, int] = {}
        for email, role in [(ADMIN_EMAIL, "admin"), (AGENT_EMAIL, "agent"), *extra_roles]:
            user = store.create_user(
                email=email,
                password=PASSWORD,
                full_name=email.split("@")[0].title(),
                role=role,
                bcrypt_rounds=settings.BCRYPT_ROUNDS,
            )
            ids[email] = user.id
        return ids
    finally:
        session.close()


def set_active(engine: Engine, user_id: int, active: bool) -> None:
    session = open_session(engine)
    try:
        store = UserStore(session)
        user = store.find_user_by_id(user_id)
        assert user is not None
        store.set_user_active(user, active)
    finally:
        session.close()


def get_user(session: Session, email: str) -> User:
    user = UserStore(session).find_user_by_email(email)
    assert user is not None
    return user
