from __future__ import annotations

import os
import tempfile
from pathlib import Path

os.environ.setdefault(
    "DATABASE_URL", f"sqlite:///{Path(tempfile.gettempdir()) / 'mover_api_test.db'}"
)
os.environ.setdefault("SECRET_KEY", "test")
os.environ.setdefault("ACCESS_TOKEN_EXPIRE_MINUTES", "15")

import pytest
from sqlalchemy.orm import sessionmaker

from mover_api.application.use_cases.notifications import reset_notification_settings
from mover_api.domain.entities import Role, User
from mover_api.infrastructure.database import build_engine, initialize_database
from mover_api.infrastructure.repositories import UserRepository


@pytest.fixture()
def session_factory(tmp_path):
    """Return a session factory bound to a fresh SQLite database."""

    engine = build_engine(f"sqlite:///{tmp_path / 'notifications.db'}")
    initialize_database(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def default_notification_settings():
    reset_notification_settings()
    yield
    reset_notification_settings()


@pytest.fixture()
def make_user(session):
    """Create users in the directory; ``role`` is the role alias."""

    def _make_user(
        name: str,
        *,
        role: str = "user",
        is_active: bool = True,
        profile_completed: bool = True,
    ) -> User:
        return UserRepository(session).create(
            User(
                id=None,
                role=Role(id=None, name=role.replace("_", " ").title(), alias=role),
                name=name,
                email=f"{name.lower().replace(' ', '.')}@example.com",
                is_active=is_active,
                profile_completed=profile_completed,
            )
        )

    return _make_user
