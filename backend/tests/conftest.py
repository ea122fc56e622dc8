from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["SESSION_SWEEP_ENABLED"] = "false"

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.api import deps
from app.crud.session import create_session, generate_session_token
from app.crud.user import create_user
from app.db.base import Base
from app.db.session import get_db, make_engine
from app.db.types import utcnow
from app.main import app as fastapi_app
from app.models.user import Role


@pytest.fixture()
def engine():
    eng = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(fastapi_app)
    finally:
        fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def user(db):
    return create_user(db, user_id="user-001", name="Ana Souza", email="ana@example.com", login_method="oauth")


@pytest.fixture()
def admin(db):
    return create_user(
        db,
        user_id="admin-001",
        name="Administrador LeanLia",
        email="admin@leanlia.com",
        login_method="oauth",
        role=Role.admin,
    )


def auth_headers(db, user_id: str) -> dict[str, str]:
    token = generate_session_token()
    s = create_session(db, user_id=user_id, token=token, expires_at=utcnow() + timedelta(hours=1))
    return {"Authorization": f"Bearer {deps.format_bearer(s.id, token)}"}


@pytest.fixture()
def admin_headers(db, admin):
    return auth_headers(db, admin.id)


@pytest.fixture()
def user_headers(db, user):
    return auth_headers(db, user.id)
