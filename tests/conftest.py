"""Pytest configuration and fixtures."""

import os
import tempfile
import uuid

import pytest

# Point storage at a throwaway directory before the app reads its settings
_TMP = tempfile.mkdtemp(prefix="gigflow-tests-")
os.environ["STORAGE_DIR"] = _TMP
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP}/test.db"
os.environ["JWT_KEY"] = "test-only-secret"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from fastapi.testclient import TestClient  # noqa: E402

from gigflow.auth.models import User  # noqa: E402
from gigflow.shared.auth import create_access_token  # noqa: E402
from gigflow.shared.db import Base, SessionLocal, engine, init_db  # noqa: E402


@pytest.fixture(autouse=True)
def schema():
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(schema):
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def client(schema):
    from gigflow.main import app
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db):
    """Create a verified user directly in the store (no password login)."""
    def _make(name: str = "user", role: str = "client", email: str | None = None) -> User:
        u = User(
            name=name,
            email=email or f"{name.lower()}-{uuid.uuid4().hex[:6]}@gigflow.io",
            password_hash="!",
            role=role,
            is_verified=True,
        )
        db.add(u)
        db.commit()
        db.refresh(u)
        return u
    return _make


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(sub=user.id, role=user.role)}"}


@pytest.fixture
def headers():
    return auth_headers
