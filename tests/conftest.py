"""
tests/conftest.py -- Shared fixtures for the credential vault tests.

This module provides:
  - db: a SQLAlchemy session on a freshly created schema (per test)
  - org: two organizational units with three divisions
  - make_user: factory for users with a role and division memberships
  - cipher: a CredentialCipher bound to a fixed test key
  - client / headers_for: TestClient and Bearer headers for route tests

The environment variables must be set before any backend import because
``core.config`` builds its Settings singleton at import time.  The database
is a throw-away SQLite file (not :memory:) so that the request threads, the
audit background task and the test session all see the same data.
"""

import base64
import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="credvault-tests-")

os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["JWT_SECRET"] = "test-access-secret"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret"
os.environ["ENCRYPTION_KEY"] = base64.b64encode(b"0123456789abcdef0123456789abcdef").decode()
os.environ["ENVIRONMENT"] = "development"
# Keeps pbkdf2 fast; production default is 600 000
os.environ["PASSWORD_HASH_ROUNDS"] = "1000"

import pytest
from fastapi.testclient import TestClient

from main import app
from core.cipher import CredentialCipher
from core.security import hash_password, issue_access_token
from database import Base, SessionLocal, engine
from models.organization import Division, OrganizationalUnit
from models.user import User

TEST_PASSWORD = "Sup3rSecret!"
TEST_KEY = b"k" * 32


@pytest.fixture(autouse=True)
def _schema():
    """Create every table before a test and drop them afterwards."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def org(db):
    """Two OUs and three divisions.

    NEWS:     NEWS-IT, NEWS-FIN
    SOFTWARE: SOFT-DEV
    """
    news = OrganizationalUnit(name="News Management", code="NEWS", is_active=True)
    software = OrganizationalUnit(name="Software Reviews", code="SOFTWARE", is_active=True)
    db.add_all([news, software])
    db.flush()

    news_it = Division(name="IT", code="NEWS-IT", organizational_unit_id=news.id, is_active=True)
    news_fin = Division(name="Finance", code="NEWS-FIN", organizational_unit_id=news.id, is_active=True)
    soft_dev = Division(name="Development", code="SOFT-DEV", organizational_unit_id=software.id, is_active=True)
    db.add_all([news_it, news_fin, soft_dev])
    db.commit()

    return {
        "news": news.id,
        "software": software.id,
        "news_it": news_it.id,
        "news_fin": news_fin.id,
        "soft_dev": soft_dev.id,
    }


@pytest.fixture
def make_user(db):
    """Factory: make_user("alice", role="user", divisions=[id, ...])."""

    def _make(username, role="user", divisions=(), email=None, password=TEST_PASSWORD, is_active=True):
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            password_hash=hash_password(password),
            role=role,
            is_active=is_active,
            login_attempts=0,
        )
        if divisions:
            user.divisions = db.query(Division).filter(Division.id.in_(list(divisions))).all()
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def cipher():
    return CredentialCipher(lambda: TEST_KEY)


@pytest.fixture
def client():
    # Not used as a context manager: startup hooks (the purge loop) stay off
    return TestClient(app)


@pytest.fixture
def headers_for():
    def _headers(user):
        return {"Authorization": f"Bearer {issue_access_token(user.id)}"}

    return _headers
