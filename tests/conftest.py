"""Pytest fixtures."""

import os
import uuid

TEST_DATABASE_URL = "sqlite:///./test.db"
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from gymbuddy.core.security import create_access_token
from gymbuddy.db.base import Base
from gymbuddy.models import Buddy, BuddyRequestPickup, Message, Notification, Post, Profile  # noqa: F401 - register for create_all
from gymbuddy.main import app
from gymbuddy.db.session import get_db

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session")
def setup_db():
    """Create tables once for test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(setup_db):
    """Test client with overridden DB."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def session_factory(setup_db):
    """Sessions bound to the test database, for service-level tests."""
    return TestingSessionLocal


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


def new_user(client, **profile) -> tuple[str, dict]:
    """Sign in a fresh user (creating their profile) and return (user_id, headers)."""
    user_id = f"user-{uuid.uuid4().hex[:12]}"
    headers = auth_headers(user_id)
    r = client.get("/profiles/me", headers=headers)
    assert r.status_code == 200
    if profile:
        r = client.put("/profiles/me", headers=headers, json=profile)
        assert r.status_code == 200, r.json()
    return user_id, headers


def make_buddies(client, a_headers: dict, b_id: str, b_headers: dict) -> int:
    """a sends b a request and b accepts. Returns the relationship id."""
    r = client.post("/buddies/requests", headers=a_headers, json={"buddy_id": b_id})
    assert r.status_code == 200, r.json()
    rel_id = r.json()["id"]
    r = client.post(f"/buddies/{rel_id}/respond", headers=b_headers, json={"decision": "accept"})
    assert r.status_code == 200, r.json()
    return rel_id
